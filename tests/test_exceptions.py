"""Tests for the exceptions module."""

import pytest

from responses_bridge.core.exceptions import (
    BridgeError,
    ConfigurationError,
    InvalidRequestError,
    UpstreamError,
)


class TestBridgeError:
    """Tests for the base BridgeError exception."""

    def test_creates_error_with_message(self):
        """Test that error is created with message."""
        error = BridgeError("test error message")
        assert error.message == "test error message"
        assert str(error) == "test error message"

    @pytest.mark.parametrize("cls", [ConfigurationError, InvalidRequestError])
    def test_subclasses_share_base(self, cls):
        """Test that specific errors can be caught as BridgeError."""
        with pytest.raises(BridgeError):
            raise cls("boom")


class TestInvalidRequestError:
    """Tests for InvalidRequestError."""

    def test_defaults(self):
        error = InvalidRequestError("bad")
        assert error.code == "invalid_request"
        assert error.param is None

    def test_carries_code_and_param(self):
        error = InvalidRequestError("bad input", code="invalid_json", param="input")
        assert error.code == "invalid_json"
        assert error.param == "input"


class TestUpstreamError:
    """Tests for UpstreamError."""

    def test_carries_status_and_body(self):
        error = UpstreamError("failed", status_code=429, body=b'{"type":"error"}')
        assert isinstance(error, BridgeError)
        assert error.status_code == 429
        assert error.body == b'{"type":"error"}'

    def test_body_defaults_to_empty(self):
        assert UpstreamError("failed", status_code=500).body == b""
