"""Core exceptions for the bridge service."""

from typing import Optional


class BridgeError(Exception):
    """Base exception for bridge errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(BridgeError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(BridgeError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, code: str = "invalid_request", param: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.param = param


class UpstreamError(BridgeError):
    """Raised when the Messages upstream answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: bytes = b"") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
