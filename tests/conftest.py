"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from responses_bridge.core import Upstream
from responses_bridge.main import create_app
from responses_bridge.responses.ids import IdGenerator
from responses_bridge.testing import FakeMessagesUpstream


class SequentialBytes:
    """Deterministic random-byte source: 1, 2, 3, ... encoded big-endian."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, size: int) -> bytes:
        self.calls += 1
        return self.calls.to_bytes(size, "big")


@pytest.fixture
def ids() -> IdGenerator:
    """Identifier source producing predictable ids.

    The first call yields ``...01``, the second ``...02`` and so on, so
    ``resp_`` ids are 24 hex chars and ``msg_``/``fc_`` ids 16 hex chars.
    """
    return IdGenerator(SequentialBytes())


# =============================================================================
# Upstream Payload Builders
# =============================================================================


def build_message(
    content: list[dict[str, Any]],
    *,
    stop_reason: str = "end_turn",
    input_tokens: int = 10,
    output_tokens: int = 5,
    cache_read_input_tokens: int | None = None,
) -> dict[str, Any]:
    """Build a complete Messages API response body."""
    usage: dict[str, Any] = {"input_tokens": input_tokens, "output_tokens": output_tokens}
    if cache_read_input_tokens is not None:
        usage["cache_read_input_tokens"] = cache_read_input_tokens
    return {
        "id": "msg_upstream",
        "type": "message",
        "role": "assistant",
        "model": "claude-test",
        "content": content,
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": usage,
    }


def text_stream_events(text_chunks: list[str], *, input_tokens: int = 5, output_tokens: int = 2) -> list[dict[str, Any]]:
    """Build a Messages event sequence for a single streamed text block."""
    events: list[dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {
                "id": "msg_upstream",
                "type": "message",
                "role": "assistant",
                "content": [],
                "usage": {"input_tokens": input_tokens, "output_tokens": 1},
            },
        },
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    ]
    for chunk in text_chunks:
        events.append({
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "text_delta", "text": chunk},
        })
    events.append({"type": "content_block_stop", "index": 0})
    events.append({
        "type": "message_stop",
        "message": {"usage": {"input_tokens": input_tokens, "output_tokens": output_tokens}},
    })
    return events


# =============================================================================
# Bridge Harness
# =============================================================================


UPSTREAM_BASE_URL = "http://upstream.local/v1"


def build_bridge_client(upstream: Upstream, ids: IdGenerator | None = None) -> TestClient:
    app = create_app({"bridge_settings": {"log_level": "DEBUG"}}, upstream=upstream, ids=ids)
    return TestClient(app)


@pytest.fixture
def bridge(ids: IdGenerator) -> Generator[tuple[FakeMessagesUpstream, TestClient], None, None]:
    """A bridge app wired to an in-process fake Messages upstream.

    Usage:
        def test_something(bridge):
            upstream, client = bridge
            upstream.enqueue_message(build_message([{"type": "text", "text": "Hi"}]))
            resp = client.post("/v1/responses", json={"model": "m", "input": "Hi"})
    """
    fake = FakeMessagesUpstream()
    upstream = Upstream(
        base_url=UPSTREAM_BASE_URL,
        api_key="test-key",
        default_model="claude-default",
        transport=httpx.ASGITransport(app=fake.app),
    )
    with build_bridge_client(upstream, ids) as client:
        yield fake, client


def parse_sse_body(body: str) -> list[dict[str, Any]]:
    """Split a Responses SSE body into decoded events, checking the framing."""
    events: list[dict[str, Any]] = []
    for block in body.split("\n\n"):
        if not block.strip():
            continue
        event_line, data_line = block.split("\n")
        data = json.loads(data_line[len("data: "):])
        assert event_line == f"event: {data['type']}"
        events.append(data)
    return events
