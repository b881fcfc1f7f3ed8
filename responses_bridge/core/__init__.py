"""Core module initialization."""

from .exceptions import BridgeError, ConfigurationError, InvalidRequestError, UpstreamError
from .sse import SSEDecoder, SSEEvent, dumps_json, format_sse_event
from .upstream import Upstream, UpstreamStream, build_upstream

__all__ = [
    "BridgeError",
    "ConfigurationError",
    "InvalidRequestError",
    "SSEDecoder",
    "SSEEvent",
    "Upstream",
    "UpstreamError",
    "UpstreamStream",
    "build_upstream",
    "dumps_json",
    "format_sse_event",
]
