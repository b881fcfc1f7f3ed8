"""Responses API <-> Anthropic Messages API translation.

Key components:
- translator: request translation (Responses -> Messages) and complete
  response translation (Messages -> Responses)
- stream_adapter: Messages stream events -> Responses stream events
- ids: prefixed identifier generation with an injectable random source
"""

from .ids import IdGenerator
from .stream_adapter import MessagesToResponsesStreamAdapter, StreamState
from .translator import (
    build_error_response,
    convert_usage,
    message_to_response,
    responses_to_messages,
)

__all__ = [
    "IdGenerator",
    "MessagesToResponsesStreamAdapter",
    "StreamState",
    "build_error_response",
    "convert_usage",
    "message_to_response",
    "responses_to_messages",
]
