"""responses-bridge - serve the OpenAI Responses API on top of Anthropic Messages.

This package provides:
- responses_to_messages: Responses request -> Messages request
- message_to_response: Messages response -> Responses response
- MessagesToResponsesStreamAdapter: Messages stream -> Responses stream
- format_sse_event: Responses stream event -> SSE wire block
- create_app: FastAPI application exposing POST /v1/responses

Example:
    >>> from responses_bridge import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8000)
"""

from .config_loader import load_config
from .core import format_sse_event
from .logging import setup_logging
from .main import create_app
from .responses import (
    IdGenerator,
    MessagesToResponsesStreamAdapter,
    StreamState,
    message_to_response,
    responses_to_messages,
)

__all__ = [
    "IdGenerator",
    "MessagesToResponsesStreamAdapter",
    "StreamState",
    "create_app",
    "format_sse_event",
    "load_config",
    "message_to_response",
    "responses_to_messages",
    "setup_logging",
]
