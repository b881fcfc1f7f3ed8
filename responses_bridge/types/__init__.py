"""Type definitions for both wire formats."""

from .messages import (
    ContentBlock,
    MessageParam,
    MessagesRequest,
    MessagesResponse,
    MessagesStreamEvent,
    MessagesUsage,
)
from .responses import (
    FunctionCallItem,
    InputItem,
    MessageItem,
    OutputItem,
    ResponseObject,
    ResponseRequest,
    ResponseUsage,
    StreamEvent,
)

__all__ = [
    "ContentBlock",
    "FunctionCallItem",
    "InputItem",
    "MessageItem",
    "MessageParam",
    "MessagesRequest",
    "MessagesResponse",
    "MessagesStreamEvent",
    "MessagesUsage",
    "OutputItem",
    "ResponseObject",
    "ResponseRequest",
    "ResponseUsage",
    "StreamEvent",
]
