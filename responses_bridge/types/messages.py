"""Types for the Anthropic Messages API wire format (v1/messages).

Request types describe what the bridge sends upstream; response and stream
types describe what it parses back.
"""

from typing import Any, Literal, Union
from typing_extensions import TypedDict


# =============================================================================
# Request Content Blocks
# =============================================================================

class TextBlock(TypedDict):
    type: Literal["text"]
    text: str


class ImageSource(TypedDict, total=False):
    """Image source: inline base64 data or a remote URL.

    Attributes:
        type: "base64" or "url".
        media_type: MIME type (base64 sources only).
        data: Base64 payload (base64 sources only).
        url: Image URL (url sources only).
    """
    type: Literal["base64", "url"]
    media_type: str
    data: str
    url: str


class ImageBlock(TypedDict):
    type: Literal["image"]
    source: ImageSource


class ToolResultBlock(TypedDict, total=False):
    """Result of a tool call, sent back on a user turn.

    Attributes:
        tool_use_id: Id of the ``tool_use`` block this answers.
        content: Tool output, passed through untouched.
    """
    type: Literal["tool_result"]
    tool_use_id: str
    content: Any


RequestContentBlock = Union[TextBlock, ImageBlock, ToolResultBlock]


class MessageParam(TypedDict):
    role: Literal["user", "assistant"]
    content: str | list[RequestContentBlock]


class ToolParam(TypedDict):
    name: str
    description: str
    input_schema: dict[str, Any]


class ToolChoiceParam(TypedDict, total=False):
    """``{"type": "auto"|"none"|"any"}`` or ``{"type": "tool", "name": ...}``."""
    type: Literal["auto", "none", "any", "tool"]
    name: str


class ThinkingParam(TypedDict):
    type: Literal["enabled"]
    budget_tokens: int


class MessagesRequest(TypedDict, total=False):
    """Request body for POST /v1/messages."""
    model: str
    messages: list[MessageParam]
    system: str
    max_tokens: int
    stream: bool
    temperature: float
    top_p: float
    tools: list[ToolParam]
    tool_choice: ToolChoiceParam
    thinking: ThinkingParam


# =============================================================================
# Response Types
# =============================================================================

class ContentBlock(TypedDict, total=False):
    """A content block in an assistant message.

    Attributes:
        type: "text", "thinking" or "tool_use".
        text: Text content (for "text" blocks).
        thinking: Thinking content (for "thinking" blocks).
        id: Tool call id (for "tool_use" blocks).
        name: Tool name (for "tool_use" blocks).
        input: Tool arguments (for "tool_use" blocks).
    """
    type: str
    text: str
    thinking: str
    id: str
    name: str
    input: dict[str, Any]


class MessagesUsage(TypedDict, total=False):
    input_tokens: int
    output_tokens: int
    cache_creation_input_tokens: int | None
    cache_read_input_tokens: int | None


class MessagesResponse(TypedDict, total=False):
    """A complete (non-streaming) assistant message.

    Attributes:
        stop_reason: Why generation stopped:
            - "end_turn": Natural stopping point
            - "max_tokens": Hit token limit
            - "tool_use": Model wants to use a tool
            - "stop_sequence": Hit a stop sequence
    """
    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    content: list[ContentBlock]
    model: str
    stop_reason: str | None
    stop_sequence: str | None
    usage: MessagesUsage


class MessagesStreamEvent(TypedDict, total=False):
    """A decoded event from a Messages stream.

    Attributes:
        type: "message_start", "content_block_start", "content_block_delta",
            "content_block_stop", "message_delta", "message_stop", "ping"
            or "error".
        index: Content block index (block events).
        message: Message envelope ("message_start", optionally "message_stop").
        content_block: Block being opened ("content_block_start").
        delta: "text_delta", "thinking_delta" or "input_json_delta" payload.
        usage: Cumulative usage ("message_delta").
    """
    type: str
    index: int
    message: MessagesResponse
    content_block: ContentBlock
    delta: dict[str, Any]
    usage: MessagesUsage
    error: dict[str, Any]
