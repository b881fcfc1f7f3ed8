"""Types for the OpenAI Responses API wire format.

Only the subset of the schema the bridge reads or writes is modelled here.
Payloads stay plain dicts at runtime; these TypedDicts document their shape.
"""

from typing import Any, Literal, Union
from typing_extensions import TypedDict


# =============================================================================
# Roles and Status
# =============================================================================

Role = Literal["user", "assistant", "system", "developer"]
"""Roles accepted on input messages.

system and developer messages are lifted into the Messages ``system`` field.
"""

ItemStatus = Literal["in_progress", "completed", "incomplete"]

ResponseStatus = Literal["in_progress", "completed", "incomplete", "failed"]


# =============================================================================
# Input Content
# =============================================================================

class InputText(TypedDict):
    """Text part on an input message (``text`` and ``output_text`` map the same way)."""
    type: Literal["input_text", "text", "output_text"]
    text: str


class InputImage(TypedDict, total=False):
    """Image part: ``image_url`` is a data URI or a plain URL."""
    type: Literal["input_image"]
    image_url: str | dict[str, Any]
    url: str
    detail: Literal["low", "high", "auto"]


InputContent = Union[InputText, InputImage]


class InputMessageItem(TypedDict, total=False):
    """A conversation message supplied in ``input``."""
    type: Literal["message"]
    role: Role
    content: str | list[InputContent]


class FunctionCallOutputItem(TypedDict, total=False):
    """Result of a function call fed back to the model."""
    type: Literal["function_call_output"]
    call_id: str
    output: Any


InputItem = Union[InputMessageItem, FunctionCallOutputItem]


# =============================================================================
# Tools
# =============================================================================

class FunctionTool(TypedDict, total=False):
    """A callable function definition."""
    type: Literal["function"]
    name: str
    description: str
    parameters: dict[str, Any]
    strict: bool


class FunctionToolChoice(TypedDict):
    """Force a specific function."""
    type: Literal["function"]
    name: str


ToolChoice = Union[Literal["none", "auto", "required"], FunctionToolChoice]


class ReasoningConfig(TypedDict, total=False):
    effort: Literal["low", "medium", "high"]
    summary: str | None


# =============================================================================
# Request
# =============================================================================

class ResponseRequest(TypedDict, total=False):
    """Request body for POST /v1/responses."""
    model: str
    input: Union[str, list[InputItem]]
    instructions: str
    previous_response_id: str

    tools: list[FunctionTool]
    tool_choice: ToolChoice

    temperature: float
    top_p: float
    max_output_tokens: int

    reasoning: ReasoningConfig
    stream: bool
    metadata: dict[str, str]
    truncation: Literal["auto", "disabled"]


# =============================================================================
# Output
# =============================================================================

class OutputText(TypedDict, total=False):
    type: Literal["output_text"]
    text: str
    annotations: list[Any]


class MessageItem(TypedDict, total=False):
    """An assistant message in ``output``."""
    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    status: ItemStatus
    content: list[OutputText]


class FunctionCallItem(TypedDict, total=False):
    """A tool invocation requested by the model."""
    id: str
    type: Literal["function_call"]
    call_id: str
    name: str
    arguments: str  # JSON string
    status: ItemStatus


OutputItem = Union[MessageItem, FunctionCallItem]


class InputTokensDetails(TypedDict, total=False):
    cached_tokens: int


class OutputTokensDetails(TypedDict, total=False):
    reasoning_tokens: int


class ResponseUsage(TypedDict, total=False):
    """Token usage information for a response."""
    input_tokens: int
    output_tokens: int
    total_tokens: int
    input_tokens_details: InputTokensDetails
    output_tokens_details: OutputTokensDetails


class IncompleteDetails(TypedDict, total=False):
    reason: str


class ResponseError(TypedDict, total=False):
    type: str
    code: str
    message: str
    param: str


class ResponseObject(TypedDict, total=False):
    """Response object for POST /v1/responses and lifecycle events."""
    id: str
    object: Literal["response"]
    created_at: int
    status: ResponseStatus
    model: str
    output: list[OutputItem]
    parallel_tool_calls: bool

    # Echoed request configuration
    tool_choice: ToolChoice
    tools: list[FunctionTool]
    text: dict[str, Any]
    temperature: float
    top_p: float
    truncation: str
    metadata: dict[str, str]
    instructions: str
    previous_response_id: str

    usage: ResponseUsage
    reasoning: ReasoningConfig
    incomplete_details: IncompleteDetails
    error: ResponseError


# =============================================================================
# Streaming Event Types
# =============================================================================

class StreamEventBase(TypedDict):
    """Fields shared by every streamed event."""
    type: str
    sequence_number: int


class ResponseLifecycleEvent(StreamEventBase):
    """response.created / in_progress / completed / failed."""
    response: ResponseObject


class OutputItemEvent(StreamEventBase, total=False):
    """response.output_item.added / response.output_item.done."""
    output_index: int
    item: OutputItem


class ContentPartAddedEvent(StreamEventBase, total=False):
    item_id: str
    output_index: int
    content_index: int
    part: OutputText


class OutputTextEvent(StreamEventBase, total=False):
    """response.output_text.delta (``delta``) / response.output_text.done (``text``)."""
    item_id: str
    output_index: int
    content_index: int
    delta: str
    text: str


class ReasoningDeltaEvent(StreamEventBase, total=False):
    item_id: str | None
    delta: str


class FunctionCallArgumentsEvent(StreamEventBase, total=False):
    """response.function_call_arguments.delta / .done."""
    item_id: str
    output_index: int
    delta: str
    name: str
    call_id: str
    arguments: str


StreamEvent = Union[
    ResponseLifecycleEvent,
    OutputItemEvent,
    ContentPartAddedEvent,
    OutputTextEvent,
    ReasoningDeltaEvent,
    FunctionCallArgumentsEvent,
]


# =============================================================================
# Event Type Constants
# =============================================================================

EVENT_RESPONSE_CREATED = "response.created"
EVENT_RESPONSE_IN_PROGRESS = "response.in_progress"
EVENT_RESPONSE_COMPLETED = "response.completed"
EVENT_RESPONSE_FAILED = "response.failed"

EVENT_OUTPUT_ITEM_ADDED = "response.output_item.added"
EVENT_CONTENT_PART_ADDED = "response.content_part.added"
EVENT_OUTPUT_TEXT_DELTA = "response.output_text.delta"
EVENT_OUTPUT_TEXT_DONE = "response.output_text.done"
EVENT_REASONING_DELTA = "response.reasoning.delta"
EVENT_FUNCTION_CALL_ARGS_DELTA = "response.function_call_arguments.delta"
EVENT_FUNCTION_CALL_ARGS_DONE = "response.function_call_arguments.done"
EVENT_OUTPUT_ITEM_DONE = "response.output_item.done"
