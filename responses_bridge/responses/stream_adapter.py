"""Stream adapter for converting Anthropic Messages SSE to Responses API events.

Messages Events:
    event: message_start
    data: {"type":"message_start","message":{...,"usage":{"input_tokens":5}}}

    event: content_block_start
    data: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}

    event: content_block_delta
    data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hi"}}

    event: content_block_stop
    data: {"type":"content_block_stop","index":0}

    event: message_stop
    data: {"type":"message_stop"}

Responses API Events:
    event: response.created
    data: {"type":"response.created","sequence_number":0,"response":{...}}

    event: response.output_text.delta
    data: {"type":"response.output_text.delta","delta":"Hi",...}

    event: response.completed
    data: {"type":"response.completed","response":{...}}

Each upstream event is translated on arrival. Nothing is buffered: the
adapter only remembers which block is open, the indices in use and the
arguments of the function call being streamed.
"""

import logging
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, AsyncIterator, Callable, Mapping, Optional, Union

from ..core.sse import SSEDecoder, SSEEvent, format_sse_event
from ..types.responses import (
    EVENT_CONTENT_PART_ADDED,
    EVENT_FUNCTION_CALL_ARGS_DELTA,
    EVENT_FUNCTION_CALL_ARGS_DONE,
    EVENT_OUTPUT_ITEM_ADDED,
    EVENT_OUTPUT_ITEM_DONE,
    EVENT_OUTPUT_TEXT_DELTA,
    EVENT_OUTPUT_TEXT_DONE,
    EVENT_REASONING_DELTA,
    EVENT_RESPONSE_COMPLETED,
    EVENT_RESPONSE_CREATED,
    EVENT_RESPONSE_FAILED,
    EVENT_RESPONSE_IN_PROGRESS,
    ResponseObject,
)
from .ids import IdGenerator, default_ids
from .translator import build_response_envelope, token_count

logger = logging.getLogger("responses-bridge")


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


# =============================================================================
# Stream State
# =============================================================================


@dataclass
class FunctionCallAccumulator:
    """A function call whose arguments are still streaming."""
    id: str
    call_id: Optional[str]
    name: Optional[str]
    arguments: str = ""


@dataclass(frozen=True)
class IdleBlock:
    """No content block is open."""
    type = None


@dataclass(frozen=True)
class TextBlock:
    type = "text"


@dataclass(frozen=True)
class ThinkingBlock:
    type = "thinking"


@dataclass
class ToolUseBlock:
    """An open tool_use block; the only state that carries an accumulator."""
    call: FunctionCallAccumulator
    type = "tool_use"


BlockState = Union[IdleBlock, TextBlock, ThinkingBlock, ToolUseBlock]


@dataclass
class StreamState:
    """Per-connection translation state.

    Attributes:
        response_id: Id reported on every lifecycle event.
        created_at: Creation timestamp (unix seconds).
        sequence_number: Number given to the next emitted event.
        current_item_index: Output index of the item most recently opened.
        current_content_index: Content index of the text part most recently opened.
        current_item_id: Id of the item most recently opened.
        message_item_id: Id of the assistant message item, once opened.
        message_output_index: Output index of the assistant message item.
        block: The currently open content block.
        usage: Latest usage counters seen on message_start/message_delta.
    """
    response_id: str
    created_at: int
    sequence_number: int = 0
    current_item_index: int = -1
    current_content_index: int = -1
    current_item_id: Optional[str] = None
    message_item_id: Optional[str] = None
    message_output_index: Optional[int] = None
    block: BlockState = field(default_factory=IdleBlock)
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def has_emitted_message_item(self) -> bool:
        return self.message_item_id is not None

    @property
    def current_block_type(self) -> Optional[str]:
        return self.block.type

    @property
    def current_function_call(self) -> Optional[FunctionCallAccumulator]:
        if isinstance(self.block, ToolUseBlock):
            return self.block.call
        return None

    def next_sequence_number(self) -> int:
        sequence_number = self.sequence_number
        self.sequence_number += 1
        return sequence_number


# =============================================================================
# Adapter
# =============================================================================


class MessagesToResponsesStreamAdapter:
    """Converts a Messages event stream into Responses API events.

    ``process_event`` is the translation step: one upstream event in, a list
    of zero or more Responses events out. ``adapt_stream`` wraps it for raw
    SSE bytes coming off the wire.
    """

    def __init__(
        self,
        model: str,
        original_request: Optional[Mapping[str, Any]] = None,
        ids: Optional[IdGenerator] = None,
        created_at: Optional[int] = None,
    ):
        """Initialize the stream adapter.

        Args:
            model: Model name reported on lifecycle events
            original_request: The Responses request, for echoing configuration
            ids: Identifier source (defaults to a random one)
            created_at: Creation timestamp override (unix seconds)
        """
        self.model = model
        self.original_request = original_request or {}
        self.ids = ids or default_ids
        self.state = StreamState(
            response_id=self.ids.response_id(),
            created_at=int(time.time()) if created_at is None else created_at,
        )
        self.finished = False

        self._handlers: dict[str, Callable[[Mapping[str, Any]], list[dict[str, Any]]]] = {
            "message_start": self._on_message_start,
            "content_block_start": self._on_content_block_start,
            "content_block_delta": self._on_content_block_delta,
            "content_block_stop": self._on_content_block_stop,
            "message_delta": self._on_message_delta,
            "message_stop": self._on_message_stop,
        }

    def process_event(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Translate one decoded Messages event.

        Unknown event types (ping, future additions) produce nothing and
        leave the state untouched.
        """
        if not isinstance(event, Mapping):
            logger.debug("StreamAdapter: Ignoring non-object event: %r", event)
            return []
        event_type = event.get("type")
        handler = self._handlers.get(event_type) if isinstance(event_type, str) else None
        if handler is None:
            logger.debug("StreamAdapter: Ignoring event type=%s", event_type)
            return []
        return handler(event)

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _on_message_start(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        self._record_usage(_mapping(event.get("message")).get("usage"))
        return [
            self._emit(EVENT_RESPONSE_CREATED, {"response": self._envelope("in_progress")}),
            self._emit(EVENT_RESPONSE_IN_PROGRESS, {"response": self._envelope("in_progress")}),
        ]

    def _on_content_block_start(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        state = self.state
        content_block = _mapping(event.get("content_block"))
        block_type = content_block.get("type")
        events: list[dict[str, Any]] = []

        if block_type == "text":
            if not state.has_emitted_message_item:
                state.current_item_index += 1
                state.message_item_id = self.ids.message_id()
                state.message_output_index = state.current_item_index
                state.current_item_id = state.message_item_id
                events.append(self._emit(EVENT_OUTPUT_ITEM_ADDED, {
                    "output_index": state.message_output_index,
                    "item": {
                        "type": "message",
                        "id": state.message_item_id,
                        "status": "in_progress",
                        "role": "assistant",
                        "content": [],
                    },
                }))

            state.current_content_index += 1
            events.append(self._emit(EVENT_CONTENT_PART_ADDED, {
                "item_id": state.message_item_id,
                "output_index": state.message_output_index,
                "content_index": state.current_content_index,
                "part": {"type": "output_text", "text": "", "annotations": []},
            }))
            state.block = TextBlock()

        elif block_type == "thinking":
            # Reasoning deltas are emitted without a part-added bracket
            state.block = ThinkingBlock()

        elif block_type == "tool_use":
            state.current_item_index += 1
            call = FunctionCallAccumulator(
                id=self.ids.function_call_id(),
                call_id=content_block.get("id"),
                name=content_block.get("name"),
            )
            state.current_item_id = call.id
            state.block = ToolUseBlock(call)
            events.append(self._emit(EVENT_OUTPUT_ITEM_ADDED, {
                "output_index": state.current_item_index,
                "item": self._function_call_item(call, "in_progress"),
            }))

        else:
            # redacted_thinking, server_tool_use, ... have no Responses counterpart
            logger.debug("StreamAdapter: Ignoring content block type=%s", block_type)
            state.block = IdleBlock()

        return events

    def _on_content_block_delta(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        state = self.state
        delta = _mapping(event.get("delta"))
        delta_type = delta.get("type")

        if delta_type == "text_delta":
            return [self._emit(EVENT_OUTPUT_TEXT_DELTA, {
                "item_id": state.message_item_id,
                "output_index": state.message_output_index,
                "content_index": state.current_content_index,
                "delta": _text(delta.get("text")),
            })]

        if delta_type == "thinking_delta":
            return [self._emit(EVENT_REASONING_DELTA, {
                "item_id": state.current_item_id,
                "delta": _text(delta.get("thinking")),
            })]

        if delta_type == "input_json_delta":
            call = state.current_function_call
            if call is None:
                logger.debug("StreamAdapter: input_json_delta without an open tool_use block")
                return []
            fragment = _text(delta.get("partial_json"))
            call.arguments += fragment
            return [self._emit(EVENT_FUNCTION_CALL_ARGS_DELTA, {
                "item_id": call.id,
                "output_index": state.current_item_index,
                "delta": fragment,
            })]

        # signature_delta, citations_delta, ...
        logger.debug("StreamAdapter: Ignoring delta type=%s", delta_type)
        return []

    def _on_content_block_stop(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        state = self.state
        block = state.block
        events: list[dict[str, Any]] = []

        if isinstance(block, TextBlock):
            # Accumulated text is not tracked, so the done event carries none
            events.append(self._emit(EVENT_OUTPUT_TEXT_DONE, {
                "item_id": state.message_item_id,
                "output_index": state.message_output_index,
                "content_index": state.current_content_index,
                "text": "",
            }))
        elif isinstance(block, ToolUseBlock):
            call = block.call
            events.append(self._emit(EVENT_FUNCTION_CALL_ARGS_DONE, {
                "item_id": call.id,
                "output_index": state.current_item_index,
                "name": call.name,
                "call_id": call.call_id,
                "arguments": call.arguments,
            }))
            events.append(self._emit(EVENT_OUTPUT_ITEM_DONE, {
                "output_index": state.current_item_index,
                "item": self._function_call_item(call, "completed"),
            }))

        state.block = IdleBlock()
        return events

    def _on_message_delta(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        self._record_usage(event.get("usage"))
        return []

    def _on_message_stop(self, event: Mapping[str, Any]) -> list[dict[str, Any]]:
        state = self.state
        events: list[dict[str, Any]] = []

        if state.has_emitted_message_item:
            events.append(self._emit(EVENT_OUTPUT_ITEM_DONE, {
                "output_index": state.message_output_index,
                "item": {
                    "type": "message",
                    "id": state.message_item_id,
                    "status": "completed",
                    "role": "assistant",
                    "content": [],
                },
            }))

        usage = _mapping(event.get("message")).get("usage")
        if not isinstance(usage, Mapping) or not usage:
            usage = state.usage
        input_tokens = token_count(usage.get("input_tokens"))
        output_tokens = token_count(usage.get("output_tokens"))
        response = self._envelope("completed")
        response["usage"] = {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
        }
        events.append(self._emit(EVENT_RESPONSE_COMPLETED, {"response": response}))
        self.finished = True
        return events

    def fail(self, error: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Build the terminal response.failed event for an upstream error."""
        error = _mapping(error)
        response = self._envelope("failed")
        response["error"] = {
            "type": "server_error",
            "code": error.get("type") or "upstream_error",
            "message": error.get("message") or "Upstream stream reported an error.",
        }
        self.finished = True
        return self._emit(EVENT_RESPONSE_FAILED, {"response": response})

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _emit(self, event_type: str, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "type": event_type,
            "sequence_number": self.state.next_sequence_number(),
            **data,
        }

    def _envelope(self, status: str) -> ResponseObject:
        return build_response_envelope(
            self.state.response_id,
            self.state.created_at,
            self.model,
            self.original_request,
            status,
        )

    def _record_usage(self, usage: Optional[Mapping[str, Any]]) -> None:
        if not isinstance(usage, Mapping):
            return
        for key in ("input_tokens", "output_tokens"):
            value = usage.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                self.state.usage[key] = value

    @staticmethod
    def _function_call_item(call: FunctionCallAccumulator, status: str) -> dict[str, Any]:
        return {
            "type": "function_call",
            "id": call.id,
            "call_id": call.call_id,
            "name": call.name,
            "arguments": call.arguments,
            "status": status,
        }

    # -------------------------------------------------------------------------
    # Wire-level streaming
    # -------------------------------------------------------------------------

    async def adapt_stream(self, upstream: AsyncGenerator[bytes, None]) -> AsyncIterator[bytes]:
        """Transform a raw Messages SSE byte stream into Responses SSE bytes.

        Stops after the terminal event and closes ``upstream`` as soon as
        it does. If upstream ends without message_stop, no terminal event
        is produced.

        Args:
            upstream: The incoming Messages SSE stream

        Yields:
            Responses API SSE events as bytes
        """
        decoder = SSEDecoder()
        async with aclosing(upstream):
            async for chunk in upstream:
                for sse_event in decoder.feed(chunk):
                    for out in self._process_sse_event(sse_event):
                        yield format_sse_event(out).encode("utf-8")
                    if self.finished:
                        return

        trailing = decoder.flush()
        if trailing is not None:
            for out in self._process_sse_event(trailing):
                yield format_sse_event(out).encode("utf-8")

        if not self.finished:
            logger.warning(
                "StreamAdapter: Upstream ended without message_stop (response_id=%s)",
                self.state.response_id,
            )

    def _process_sse_event(self, sse_event: SSEEvent) -> list[dict[str, Any]]:
        data = sse_event.json()
        if data is None:
            return []
        if data.get("type") == "error":
            logger.error("StreamAdapter: Upstream error event: %s", data.get("error"))
            return [self.fail(data.get("error"))]
        return self.process_event(data)
