"""Translation between the Responses API and the Anthropic Messages API.

This module handles:
1. Converting Responses API requests to Messages requests
2. Converting complete Messages responses to Responses API objects
3. Tool definition and tool_choice translation
4. Thinking budget selection for reasoning-capable models

Key mappings:
- instructions + system/developer input messages -> top-level ``system``
- input_text/text/output_text parts -> text blocks
- input_image parts -> image blocks (base64 for data URIs, url otherwise)
- function_call_output items -> user turns carrying a tool_result block
- text/thinking/tool_use blocks -> output_text parts, reasoning, function_call items

Nothing here raises on odd input: unknown parts, items and tool_choice shapes
are dropped and logged at debug level.
"""

import json
import logging
import math
import re
import time
from typing import Any, Mapping, Optional

from ..types.messages import (
    MessageParam,
    MessagesRequest,
    RequestContentBlock,
    ToolChoiceParam,
    ToolParam,
)
from ..types.responses import (
    FunctionCallItem,
    MessageItem,
    OutputItem,
    OutputText,
    ResponseObject,
    ResponseUsage,
)
from .ids import IdGenerator, default_ids

logger = logging.getLogger("responses-bridge")

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 4096

THINKING_BUDGETS = {"high": 20000, "low": 5000}
DEFAULT_THINKING_BUDGET = 10000

_TEXT_PART_TYPES = ("input_text", "text", "output_text")
_SYSTEM_ROLES = ("system", "developer")
_DATA_URI_RE = re.compile(r"^data:([^;]+);base64,(.+)$")
_GEMINI_VERSION_RE = re.compile(r"gemini-(\d+)")


# =============================================================================
# Responses API -> Messages
# =============================================================================


def _convert_image_part(part: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Convert an input_image part to a Messages image block.

    ``data:<mime>;base64,<payload>`` URIs become inline base64 sources, any
    other non-empty URL is kept as a url source. Malformed data URIs and empty
    URLs yield None.
    """
    image_url = part.get("image_url") or part.get("url") or ""
    if isinstance(image_url, Mapping):
        image_url = image_url.get("url") or ""
    if not isinstance(image_url, str) or not image_url:
        return None

    if image_url.startswith("data:"):
        match = _DATA_URI_RE.match(image_url)
        if not match:
            logger.debug("Dropping input_image with malformed data URI")
            return None
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": match.group(1),
                "data": match.group(2),
            },
        }

    return {"type": "image", "source": {"type": "url", "url": image_url}}


def _convert_content_parts(parts: list[Any]) -> list[RequestContentBlock]:
    blocks: list[RequestContentBlock] = []
    for part in parts:
        if not isinstance(part, Mapping):
            continue
        part_type = part.get("type")
        if part_type in _TEXT_PART_TYPES:
            blocks.append({"type": "text", "text": part.get("text", "")})
        elif part_type == "input_image":
            image = _convert_image_part(part)
            if image is not None:
                blocks.append(image)
        else:
            # input_file, input_audio, refusal, ... have no Messages equivalent here
            logger.debug("Dropping unsupported content part type=%s", part_type)
    return blocks


def collapse_content(content: Any) -> Any:
    """Collapse a block list holding exactly one text block to a bare string."""
    if (
        isinstance(content, list)
        and len(content) == 1
        and content[0].get("type") == "text"
    ):
        return content[0]["text"]
    return content


def _convert_input_message(item: Mapping[str, Any]) -> MessageParam:
    """Convert a non-system input message item to a Messages message."""
    role = "assistant" if item.get("role") == "assistant" else "user"
    raw_content = item.get("content")

    content: Any
    if isinstance(raw_content, list):
        content = _convert_content_parts(raw_content)
    elif isinstance(raw_content, str):
        content = raw_content
    else:
        content = []

    return {"role": role, "content": collapse_content(content)}


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def extract_text(content: Any) -> str:
    """Flatten system/developer message content to plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            _as_text(part.get("text"))
            for part in content
            if isinstance(part, Mapping) and part.get("type") in ("input_text", "text")
        )
    return ""


def _convert_tools(tools: Any) -> list[ToolParam]:
    """Keep function tools only, mapping them to Messages tool definitions."""
    if not isinstance(tools, list):
        return []

    converted: list[ToolParam] = []
    for tool in tools:
        if not isinstance(tool, Mapping) or tool.get("type") != "function":
            # web_search, file_search, computer_use ... are not forwarded
            logger.debug("Dropping non-function tool: %r", tool)
            continue
        converted.append({
            "name": tool.get("name"),
            "description": tool.get("description") or "",
            "input_schema": tool.get("parameters") or {"type": "object"},
        })
    return converted


def convert_tool_choice(tool_choice: Any) -> Optional[ToolChoiceParam]:
    """Convert a Responses tool_choice to the Messages form.

    Responses: "auto" | "none" | "required" | {"type": "function", "name": "..."}
    Messages: {"type": "auto"|"none"|"any"} | {"type": "tool", "name": "..."}

    Any other shape returns None, meaning no tool_choice is sent.
    """
    if tool_choice == "auto":
        return {"type": "auto"}
    if tool_choice == "none":
        return {"type": "none"}
    if tool_choice == "required":
        return {"type": "any"}
    if isinstance(tool_choice, Mapping) and tool_choice.get("name"):
        return {"type": "tool", "name": tool_choice["name"]}

    if tool_choice:
        logger.debug("Ignoring unsupported tool_choice: %r", tool_choice)
    return None


def is_thinking_model(model: Any) -> bool:
    """Return True for model ids that reason by default.

    Matches ids containing "thinking" and gemini-N ids with N >= 3.
    """
    model_lower = model.lower() if isinstance(model, str) else ""
    if "thinking" in model_lower:
        return True
    match = _GEMINI_VERSION_RE.search(model_lower)
    return bool(match) and int(match.group(1)) >= 3


def thinking_budget(reasoning: Any) -> int:
    effort = reasoning.get("effort") if isinstance(reasoning, Mapping) else None
    if not isinstance(effort, str):
        return DEFAULT_THINKING_BUDGET
    return THINKING_BUDGETS.get(effort, DEFAULT_THINKING_BUDGET)


def responses_to_messages(payload: Mapping[str, Any]) -> MessagesRequest:
    """Translate a Responses API request to a Messages request.

    Handles:
    - String or item-list ``input``
    - instructions and system/developer messages -> ``system``
    - function_call_output items -> tool_result blocks
    - Tools, tool_choice and thinking budget

    Args:
        payload: Responses API request body

    Returns:
        Messages API request body
    """
    model = payload.get("model")
    if not isinstance(model, str):
        model = None
    input_ = payload.get("input")

    messages: list[MessageParam] = []
    system = payload.get("instructions") or None

    if isinstance(input_, str):
        messages.append({"role": "user", "content": input_})
    elif isinstance(input_, list):
        for item in input_:
            if not isinstance(item, Mapping):
                continue
            item_type = item.get("type")

            if item_type == "message":
                if item.get("role") in _SYSTEM_ROLES:
                    text = extract_text(item.get("content"))
                    system = f"{system}\n\n{text}" if system else text
                else:
                    messages.append(_convert_input_message(item))

            elif item_type == "function_call_output":
                messages.append({
                    "role": "user",
                    "content": [{
                        "type": "tool_result",
                        "tool_use_id": item.get("call_id"),
                        "content": item.get("output"),
                    }],
                })

            else:
                # function_call, reasoning, item_reference ... are not replayed
                logger.debug("Dropping unsupported input item type=%s", item_type)

    result: MessagesRequest = {
        "model": model or DEFAULT_MODEL,
        "messages": messages,
        "max_tokens": payload.get("max_output_tokens") or DEFAULT_MAX_TOKENS,
        "stream": bool(payload.get("stream") or False),
    }

    if system:
        result["system"] = system

    for param in ("temperature", "top_p"):
        if payload.get(param) is not None:
            result[param] = payload[param]

    tools = _convert_tools(payload.get("tools"))
    if tools:
        result["tools"] = tools

    tool_choice = convert_tool_choice(payload.get("tool_choice"))
    if tool_choice is not None:
        result["tool_choice"] = tool_choice

    reasoning = payload.get("reasoning")
    if is_thinking_model(model) or reasoning is not None:
        result["thinking"] = {
            "type": "enabled",
            "budget_tokens": thinking_budget(reasoning),
        }

    return result


# =============================================================================
# Messages -> Responses API
# =============================================================================


def _get_or_default(mapping: Mapping[str, Any], key: str, default: Any) -> Any:
    value = mapping.get(key)
    return default if value is None else value


def build_response_envelope(
    response_id: str,
    created_at: int,
    model: str,
    original_request: Mapping[str, Any],
    status: str,
) -> ResponseObject:
    """Build the response object skeleton with echoed request configuration.

    Defaults: tool_choice "auto", tools [], temperature 1.0, top_p 1.0,
    truncation "disabled", metadata {}.
    """
    return {
        "id": response_id,
        "object": "response",
        "created_at": created_at,
        "status": status,
        "model": model,
        "output": [],
        "parallel_tool_calls": True,
        "tool_choice": original_request.get("tool_choice") or "auto",
        "tools": original_request.get("tools") or [],
        "temperature": _get_or_default(original_request, "temperature", 1.0),
        "top_p": _get_or_default(original_request, "top_p", 1.0),
        "truncation": original_request.get("truncation") or "disabled",
        "metadata": original_request.get("metadata") or {},
    }


def token_count(value: Any) -> int:
    """Return a usage counter, or 0 when it is missing or not an integer."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def convert_usage(usage: Optional[Mapping[str, Any]], reasoning_text: Optional[str] = None) -> ResponseUsage:
    """Convert Messages usage to Responses usage.

    Reasoning tokens are estimated as one token per four characters of
    thinking text, since the Messages API does not report them separately.
    """
    if not isinstance(usage, Mapping):
        usage = {}
    input_tokens = token_count(usage.get("input_tokens"))
    output_tokens = token_count(usage.get("output_tokens"))
    return {
        "input_tokens": input_tokens,
        "input_tokens_details": {
            "cached_tokens": token_count(usage.get("cache_read_input_tokens")),
        },
        "output_tokens": output_tokens,
        "output_tokens_details": {
            "reasoning_tokens": math.ceil(len(reasoning_text) / 4) if isinstance(reasoning_text, str) else 0,
        },
        "total_tokens": input_tokens + output_tokens,
    }


def message_to_response(
    message: Mapping[str, Any],
    model: str,
    original_request: Optional[Mapping[str, Any]] = None,
    ids: Optional[IdGenerator] = None,
    created_at: Optional[int] = None,
) -> ResponseObject:
    """Translate a complete Messages response to a Responses API object.

    Args:
        message: Messages API response body
        model: Model name to report
        original_request: The Responses request, for echoing configuration
        ids: Identifier source (defaults to a random one)
        created_at: Creation timestamp override (unix seconds)

    Returns:
        Responses API response object
    """
    if not isinstance(message, Mapping):
        logger.debug("Treating non-object Messages reply as empty: %r", message)
        message = {}
    original_request = original_request or {}
    ids = ids or default_ids

    output: list[OutputItem] = []
    message_content: list[OutputText] = []
    reasoning_text: Optional[str] = None

    content = message.get("content")
    if not isinstance(content, list):
        content = []

    for block in content:
        if not isinstance(block, Mapping):
            logger.debug("Dropping non-object content block: %r", block)
            continue
        block_type = block.get("type")
        if block_type == "text":
            message_content.append({
                "type": "output_text",
                "text": block.get("text", ""),
                "annotations": [],
            })
        elif block_type == "thinking":
            # Last one wins
            thinking = block.get("thinking")
            reasoning_text = thinking if isinstance(thinking, str) else None
        elif block_type == "tool_use":
            function_call: FunctionCallItem = {
                "type": "function_call",
                "id": ids.function_call_id(),
                "call_id": block.get("id"),
                "name": block.get("name"),
                "arguments": json.dumps(
                    block.get("input") or {}, ensure_ascii=False, separators=(",", ":")
                ),
                "status": "completed",
            }
            output.append(function_call)
        else:
            logger.debug("Dropping unsupported content block type=%s", block_type)

    if message_content or not output:
        message_item: MessageItem = {
            "type": "message",
            "id": ids.message_id(),
            "status": "completed",
            "role": "assistant",
            "content": message_content,
        }
        output.insert(0, message_item)

    response = build_response_envelope(
        ids.response_id(),
        int(time.time()) if created_at is None else created_at,
        model,
        original_request,
        "completed",
    )
    response["output"] = output
    response["text"] = {"format": {"type": "text"}}
    response["usage"] = convert_usage(message.get("usage"), reasoning_text)

    if message.get("stop_reason") == "max_tokens":
        response["status"] = "incomplete"
        response["incomplete_details"] = {"reason": "max_output_tokens"}

    if reasoning_text:
        reasoning = original_request.get("reasoning")
        effort = reasoning.get("effort") if isinstance(reasoning, Mapping) else None
        response["reasoning"] = {"effort": effort or "medium", "summary": None}

    if original_request.get("instructions"):
        response["instructions"] = original_request["instructions"]
    if original_request.get("previous_response_id"):
        response["previous_response_id"] = original_request["previous_response_id"]

    return response


def build_error_response(
    message: str,
    error_type: str = "server_error",
    code: Optional[str] = None,
    param: Optional[str] = None,
) -> dict[str, Any]:
    """Build a Responses-style error body."""
    error: dict[str, Any] = {"type": error_type, "message": message}
    if code:
        error["code"] = code
    if param:
        error["param"] = param
    return {"error": error}
