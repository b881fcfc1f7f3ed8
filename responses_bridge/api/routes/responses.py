"""Responses API endpoint backed by an Anthropic Messages upstream.

POST /v1/responses:
- Translates the Responses request to a Messages request
- Forwards it to the configured upstream
- Non-streaming: translates the complete reply back to a response object
- Streaming: re-emits upstream Messages events as Responses events
"""

import json
import logging
from typing import Any, Optional

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.requests import ClientDisconnect

from ...core import InvalidRequestError, Upstream, UpstreamError, dumps_json
from ...responses import (
    MessagesToResponsesStreamAdapter,
    build_error_response,
    message_to_response,
    responses_to_messages,
)
from ...responses.ids import IdGenerator

logger = logging.getLogger("responses-bridge")


class ResponsesJSONResponse(JSONResponse):
    """JSONResponse that keeps non-ASCII text and escapes lone surrogates."""

    def render(self, content: Any) -> bytes:
        return dumps_json(content, allow_nan=False, separators=(",", ":")).encode("utf-8")


def _error_response(
    message: str,
    *,
    error_type: str = "invalid_request",
    status_code: int = 400,
    code: Optional[str] = None,
    param: Optional[str] = None,
) -> ResponsesJSONResponse:
    return ResponsesJSONResponse(
        status_code=status_code,
        content=build_error_response(message, error_type=error_type, code=code, param=param),
    )


def _upstream_error_response(exc: UpstreamError) -> ResponsesJSONResponse:
    detail = exc.body.decode("utf-8", errors="replace") if exc.body else exc.message
    error_type = "server_error" if exc.status_code >= 500 else "invalid_request"
    return _error_response(
        detail,
        error_type=error_type,
        status_code=exc.status_code,
        code="upstream_error",
    )


async def _read_payload(request: Request) -> dict[str, Any]:
    body = await request.body()
    try:
        payload = json.loads(body or b"{}")
    except json.JSONDecodeError as exc:
        raise InvalidRequestError("Invalid JSON payload", code="invalid_json") from exc
    if not isinstance(payload, dict):
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_request_body"
        )
    return payload


async def responses_endpoint(request: Request) -> Response:
    """POST /v1/responses.

    Returns:
        JSONResponse for non-streaming, StreamingResponse for streaming
    """
    upstream: Upstream = request.app.state.upstream
    ids: Optional[IdGenerator] = getattr(request.app.state, "ids", None)

    try:
        payload = await _read_payload(request)
    except ClientDisconnect:
        logger.warning("Client disconnected before request body was fully read")
        return Response(status_code=499)
    except InvalidRequestError as exc:
        logger.error(f"Rejected Responses request: {exc.message}")
        return _error_response(exc.message, code=exc.code, param=exc.param)

    requested_model = payload.get("model")
    if not (isinstance(requested_model, str) and requested_model) and upstream.default_model:
        payload = {**payload, "model": upstream.default_model}

    messages_request = responses_to_messages(payload)
    model = messages_request["model"]
    is_stream = bool(messages_request.get("stream"))
    logger.info(
        "Responses request: model=%s stream=%s messages=%d tools=%d",
        model,
        is_stream,
        len(messages_request["messages"]),
        len(messages_request.get("tools", [])),
    )

    try:
        if is_stream:
            upstream_stream = await upstream.open_stream(messages_request)
        else:
            message = await upstream.create_message(messages_request)
    except UpstreamError as exc:
        return _upstream_error_response(exc)
    except httpx.HTTPError as exc:
        logger.error(f"Upstream request failed: {exc.__class__.__name__}: {exc}")
        return _error_response(
            f"Upstream request failed: {exc.__class__.__name__}",
            error_type="server_error",
            status_code=502,
            code="upstream_unavailable",
        )

    if not is_stream:
        return ResponsesJSONResponse(content=message_to_response(message, model, payload, ids=ids))

    adapter = MessagesToResponsesStreamAdapter(model, payload, ids=ids)
    return StreamingResponse(
        adapter.adapt_stream(upstream_stream.aiter_bytes()),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
