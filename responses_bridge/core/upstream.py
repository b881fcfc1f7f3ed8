"""Anthropic Messages upstream configuration and HTTP calls."""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from .exceptions import ConfigurationError, UpstreamError
from .sse import dumps_json

logger = logging.getLogger("responses-bridge")

DEFAULT_TIMEOUT = 600
DEFAULT_ANTHROPIC_VERSION = "2023-06-01"

_REDACTED_HEADERS = {"x-api-key", "authorization"}


@dataclass
class Upstream:
    """The Messages API endpoint requests are forwarded to.

    ``transport`` lets tests and in-process deployments swap the network for
    an ``httpx.MockTransport`` or an ASGI app.
    """

    base_url: str
    api_key: str = ""
    anthropic_version: str = DEFAULT_ANTHROPIC_VERSION
    timeout: Optional[float] = DEFAULT_TIMEOUT
    default_model: Optional[str] = None
    transport: Optional[httpx.AsyncBaseTransport] = None

    @property
    def messages_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/messages"

    def build_headers(self, stream: bool = False) -> dict[str, str]:
        headers = {
            "content-type": "application/json",
            "anthropic-version": self.anthropic_version,
            "accept": "text/event-stream" if stream else "application/json",
        }
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    def _client(self, timeout: httpx.Timeout | float | None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self.transport, follow_redirects=True)

    async def create_message(self, body: Mapping[str, Any]) -> dict[str, Any]:
        """POST a non-streaming Messages request and return the decoded reply.

        Raises:
            UpstreamError: On a non-2xx status or a non-JSON body.
            httpx.HTTPError: On transport failures.
        """
        url = self.messages_url
        logger.debug("Sending Messages request to %s", url)
        async with self._client(self.timeout) as client:
            resp = await client.post(url, headers=self.build_headers(), content=_encode(body))

        if resp.status_code >= 400:
            logger.error("Upstream returned status %s: %s", resp.status_code, resp.text[:500])
            raise UpstreamError(
                f"Upstream returned status {resp.status_code}",
                status_code=resp.status_code,
                body=resp.content,
            )
        try:
            return resp.json()
        except json.JSONDecodeError as exc:
            raise UpstreamError(
                "Upstream returned invalid JSON", status_code=502, body=resp.content
            ) from exc

    async def open_stream(self, body: Mapping[str, Any]) -> "UpstreamStream":
        """Start a streaming Messages request.

        The status is checked before returning so callers can still answer
        with a plain error response.

        Raises:
            UpstreamError: On a non-2xx status.
            httpx.HTTPError: On transport failures.
        """
        url = self.messages_url
        stream_timeout = httpx.Timeout(
            connect=self.timeout, read=None, write=self.timeout, pool=self.timeout
        )
        client = self._client(stream_timeout)
        try:
            request = client.build_request(
                "POST", url, headers=self.build_headers(stream=True), content=_encode(body)
            )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "Sending streaming request to %s, headers=%s",
                    url,
                    {k: v for k, v in request.headers.items() if k.lower() not in _REDACTED_HEADERS},
                )
            resp = await client.send(request, stream=True)
        except Exception as exc:
            logger.error(f"Failed to send streaming request to {url}: {exc} (type: {exc.__class__.__name__})")
            await client.aclose()
            raise

        if resp.status_code >= 400:
            content = await resp.aread()
            await resp.aclose()
            await client.aclose()
            logger.error("Upstream returned status %s: %s", resp.status_code, content[:500])
            raise UpstreamError(
                f"Upstream returned status {resp.status_code}",
                status_code=resp.status_code,
                body=content,
            )

        return UpstreamStream(client, resp)


class UpstreamStream:
    """An open streaming response; ``aiter_bytes`` closes it when exhausted."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response) -> None:
        self.client = client
        self.response = response
        self._closed = False

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.response.aclose()
        await self.client.aclose()


def _encode(body: Mapping[str, Any]) -> bytes:
    return dumps_json(body).encode("utf-8")


def _to_float(value: Any, default: Optional[float]) -> Optional[float]:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid upstream timeout %r, using %s", value, default)
        return default


def build_upstream(
    config: Mapping[str, Any],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Upstream:
    """Build the upstream from the ``upstream`` section of the config.

    Raises:
        ConfigurationError: If the section or its base_url is missing.
    """
    section = config.get("upstream")
    if not isinstance(section, Mapping):
        raise ConfigurationError("Missing 'upstream' section in config")
    base_url = section.get("base_url")
    if not base_url:
        raise ConfigurationError("Missing 'upstream.base_url' in config")

    return Upstream(
        base_url=str(base_url),
        api_key=str(section.get("api_key") or ""),
        anthropic_version=str(section.get("anthropic_version") or DEFAULT_ANTHROPIC_VERSION),
        timeout=_to_float(section.get("timeout"), DEFAULT_TIMEOUT),
        default_model=section.get("default_model"),
        transport=transport,
    )
