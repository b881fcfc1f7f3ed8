"""SSE (Server-Sent Events) framing: encoding outbound events, decoding upstream ones."""

import codecs
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

logger = logging.getLogger("responses-bridge")

_LONE_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")


def dumps_json(obj: Any, **kwargs: Any) -> str:
    """JSON-encode without escaping non-ASCII text.

    Lone surrogates (valid in decoded JSON but not encodable as UTF-8) are
    written as \\uXXXX escapes, so the result always encodes to UTF-8.
    """
    text = json.dumps(obj, ensure_ascii=False, **kwargs)
    return _LONE_SURROGATE_RE.sub(lambda m: f"\\u{ord(m.group()):04x}", text)


def format_sse_event(event: Mapping[str, Any]) -> str:
    """Serialize one Responses stream event into its wire block.

    Produces ``event: <type>``, ``data: <json>`` and a blank line.
    """
    json_str = dumps_json(event)
    return f"event: {event.get('type')}\ndata: {json_str}\n\n"


@dataclass
class SSEEvent:
    """One decoded SSE block from the upstream stream."""
    event: Optional[str] = None
    data: Optional[str] = None
    other_lines: list[str] = field(default_factory=list)

    def json(self) -> Optional[dict[str, Any]]:
        """Parse ``data`` as a JSON object; None for empty, invalid or non-object data."""
        if not self.data:
            return None
        try:
            parsed = json.loads(self.data)
        except json.JSONDecodeError:
            logger.debug("SSE: Failed to parse data: %s", self.data[:100])
            return None
        return parsed if isinstance(parsed, dict) else None

    def encode(self) -> bytes:
        lines: list[str] = list(self.other_lines)
        if self.event is not None:
            lines.append(f"event: {self.event}")
        if self.data is not None:
            lines.extend(f"data: {item}" if item else "data:" for item in self.data.split("\n"))
        return ("\n".join(lines) + "\n\n").encode("utf-8")


class SSEDecoder:
    """Incremental SSE decoder.

    Chunks may split events (and multi-byte characters) at arbitrary byte
    boundaries; complete events are returned as soon as their blank-line
    terminator arrives.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        if not chunk:
            return []
        self._buffer += self._decoder.decode(chunk)
        self._buffer = self._buffer.replace("\r\n", "\n")
        events: list[SSEEvent] = []

        while True:
            sep_index = self._buffer.find("\n\n")
            if sep_index == -1:
                break
            raw_event = self._buffer[:sep_index]
            self._buffer = self._buffer[sep_index + 2:]
            if not raw_event.strip():
                continue
            events.append(self._parse_event(raw_event))

        return events

    def flush(self) -> Optional[SSEEvent]:
        """Return a trailing event that was never terminated by a blank line."""
        leftover = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if not leftover.strip():
            return None
        return self._parse_event(leftover.replace("\r\n", "\n"))

    @staticmethod
    def _parse_event(raw: str) -> SSEEvent:
        event_name: Optional[str] = None
        data_lines: list[str] = []
        other_lines: list[str] = []
        for line in raw.split("\n"):
            if line.startswith("data:"):
                data_lines.append(line[5:].lstrip())
            elif line.startswith("event:"):
                event_name = line[6:].strip()
            elif line:
                other_lines.append(line)
        data = "\n".join(data_lines) if data_lines else None
        return SSEEvent(event=event_name, data=data, other_lines=other_lines)
