"""Identifier generation for response, message and function-call items."""

import secrets
from typing import Callable, Optional

RandomBytes = Callable[[int], bytes]


class IdGenerator:
    """Builds prefixed hex identifiers from a random-byte source.

    The source is injectable so tests can produce deterministic ids.
    """

    def __init__(self, random_bytes: Optional[RandomBytes] = None) -> None:
        self._random_bytes = random_bytes or secrets.token_bytes

    def _token(self, prefix: str, size: int) -> str:
        return f"{prefix}{self._random_bytes(size).hex()}"

    def response_id(self) -> str:
        return self._token("resp_", 12)

    def message_id(self) -> str:
        return self._token("msg_", 8)

    def function_call_id(self) -> str:
        return self._token("fc_", 8)


default_ids = IdGenerator()
