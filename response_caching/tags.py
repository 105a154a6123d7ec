"""Entity tag generation.

Generated tags are weak (``W/"..."``): they identify the bytes a handler
produced, not a semantic version of the resource. Tags are stable for
identical payloads within one process; nothing promises stability across
restarts if the salt changes.
"""

from __future__ import annotations

import hashlib

_DIGEST_LENGTH = 32


class TagGenerator:
    """Derive ETags from response payloads."""

    def __init__(self, salt: bytes = b"") -> None:
        self._salt = salt

    def generate(self, payload: bytes | str) -> str:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        digest = hashlib.sha256(self._salt + payload).hexdigest()[:_DIGEST_LENGTH]
        return f'W/"{digest}"'

    def resolve(self, explicit: str | None, payload: bytes | str) -> str:
        """Return explicit verbatim when non-empty, else a tag generated from payload.

        An empty explicit value still yields a usable header, never "".
        """
        if explicit:
            return explicit
        return self.generate(payload)
