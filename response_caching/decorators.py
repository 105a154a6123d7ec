"""Per-request response decorators.

Route handlers record caching intent on the cycle's ResponseDecorators:

    @app.get("/items/{item_id}")
    async def read_item(item_id: int, caching: ResponseDecorators = Depends(response_decorators)):
        caching.etag(f"item-{item_id}").expires(tomorrow)
        return {...}

Nothing here touches headers or the store. CachingMiddleware reads the
recorded intent when the response starts.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from email.utils import format_datetime

from starlette.requests import Request

STATE_KEY = "response_caching"


def format_http_date(value: datetime) -> str:
    """Render value as an RFC 1123 date in GMT. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


class ResponseDecorators:
    """Caching intent recorded for a single request-response cycle."""

    def __init__(self, default_ttl_ms: int) -> None:
        self._default_ttl_ms = default_ttl_ms
        self._etag_requested = False
        self._tag: str | None = None
        self._ttl_ms: int | None = None
        self._expires_touched = False
        self._expires: str | None = None
        self._sealed = False

    def etag(self, value: str | None = None, ttl: float | None = None) -> ResponseDecorators:
        """Attach an ETag to the response.

        Args:
            value: Explicit tag, used verbatim. None or "" generates a tag
                from the response body.
            ttl: Lifetime of the stored tag in milliseconds, rounded up to a
                whole millisecond. Defaults to the installation's
                etag_max_life_ms.

        Returns:
            self, for chaining. The last call wins for both tag and ttl.
        """
        self._ensure_open()
        if ttl is not None and (isinstance(ttl, bool) or ttl <= 0):
            raise ValueError(f"etag ttl must be a positive number of milliseconds, got {ttl!r}")
        self._etag_requested = True
        self._tag = value or None
        self._ttl_ms = math.ceil(ttl) if ttl is not None else None
        return self

    def expires(self, date: datetime | str | None = None) -> ResponseDecorators:
        """Set the Expires header; a missing or falsy value removes it."""
        self._ensure_open()
        self._expires_touched = True
        if not date:
            self._expires = None
        elif isinstance(date, datetime):
            self._expires = format_http_date(date)
        else:
            self._expires = str(date)
        return self

    @property
    def etag_requested(self) -> bool:
        return self._etag_requested

    @property
    def explicit_tag(self) -> str | None:
        return self._tag

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms if self._ttl_ms is not None else self._default_ttl_ms

    @property
    def expires_touched(self) -> bool:
        return self._expires_touched

    @property
    def expires_value(self) -> str | None:
        return self._expires

    def seal(self) -> None:
        """Freeze intent once the response has started."""
        self._sealed = True

    def _ensure_open(self) -> None:
        if self._sealed:
            raise RuntimeError("Caching intent cannot change after the response has started")


def response_decorators(request: Request) -> ResponseDecorators:
    """FastAPI dependency returning the current cycle's decorators."""
    decorators = getattr(request.state, STATE_KEY, None)
    if decorators is None:
        raise RuntimeError("Response caching is not installed on this application")
    return decorators
