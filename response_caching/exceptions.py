"""Error taxonomy for the caching layer.

- ConfigurationError: invalid registration options, raised at startup
- BackendError: the cache backend failed a get/set/delete

A conditional header that does not match is never an error; it is
simply a stale request.
"""

from __future__ import annotations


class CachingError(Exception):
    """Base exception for all caching failures."""


class ConfigurationError(CachingError, ValueError):
    """Registration options are invalid. Fatal, aborts registration."""


class BackendError(CachingError):
    """The cache backend failed while serving a store operation.

    The backend's own exception is preserved as ``__cause__``.
    """

    def __init__(self, operation: str, key: str, message: str) -> None:
        super().__init__(f"cache {operation} failed for key {key!r}: {message}")
        self.operation = operation
        self.key = key
