"""Cache-Control rendering from a declarative privacy policy.

The policy is fixed at registration time, so the header value is rendered
once and reused for every response of the installation.

Rendering rules:
- no-store  -> "no-store[, max-age=N]"
- no-cache  -> "no-cache" (expiry windows ignored)
- private   -> "private[, max-age=N]" (s-maxage never emitted)
- public    -> "public[, max-age=N[, s-maxage=M]]"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from response_caching.exceptions import ConfigurationError


class Privacy(StrEnum):
    PRIVATE = "private"
    PUBLIC = "public"
    NOCACHE = "no-cache"
    NOSTORE = "no-store"

    @classmethod
    def parse(cls, value: Privacy | str) -> Privacy:
        """Return the Privacy member for value, or raise ConfigurationError."""
        try:
            return cls(value)
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown privacy value {value!r}; expected one of: {allowed}"
            ) from exc


@dataclass(frozen=True)
class PolicyConfig:
    """Visibility plus optional client (max-age) and shared-cache (s-maxage) windows."""

    visibility: Privacy = Privacy.NOCACHE
    client_expires_in: int | None = None
    server_expires_in: int | None = None

    def __post_init__(self) -> None:
        # Coerce raw strings so callers may pass "no-store" directly
        object.__setattr__(self, "visibility", Privacy.parse(self.visibility))
        for name in ("client_expires_in", "server_expires_in"):
            value = getattr(self, name)
            if value is not None and (isinstance(value, bool) or value < 0):
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")


def render_cache_control(config: PolicyConfig) -> str:
    """Render the Cache-Control header value for config."""
    directives: list[str] = [config.visibility.value]

    match config.visibility:
        case Privacy.NOCACHE:
            pass
        case Privacy.NOSTORE | Privacy.PRIVATE:
            if config.client_expires_in is not None:
                directives.append(f"max-age={config.client_expires_in}")
        case Privacy.PUBLIC:
            if config.client_expires_in is not None:
                directives.append(f"max-age={config.client_expires_in}")
                if config.server_expires_in is not None:
                    directives.append(f"s-maxage={config.server_expires_in}")
        case _:
            raise ConfigurationError(f"Unsupported privacy value {config.visibility!r}")

    return ", ".join(directives)
