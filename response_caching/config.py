"""
Configuration via pydantic-settings.

CachingSettings supplies process-wide defaults from the environment (or a
.env file in dev), all prefixed with RESPONSE_CACHING_. CachingOptions is
the validated, per-registration view: settings defaults merged with the
keyword options passed to install_caching().
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from response_caching.exceptions import ConfigurationError
from response_caching.policy import PolicyConfig, Privacy

DEFAULT_EXPIRES_IN = 300
DEFAULT_ETAG_MAX_LIFE_MS = 3_600_000
DEFAULT_CACHE_SEGMENT = "response-caching"


class CachingSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RESPONSE_CACHING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Policy
    # ------------------------------------------------------------------ #
    privacy: Privacy = Field(
        default=Privacy.NOCACHE,
        description="Visibility directive for Cache-Control",
    )
    expires_in: int | None = Field(
        default=DEFAULT_EXPIRES_IN,
        ge=0,
        description="Client max-age in seconds; unset to omit max-age",
    )
    server_expires_in: int | None = Field(
        default=None,
        ge=0,
        description="Shared-cache s-maxage in seconds (public only)",
    )

    # ------------------------------------------------------------------ #
    # Tag store
    # ------------------------------------------------------------------ #
    etag_max_life_ms: int = Field(
        default=DEFAULT_ETAG_MAX_LIFE_MS,
        gt=0,
        description="Default lifetime of a stored tag in milliseconds",
    )
    cache_segment: str = Field(
        default=DEFAULT_CACHE_SEGMENT,
        min_length=1,
        description="Key namespace for stored tags",
    )
    compare_outgoing_tag: bool = Field(
        default=False,
        description=(
            "Also compare If-None-Match with the tag attached at body "
            "finalization, not only with tags found in the store"
        ),
    )
    redis_url: str = Field(
        default="",
        description="Redis URL for the default backend; empty selects in-memory",
    )

    # ------------------------------------------------------------------ #
    # Logging
    # ------------------------------------------------------------------ #
    json_logs: bool = False
    log_level: str = "INFO"


class CachingOptions(BaseModel):
    """Validated registration options for one installation."""

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    privacy: Privacy = Privacy.NOCACHE
    expires_in: int | None = Field(default=DEFAULT_EXPIRES_IN, ge=0)
    server_expires_in: int | None = Field(default=None, ge=0)
    etag_max_life_ms: int = Field(default=DEFAULT_ETAG_MAX_LIFE_MS, gt=0)
    cache_segment: str = Field(default=DEFAULT_CACHE_SEGMENT, min_length=1)
    compare_outgoing_tag: bool = False
    cache: Any = None

    @classmethod
    def build(cls, settings: CachingSettings, overrides: dict[str, Any]) -> CachingOptions:
        """Merge settings defaults with overrides, raising ConfigurationError on bad input."""
        defaults = settings.model_dump(
            include={
                "privacy",
                "expires_in",
                "server_expires_in",
                "etag_max_life_ms",
                "cache_segment",
                "compare_outgoing_tag",
            }
        )
        try:
            return cls.model_validate({**defaults, **overrides})
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid caching options: {exc}") from exc

    def policy(self) -> PolicyConfig:
        return PolicyConfig(
            visibility=self.privacy,
            client_expires_in=self.expires_in,
            server_expires_in=self.server_expires_in,
        )


@lru_cache(maxsize=1)
def get_settings() -> CachingSettings:
    """Return cached settings singleton.

    Raises ConfigurationError when the environment holds invalid values.
    """
    try:
        return CachingSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid caching settings: {exc}") from exc
