"""Telemetry package: structured logging setup."""

from __future__ import annotations

from response_caching.telemetry.logging import configure_logging, configure_logging_from_settings

__all__ = ["configure_logging", "configure_logging_from_settings"]
