"""Tests for CachingSettings, CachingOptions and logging setup."""

from __future__ import annotations

import pytest
import structlog

from response_caching.config import CachingOptions, get_settings
from response_caching.exceptions import ConfigurationError
from response_caching.policy import Privacy
from response_caching.telemetry import configure_logging, configure_logging_from_settings


class TestCachingSettings:
    def test_defaults(self, settings):
        assert settings.privacy is Privacy.NOCACHE
        assert settings.expires_in == 300
        assert settings.server_expires_in is None
        assert settings.etag_max_life_ms == 3_600_000
        assert settings.cache_segment == "response-caching"
        assert settings.compare_outgoing_tag is False
        assert settings.redis_url == ""

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("RESPONSE_CACHING_PRIVACY", "public")
        monkeypatch.setenv("RESPONSE_CACHING_SERVER_EXPIRES_IN", "600")
        settings = get_settings()
        assert settings.privacy is Privacy.PUBLIC
        assert settings.server_expires_in == 600

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_environment_raises_configuration_error(self, monkeypatch):
        monkeypatch.setenv("RESPONSE_CACHING_PRIVACY", "everyone")
        with pytest.raises(ConfigurationError):
            get_settings()


class TestCachingOptions:
    def test_overrides_win_over_settings(self, settings):
        options = CachingOptions.build(settings, {"privacy": "private", "expires_in": 10})
        assert options.privacy is Privacy.PRIVATE
        assert options.expires_in == 10
        assert options.etag_max_life_ms == settings.etag_max_life_ms

    def test_policy_built_from_options(self, settings):
        options = CachingOptions.build(
            settings, {"privacy": Privacy.PUBLIC, "expires_in": 1, "server_expires_in": 2}
        )
        policy = options.policy()
        assert (policy.visibility, policy.client_expires_in, policy.server_expires_in) == (
            Privacy.PUBLIC,
            1,
            2,
        )

    def test_validation_error_wrapped(self, settings):
        with pytest.raises(ConfigurationError) as exc_info:
            CachingOptions.build(settings, {"cache_segment": ""})
        assert exc_info.value.__cause__ is not None

    def test_configuration_error_is_value_error(self, settings):
        with pytest.raises(ValueError):
            CachingOptions.build(settings, {"privacy": "bogus"})


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _reset_structlog(self):
        yield
        structlog.reset_defaults()

    @pytest.mark.parametrize("json_logs", [True, False])
    def test_configures_structlog(self, json_logs):
        configure_logging(json_logs=json_logs, log_level="debug")
        assert structlog.is_configured()
        structlog.get_logger("tests").info("caching.test_event", key="value")

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(log_level="chatty")

    def test_settings_select_json_renderer(self, settings):
        configure_logging_from_settings(settings.model_copy(update={"json_logs": True}))
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

    def test_settings_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("RESPONSE_CACHING_LOG_LEVEL", "chatty")
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging_from_settings()
