"""Unit tests for the runtime settings model.

Tests verify that the Settings model binds ``VOICEDECK_AI_*`` environment
variables and exposes the grouped configuration views.
"""

import pytest

from voicedeck_ai.core.config import (
    DEFAULT_EXPECTED_CAPABILITIES,
    ReadinessConfig,
    SessionTimingConfig,
    Settings,
)


class TestSettingsDefaults:
    def test_defaults(self, monkeypatch):
        for name in (
            "VOICEDECK_AI_READINESS_POLL_MS",
            "VOICEDECK_AI_READINESS_MAX_ATTEMPTS",
            "VOICEDECK_AI_DISCONNECT_TIMEOUT_SECONDS",
            "VOICEDECK_AI_EXPECTED_CAPABILITIES",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.expected_capabilities == DEFAULT_EXPECTED_CAPABILITIES
        assert settings.readiness_poll_ms == 100
        assert settings.readiness_max_attempts == 50
        assert settings.disconnect_timeout_seconds == 3.0
        assert settings.post_auth_settle_ms == 500
        assert settings.post_refresh_settle_ms == 300


class TestSettingsBinding:
    """Test Settings model environment variable binding."""

    def test_readiness_binding(self, monkeypatch):
        monkeypatch.setenv("VOICEDECK_AI_READINESS_POLL_MS", "25")
        monkeypatch.setenv("VOICEDECK_AI_READINESS_MAX_ATTEMPTS", "4")
        monkeypatch.setenv("VOICEDECK_AI_EXPECTED_CAPABILITIES", '["app", "cart"]')

        settings = Settings(_env_file=None)

        assert settings.readiness == ReadinessConfig(
            VOICEDECK_AI_EXPECTED_CAPABILITIES=["app", "cart"],
            VOICEDECK_AI_READINESS_POLL_MS=25,
            VOICEDECK_AI_READINESS_MAX_ATTEMPTS=4,
        )

    def test_session_timing_binding(self, monkeypatch):
        monkeypatch.setenv("VOICEDECK_AI_DISCONNECT_TIMEOUT_SECONDS", "1.5")
        monkeypatch.setenv("VOICEDECK_AI_POST_AUTH_SETTLE_MS", "0")

        timing = Settings(_env_file=None).session_timing

        assert isinstance(timing, SessionTimingConfig)
        assert timing.disconnect_timeout_seconds == 1.5
        assert timing.post_auth_settle_ms == 0

    def test_field_names_are_accepted(self):
        settings = Settings(_env_file=None, readiness_poll_ms=1, device_id="device_x")
        assert settings.readiness.poll_ms == 1
        assert settings.device_id == "device_x"

    @pytest.mark.parametrize("level", ["DEBUG", "WARNING"])
    def test_log_level_binding(self, monkeypatch, level):
        monkeypatch.setenv("VOICEDECK_AI_LOG_LEVEL", level)
        assert Settings(_env_file=None).log_level == level
