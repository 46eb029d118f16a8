"""
Configuration Settings.

This module defines the runtime configuration using Pydantic's BaseSettings.
All values are loaded from environment variables and the ``.env`` file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EXPECTED_CAPABILITIES = ["app", "chat", "ui", "auth", "menu", "cart"]


# =====================================================================
# Grouped Configuration Models
# =====================================================================


class ReadinessConfig(BaseModel):
    """Capability readiness polling configuration."""

    expected_capabilities: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXPECTED_CAPABILITIES),
        alias="VOICEDECK_AI_EXPECTED_CAPABILITIES",
        description="Capability names that must be registered before initialization tools run",
    )
    poll_ms: int = Field(default=100, alias="VOICEDECK_AI_READINESS_POLL_MS", description="Polling interval")
    max_attempts: int = Field(
        default=50,
        alias="VOICEDECK_AI_READINESS_MAX_ATTEMPTS",
        description="Polling attempts before proceeding without the full capability set",
    )

    model_config = {"populate_by_name": True}


class SessionTimingConfig(BaseModel):
    """Timing bounds for the remote session lifecycle."""

    disconnect_timeout_seconds: float = Field(
        default=3.0,
        alias="VOICEDECK_AI_DISCONNECT_TIMEOUT_SECONDS",
        description="Upper bound for the graceful teardown after an abrupt disconnect",
    )
    post_auth_settle_ms: int = Field(
        default=500,
        alias="VOICEDECK_AI_POST_AUTH_SETTLE_MS",
        description="Delay after authentication so freshly mounted pieces can register",
    )
    post_refresh_settle_ms: int = Field(
        default=300,
        alias="VOICEDECK_AI_POST_REFRESH_SETTLE_MS",
        description="Delay after a configuration refresh before re-running initialization",
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="VOICEDECK_AI_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log format (simple, detailed, json)",
        alias="VOICEDECK_AI_LOG_FORMAT",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Also write DEBUG logs to a file under log_file_dir",
        alias="VOICEDECK_AI_ENABLE_FILE_LOGGING",
    )
    log_file_dir: str = Field(default="logs", alias="VOICEDECK_AI_LOG_FILE_DIR")

    # =====================================================================
    # Tool Runtime
    # =====================================================================
    expected_capabilities: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXPECTED_CAPABILITIES),
        alias="VOICEDECK_AI_EXPECTED_CAPABILITIES",
    )
    readiness_poll_ms: int = Field(default=100, alias="VOICEDECK_AI_READINESS_POLL_MS")
    readiness_max_attempts: int = Field(default=50, alias="VOICEDECK_AI_READINESS_MAX_ATTEMPTS")
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout of the HTTP client exposed to tool scripts",
        alias="VOICEDECK_AI_HTTP_TIMEOUT_SECONDS",
    )
    device_id: Optional[str] = Field(
        default=None,
        description="Stable device identifier exposed to tool scripts (generated when unset)",
        alias="VOICEDECK_AI_DEVICE_ID",
    )

    # =====================================================================
    # Session Lifecycle
    # =====================================================================
    disconnect_timeout_seconds: float = Field(default=3.0, alias="VOICEDECK_AI_DISCONNECT_TIMEOUT_SECONDS")
    post_auth_settle_ms: int = Field(default=500, alias="VOICEDECK_AI_POST_AUTH_SETTLE_MS")
    post_refresh_settle_ms: int = Field(default=300, alias="VOICEDECK_AI_POST_REFRESH_SETTLE_MS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def readiness(self) -> ReadinessConfig:
        """Get capability readiness configuration."""
        return ReadinessConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def session_timing(self) -> SessionTimingConfig:
        """Get session lifecycle timing configuration."""
        return SessionTimingConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
