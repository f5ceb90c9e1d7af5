# ABOUTME: Configuration management for Pulsewatch using pydantic-settings
# ABOUTME: Loads settings from environment variables and .env files

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulsewatch.monitor.config import MonitorConfig


class Settings(BaseSettings):
    """Pulsewatch configuration settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Telegram settings
    telegram_bot_token: str = ""
    heartbeat_chat_id: int | None = None  # Chat the monitored service posts into
    heartbeat_thread_id: int | None = None  # Forum topic inside that chat, if any
    status_chat_id: int | None = None  # Chat holding the pinned status message

    # Monitor settings
    service_name: str = "EverLink"
    heartbeat_marker: str = "EverLink Status"
    offline_threshold: str = "10m"
    heartbeat_interval: str = "8m"
    check_every: str = "30s"

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    webhook_path: str = "/webhook"
    webhook_secret: str | None = None

    @field_validator("heartbeat_thread_id", "webhook_secret", mode="before")
    @classmethod
    def empty_as_none(cls, v: object) -> object:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("webhook_path")
    @classmethod
    def normalize_webhook_path(cls, v: str) -> str:
        v = v.strip() or "/webhook"
        return v if v.startswith("/") else "/" + v

    def validate_ready(self) -> list[str]:
        """Check if all required settings are configured. Returns list of errors."""
        errors = []

        if not self.telegram_bot_token:
            errors.append("TELEGRAM_BOT_TOKEN is required")

        if self.heartbeat_chat_id is None:
            errors.append("HEARTBEAT_CHAT_ID is required")

        if self.status_chat_id is None:
            errors.append("STATUS_CHAT_ID is required")

        try:
            self.get_monitor_config()
        except ValueError as e:
            errors.append(f"Invalid monitor settings: {e}")

        return errors

    def get_monitor_config(self) -> MonitorConfig:
        """Build MonitorConfig from environment settings."""
        return MonitorConfig(
            marker=self.heartbeat_marker,
            service_name=self.service_name,
            offline_threshold=self.offline_threshold,
            heartbeat_interval=self.heartbeat_interval,
            check_every=self.check_every,
        )


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
