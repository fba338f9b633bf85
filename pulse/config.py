"""Pulse Configuration."""

from typing import Literal

from pydantic_settings import BaseSettings

DEFAULT_ADMIN_SECRET = "change-me"


class Settings(BaseSettings):
    """Settings for the Pulse server, scheduler and CLI."""

    # Storage
    database_path: str = "data/pulse.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # API
    api_prefix: str = "/api/v1"
    app_title: str = "Pulse"
    version: str = "0.1.0"
    admin_secret: str = ""  # Bearer token for admin routes; empty disables them

    # Status engine
    evaluation_interval_seconds: int = 60

    # Summary notifications
    webhook_url: str = ""
    webhook_schedule: str = ""  # Crontab expression, e.g. "0 9 * * *"
    webhook_format: Literal["json", "google_chat", "slack"] = "json"
    webhook_timeout_seconds: float = 10.0
    cron_timezone: str = "UTC"

    # List cache
    list_cache_ttl_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    class Config:
        env_prefix = "PULSE_"
        env_file = ".env"
        extra = "ignore"

    @property
    def notifications_configured(self) -> bool:
        return bool(self.webhook_url and self.webhook_schedule)

    @property
    def admin_enabled(self) -> bool:
        return bool(self.admin_secret)
