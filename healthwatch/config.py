from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "HEALTHWATCH_",
        "extra": "ignore",
    }

    # Resource definitions (YAML with a top-level `resources:` list)
    resources_path: str = "resources.yaml"

    # Result cache — the TTL doubles as the debounce window
    cache_enabled: bool = True
    default_ttl_seconds: float = 60.0

    # Check execution
    default_timeout_seconds: float = 10.0
    max_workers: int = 1  # >1 checks resources in parallel

    # Statuses that trigger a notification unless a resource overrides it
    notify_on: str = "warning,error"

    # Notifications (optional — Slack / Telegram)
    notifications_enabled: bool = True
    slack_webhook_url: str = ""
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Background silent checks
    scheduler_enabled: bool = False
    scheduler_interval_seconds: int = 60

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"

    @field_validator("notify_on")
    @classmethod
    def _known_statuses(cls, value: str) -> str:
        known = {"healthy", "warning", "error", "skipped"}
        unknown = [s.strip() for s in value.split(",") if s.strip() and s.strip().lower() not in known]
        if unknown:
            raise ValueError(f"unknown status in notify_on: {', '.join(unknown)} (allowed: {', '.join(sorted(known))})")
        return value

    @property
    def notify_on_list(self) -> list[str]:
        return [s.strip().lower() for s in self.notify_on.split(",") if s.strip()]


settings = Settings()
