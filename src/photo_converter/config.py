"""Application configuration."""

import os

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from photo_converter.domain.errors import ConfigMissing

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    telegram_allowed_user_ids: str | None = None
    database_path: str = "app.db"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    ffmpeg_binary: str = "ffmpeg"
    conversion_timeout_seconds: float = 60.0
    shutdown_grace_seconds: float = 30.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)


def load_settings(**overrides: object) -> Settings:
    """Load settings, failing with ConfigMissing when required values are absent."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        missing = sorted(
            str(error["loc"][0]).upper()
            for error in exc.errors()
            if error["type"] == "missing" and error["loc"]
        )
        detail = ", ".join(missing) if missing else str(exc)
        raise ConfigMissing(f"Invalid or missing configuration: {detail}") from exc


def parse_allowed_user_ids(raw: str | None) -> set[int] | None:
    """Parse allowed Telegram user IDs from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    ids: set[int] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if not value:
            continue
        if value.isdigit():
            ids.add(int(value))
    return ids or None
