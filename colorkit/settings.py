from __future__ import annotations

import os
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite+aiosqlite:///./colorkit.db", alias="DATABASE_URL")
    backend_session_secret: str = Field("", alias="BACKEND_SESSION_SECRET")

    allowed_emails_raw: str = Field("", alias="ALLOWED_EMAILS")

    neutral_day_color: str | None = Field(None, alias="NEUTRAL_DAY_COLOR")
    neutral_day_opacity: int = Field(0, alias="NEUTRAL_DAY_OPACITY")
    repaint_chunk_size: int = Field(50, alias="REPAINT_CHUNK_SIZE")

    log_level: str = Field("INFO", alias="COLORKIT_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allowed_emails(self) -> List[str]:
        return [email.strip().lower() for email in self.allowed_emails_raw.split(",") if email.strip()]


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings_cache() -> None:
    global _settings
    _settings = None


# For local dev convenience only.
if os.getenv("COLORKIT_DEBUG_SETTINGS"):
    print(get_settings())
