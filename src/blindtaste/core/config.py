"""Application settings.

Loaded once at startup from the environment (prefix ``BLINDTASTE_``) or an
optional ``.env`` file, then handed to the app factory explicitly.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = Path("data/blindtaste.db")

# 12 hours
DEFAULT_SESSION_MAX_AGE = 60 * 60 * 12


class Settings(BaseSettings):
    """Runtime configuration for the tasting service.

    Attributes:
        admin_secret: Shared secret admins send via header. Empty disables admin routes.
        session_secret: HMAC key for participant session cookies.
        pin_salt: Server-side salt mixed into tasting PIN hashes.
        database_path: SQLite database file.
        cors_origins: Origins allowed to call the API from a browser.
        session_max_age_seconds: Lifetime of the session cookie.
        secure_cookies: Mark session cookies ``Secure`` (HTTPS only).
        default_max_participants: Cap used when a tasting has none stored.
        log_level: Root logging level.
        log_format: Root logging format string.
    """

    admin_secret: str = ""
    session_secret: str = ""
    pin_salt: str = ""
    database_path: Path = DEFAULT_DB_PATH
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    session_max_age_seconds: int = Field(default=DEFAULT_SESSION_MAX_AGE, ge=60)
    secure_cookies: bool = False
    default_max_participants: int = Field(default=10, ge=1)
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    model_config = SettingsConfigDict(
        env_prefix="BLINDTASTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("admin_secret", "session_secret", "pin_salt", mode="before")
    @classmethod
    def strip_secret(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_settings() -> Settings:
    """Read settings from the environment."""
    return Settings()
