"""
Application configuration models and helpers.

Centralizes settings management so the HTTP surface, the Telegram polling loop
and the calendar clients share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional
from urllib.parse import urlparse

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class TelegramSettings(BaseSettings):
    """Credentials and transport options for the Telegram Bot API."""

    model_config = SettingsConfigDict(extra="ignore")

    bot_token: str = Field(..., validation_alias="TELEGRAM_BOT_TOKEN")
    use_polling: bool = Field(
        True,
        validation_alias="TELEGRAM_USE_POLLING",
        description="Pull updates with getUpdates instead of waiting for webhooks.",
    )
    poll_timeout_seconds: int = Field(25, validation_alias="TELEGRAM_POLL_TIMEOUT")
    webhook_secret: Optional[str] = Field(
        None,
        validation_alias="TELEGRAM_WEBHOOK_SECRET",
        description="Expected X-Telegram-Bot-Api-Secret-Token header value.",
    )


class GoogleSettings(BaseSettings):
    """Configuration required for interacting with Google APIs."""

    model_config = SettingsConfigDict(extra="ignore")

    client_id: str = Field(..., validation_alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GOOGLE_CLIENT_SECRET")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("https://www.googleapis.com/auth/calendar",),
        validation_alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())


class AppSettings(BaseSettings):
    """Root settings object for the bot service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    app_base_url: AnyHttpUrl = Field(
        "http://localhost:3100",
        validation_alias="APP_BASE_URL",
        description="Public URL of this service; the OAuth callback hangs off it.",
    )
    host: str = Field("0.0.0.0", validation_alias="APP_HOST")
    timezone: Optional[str] = Field(
        None,
        validation_alias="APP_TIMEZONE",
        description="IANA zone for quick time buttons. Defaults to the host zone.",
    )
    tokens_file: str = Field("data/tokens.json", validation_alias="TOKENS_FILE")
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @property
    def redirect_uri(self) -> str:
        """OAuth redirect URI derived from the public base URL."""
        return f"{str(self.app_base_url).rstrip('/')}/oauth2callback"

    @property
    def listen_port(self) -> int:
        """Port to bind, taken from the public base URL."""
        parsed = urlparse(str(self.app_base_url))
        if parsed.port:
            return parsed.port
        return 443 if parsed.scheme == "https" else 80


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SecuritySettings",
    "TelegramSettings",
    "get_settings",
]
