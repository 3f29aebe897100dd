"""
FastAPI dependencies derived from configuration.
"""

from functools import lru_cache
from http import HTTPStatus
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException

from goodmemory.core.config import AppSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


SettingsDependency = Depends(get_app_settings)


def require_webhook_secret(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
    secret_token: Annotated[
        Optional[str], Header(alias="X-Telegram-Bot-Api-Secret-Token")
    ] = None,
) -> None:
    """Reject webhook calls that do not carry the configured secret."""
    expected = settings.telegram.webhook_secret
    if expected and secret_token != expected:
        raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail="Invalid webhook secret.")


__all__ = ["SettingsDependency", "get_app_settings", "require_webhook_secret"]
