"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_calendar_client,
    get_conversation_controller,
    get_draft_store,
    get_google_oauth_client,
    get_google_token_service,
    get_local_timezone,
    get_oauth_state_codec,
    get_telegram_bot_client,
    get_token_cipher_service,
    get_token_store,
    get_update_dispatcher,
)
from .config import SettingsDependency, get_app_settings, require_webhook_secret

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_calendar_client",
    "get_conversation_controller",
    "get_draft_store",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_local_timezone",
    "get_oauth_state_codec",
    "get_telegram_bot_client",
    "get_token_cipher_service",
    "get_token_store",
    "get_update_dispatcher",
    "require_webhook_secret",
]
