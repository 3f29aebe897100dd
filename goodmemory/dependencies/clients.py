"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from goodmemory.clients import (
    GoogleCalendarClient,
    GoogleOAuthClient,
    OAuthStateCodec,
    TelegramBotClient,
    TokenFileStore,
)
from goodmemory.core.config import get_settings
from goodmemory.services import (
    ConversationController,
    DraftStore,
    GoogleTokenService,
    TelegramUpdateDispatcher,
    TokenCipherService,
)
from goodmemory.services.time_choices import host_timezone


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_local_timezone() -> tzinfo:
    """Zone used for quick time buttons; the host zone unless configured."""
    name = _settings().timezone
    if name:
        return ZoneInfo(name)
    return host_timezone()


@lru_cache()
def get_oauth_state_codec() -> OAuthStateCodec:
    return OAuthStateCodec()


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(
        settings.google, settings.oauth, redirect_uri=settings.redirect_uri
    )


@lru_cache()
def get_token_store() -> TokenFileStore:
    """Provide the shared token file store."""
    return TokenFileStore(_settings().tokens_file)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService | None:
    """Provide token encryption when a secret is configured."""
    secret = _settings().security.token_encryption_secret
    if not secret:
        return None
    return TokenCipherService(secret=secret)


@lru_cache()
def get_google_token_service() -> GoogleTokenService:
    """Provide helper for connecting users and loading their Google tokens."""
    settings = _settings()
    return GoogleTokenService(
        store=get_token_store(),
        oauth_client=get_google_oauth_client(),
        state_codec=get_oauth_state_codec(),
        google_settings=settings.google,
        oauth_settings=settings.oauth,
        token_cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_calendar_client() -> GoogleCalendarClient:
    return GoogleCalendarClient()


@lru_cache()
def get_draft_store() -> DraftStore:
    """Provide the process-wide draft store."""
    return DraftStore()


@lru_cache()
def get_telegram_bot_client() -> TelegramBotClient:
    return TelegramBotClient(_settings().telegram.bot_token)


@lru_cache()
def get_conversation_controller() -> ConversationController:
    return ConversationController(
        drafts=get_draft_store(),
        token_service=get_google_token_service(),
        calendar=get_calendar_client(),
        local_tz=get_local_timezone(),
    )


@lru_cache()
def get_update_dispatcher() -> TelegramUpdateDispatcher:
    return TelegramUpdateDispatcher(
        controller=get_conversation_controller(),
        bot=get_telegram_bot_client(),
    )


__all__ = [
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
]
