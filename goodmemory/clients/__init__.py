"""Expose constructed client wrappers."""

from .google_auth import GoogleOAuthClient, OAuthStateCodec
from .google_calendar import GoogleCalendarClient
from .telegram import TelegramBotClient, TelegramUpdatePoller
from .token_store import TokenFileStore

__all__ = [
    "GoogleCalendarClient",
    "GoogleOAuthClient",
    "OAuthStateCodec",
    "TelegramBotClient",
    "TelegramUpdatePoller",
    "TokenFileStore",
]
