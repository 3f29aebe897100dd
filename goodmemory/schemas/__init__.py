"""Public schema exports."""

from .auth import OAuthCallbackQuery
from .telegram import TelegramCallbackQuery, TelegramMessage, TelegramUpdate

__all__ = [
    "OAuthCallbackQuery",
    "TelegramCallbackQuery",
    "TelegramMessage",
    "TelegramUpdate",
]
