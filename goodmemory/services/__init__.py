"""Service layer exports."""

from .conversation import ConversationController, ConversationState
from .drafts import Draft, DraftStore, Intent
from .google_tokens import GoogleTokenService
from .telegram_updates import TelegramUpdateDispatcher
from .token_cipher import TokenCipherService

__all__ = [
    "ConversationController",
    "ConversationState",
    "Draft",
    "DraftStore",
    "GoogleTokenService",
    "Intent",
    "TelegramUpdateDispatcher",
    "TokenCipherService",
]
