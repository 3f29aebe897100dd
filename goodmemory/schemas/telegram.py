"""
Pydantic models for the Telegram Bot API payloads the bot reads.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramMessage(BaseModel):
    """Subset of Telegram message fields used to capture a draft."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    date: int
    chat: Dict[str, Any]
    from_: Optional[Dict[str, Any]] = Field(None, alias="from")
    text: Optional[str] = None
    caption: Optional[str] = None
    # Bot API 7+ reports forwards through forward_origin; older payloads use
    # the flat forward_* fields.
    forward_origin: Optional[Dict[str, Any]] = None
    forward_date: Optional[int] = None
    forward_from: Optional[Dict[str, Any]] = None
    forward_from_chat: Optional[Dict[str, Any]] = None
    forward_sender_name: Optional[str] = None

    @property
    def is_forward(self) -> bool:
        return any(
            value is not None
            for value in (
                self.forward_origin,
                self.forward_date,
                self.forward_from,
                self.forward_from_chat,
                self.forward_sender_name,
            )
        )


class TelegramCallbackQuery(BaseModel):
    """Inline button press."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    from_: Optional[Dict[str, Any]] = Field(None, alias="from")
    message: Optional[TelegramMessage] = None
    data: Optional[str] = None


class TelegramUpdate(BaseModel):
    """Minimal Telegram update payload we care about."""

    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
    callback_query: Optional[TelegramCallbackQuery] = None


__all__ = ["TelegramCallbackQuery", "TelegramMessage", "TelegramUpdate"]
