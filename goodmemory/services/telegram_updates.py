"""Turn raw Telegram updates into inbound events and route them."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from goodmemory.clients.telegram import TelegramBotClient, TelegramReplyChannel
from goodmemory.schemas.telegram import TelegramMessage, TelegramUpdate
from goodmemory.services.conversation import ConversationController
from goodmemory.services.events import (
    BotCommand,
    ButtonPress,
    ForwardedMessage,
    InboundEvent,
    PlainMessage,
)

logger = logging.getLogger(__name__)

NO_TEXT_PLACEHOLDER = "[message without text]"


def _captured_text(message: TelegramMessage) -> str:
    for candidate in (message.text, message.caption):
        if candidate and candidate.strip():
            return candidate.strip()
    return NO_TEXT_PLACEHOLDER


def _person_name(person: Optional[Dict[str, Any]]) -> Optional[str]:
    if not person:
        return None
    name = " ".join(
        part for part in (person.get("first_name"), person.get("last_name")) if part
    )
    return name or person.get("username")


def _source_chat_title(message: TelegramMessage) -> Optional[str]:
    if message.forward_from_chat and message.forward_from_chat.get("title"):
        return message.forward_from_chat["title"]
    origin = message.forward_origin or {}
    for key in ("chat", "sender_chat"):
        chat = origin.get(key)
        if isinstance(chat, dict) and chat.get("title"):
            return chat["title"]
    return None


def _source_sender_name(message: TelegramMessage) -> Optional[str]:
    if message.forward_sender_name:
        return message.forward_sender_name
    origin = message.forward_origin or {}
    if origin.get("sender_user_name"):
        return origin["sender_user_name"]
    return _person_name(message.forward_from) or _person_name(origin.get("sender_user"))


def parse_update(update: TelegramUpdate) -> Optional[InboundEvent]:
    """Map an update to an event; ``None`` when the bot has nothing to do."""
    query = update.callback_query
    if query is not None:
        user_id = (query.from_ or {}).get("id")
        if not user_id:
            return None
        chat_id = query.message.chat.get("id") if query.message else None
        return ButtonPress(
            user_id=int(user_id),
            chat_id=int(chat_id or user_id),
            callback_query_id=query.id,
            action_id=query.data or "",
            message_id=query.message.message_id if query.message else None,
        )

    message = update.message
    if message is None:
        return None
    user_id = (message.from_ or {}).get("id")
    chat_id = message.chat.get("id")
    if not user_id or chat_id is None:
        return None

    if message.is_forward:
        return ForwardedMessage(
            user_id=int(user_id),
            chat_id=int(chat_id),
            text=_captured_text(message),
            source_chat_title=_source_chat_title(message),
            source_sender_name=_source_sender_name(message),
        )

    raw_text = (message.text or "").strip()
    if raw_text.startswith("/"):
        command, _, argument = raw_text[1:].partition(" ")
        return BotCommand(
            user_id=int(user_id),
            chat_id=int(chat_id),
            name=command.split("@", 1)[0].lower(),
            argument=argument.strip(),
        )
    return PlainMessage(user_id=int(user_id), chat_id=int(chat_id), text=raw_text)


class TelegramUpdateDispatcher:
    """Shared entry point for webhook deliveries and polled updates."""

    def __init__(self, controller: ConversationController, bot: TelegramBotClient) -> None:
        self._controller = controller
        self._bot = bot

    async def dispatch(self, update: TelegramUpdate) -> bool:
        """Handle one update; ``False`` when it was ignored."""
        event = parse_update(update)
        if event is None:
            if update.callback_query is not None:
                await self._bot.answer_callback_query(update.callback_query.id)
            logger.debug("Ignoring update %s", update.update_id)
            return False

        if isinstance(event, ButtonPress):
            channel = TelegramReplyChannel(
                self._bot,
                event.chat_id,
                message_id=event.message_id,
                callback_query_id=event.callback_query_id,
            )
        else:
            channel = TelegramReplyChannel(self._bot, event.chat_id)

        await self._controller.handle(event, channel)
        return True

    async def dispatch_raw(self, payload: Dict[str, Any]) -> None:
        await self.dispatch(TelegramUpdate.model_validate(payload))


__all__ = [
    "NO_TEXT_PLACEHOLDER",
    "TelegramUpdateDispatcher",
    "parse_update",
]
