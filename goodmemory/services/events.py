"""Inbound chat events, already stripped of transport details."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class ForwardedMessage:
    user_id: int
    chat_id: int
    text: str
    source_chat_title: Optional[str] = None
    source_sender_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PlainMessage:
    user_id: int
    chat_id: int
    text: str


@dataclass(frozen=True, slots=True)
class BotCommand:
    """A ``/name argument`` message typed by the user."""

    user_id: int
    chat_id: int
    name: str
    argument: str = ""


@dataclass(frozen=True, slots=True)
class ButtonPress:
    user_id: int
    chat_id: int
    callback_query_id: str
    action_id: str
    message_id: Optional[int] = None


InboundEvent = Union[ForwardedMessage, PlainMessage, BotCommand, ButtonPress]

__all__ = [
    "BotCommand",
    "ButtonPress",
    "ForwardedMessage",
    "InboundEvent",
    "PlainMessage",
]
