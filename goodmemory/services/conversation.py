"""Conversation state machine turning forwarded messages into calendar events.

Per user the conversation moves through::

    IDLE -> AWAITING_INTENT -> AWAITING_TIME -> AWAITING_CONFIRMATION -> IDLE

The state is not stored separately: it follows from the user's draft and from
which button was pressed, and the intent travels inside the button's action
id. A button pressed when no draft exists (after a restart, or from another
device) always lands back in IDLE with a request to forward again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum
from typing import Callable, Optional, Protocol

from goodmemory.clients.google_auth import OAuthTokenNotFoundError
from goodmemory.clients.google_calendar import CalendarWriteError, GoogleCalendarClient
from goodmemory.clients.telegram import InlineButton, Keyboard
from goodmemory.services.calendar_events import build_event
from goodmemory.services.drafts import Draft, DraftStore, Intent
from goodmemory.services.events import (
    BotCommand,
    ButtonPress,
    ForwardedMessage,
    InboundEvent,
    PlainMessage,
)
from goodmemory.services.google_tokens import GoogleTokenService
from goodmemory.services.time_choices import (
    TIME_CHOICE_LABELS,
    TimeChoice,
    format_moment,
    resolve_time_choice,
)

logger = logging.getLogger(__name__)


class ConversationState(str, Enum):
    IDLE = "idle"
    AWAITING_INTENT = "awaiting_intent"
    AWAITING_TIME = "awaiting_time"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


class ReplyChannel(Protocol):
    async def acknowledge(self) -> None: ...

    async def send(self, text: str, buttons: Optional[Keyboard] = None) -> None: ...

    async def edit_or_send(self, text: str, buttons: Optional[Keyboard] = None) -> None: ...


# Button action ids -------------------------------------------------------

ACTION_INTENT = "INTENT"
ACTION_TIME = "TIME"
ACTION_CONFIRM = "CONFIRM"


@dataclass(frozen=True, slots=True)
class ButtonAction:
    kind: str
    intent: Intent
    choice: Optional[TimeChoice] = None

    def encode(self) -> str:
        parts = [self.kind, self.intent.value]
        if self.choice is not None:
            parts.append(self.choice.value)
        return ":".join(parts)


def parse_action(action_id: str) -> Optional[ButtonAction]:
    """Decode an action id; ``None`` for anything this bot did not issue."""
    parts = (action_id or "").split(":")
    try:
        if parts[0] in (ACTION_INTENT, ACTION_CONFIRM) and len(parts) == 2:
            return ButtonAction(parts[0], Intent(parts[1]))
        if parts[0] == ACTION_TIME and len(parts) == 3:
            return ButtonAction(ACTION_TIME, Intent(parts[1]), TimeChoice(parts[2]))
    except ValueError:
        return None
    return None


# Copy ----------------------------------------------------------------------

WELCOME_TEXT = "\n".join(
    [
        "Hi! I'm GoodMemoryBot.",
        "",
        "How to use me:",
        "1) Forward me a message from any chat",
        "2) I'll help you turn it into a reminder or a meeting in your calendar",
        "",
        "Send /connect once to link your Google Calendar.",
        "Tip: pin this chat to the top of your Telegram list.",
    ]
)
FORWARD_PROMPT = (
    "OK. To create a reminder or a meeting, forward me a message from another chat 🙂"
)
FORWARD_AGAIN = "I can't see that message anymore. Please forward it to me again."
WHAT_TO_CREATE = "Message received. What should I create?"
CUSTOM_UNAVAILABLE = (
    "Picking an exact date and time isn't available yet. "
    "Please use one of the quick options."
)
PICK_TIME_FIRST = "Pick a time first."
CONNECT_FIRST = (
    "Your Google Calendar isn't connected yet. Send /connect, finish the "
    "authorization, then press Create again."
)

_NOUNS = {Intent.REMINDER: "reminder", Intent.MEETING: "meeting"}
_TIME_QUESTIONS = {
    Intent.REMINDER: "When should I remind you?",
    Intent.MEETING: "When is the meeting?",
}


def intent_keyboard() -> Keyboard:
    return [
        [InlineButton("⏰ Reminder", ButtonAction(ACTION_INTENT, Intent.REMINDER).encode())],
        [InlineButton("📅 Meeting", ButtonAction(ACTION_INTENT, Intent.MEETING).encode())],
    ]


def time_keyboard(intent: Intent) -> Keyboard:
    return [
        [InlineButton(TIME_CHOICE_LABELS[choice], ButtonAction(ACTION_TIME, intent, choice).encode())]
        for choice in TimeChoice
    ]


def confirm_keyboard(intent: Intent) -> Keyboard:
    return [[InlineButton("✅ Create", ButtonAction(ACTION_CONFIRM, intent).encode())]]


def _provenance(draft: Draft) -> Optional[str]:
    if draft.source_sender_name and draft.source_chat_title:
        return f"↪️ {draft.source_sender_name} in {draft.source_chat_title}"
    if draft.source_sender_name or draft.source_chat_title:
        return f"↪️ {draft.source_sender_name or draft.source_chat_title}"
    return None


class ConversationController:
    """Drive one user's draft from forward to calendar event."""

    def __init__(
        self,
        drafts: DraftStore,
        token_service: GoogleTokenService,
        calendar: GoogleCalendarClient,
        *,
        local_tz: tzinfo,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._drafts = drafts
        self._tokens = token_service
        self._calendar = calendar
        self._tz = local_tz
        self._clock = clock or (lambda: datetime.now(self._tz))

    async def handle(self, event: InboundEvent, channel: ReplyChannel) -> None:
        if isinstance(event, ButtonPress):
            await self._on_button(event, channel)
        elif isinstance(event, ForwardedMessage):
            await self._on_forward(event, channel)
        elif isinstance(event, BotCommand):
            await self._on_command(event, channel)
        else:
            await self._on_plain_message(event, channel)

    async def _on_forward(self, event: ForwardedMessage, channel: ReplyChannel) -> None:
        self._drafts.replace(
            Draft(
                user_id=event.user_id,
                text=event.text,
                source_chat_title=event.source_chat_title,
                source_sender_name=event.source_sender_name,
            )
        )
        self._log_transition(event.user_id, ConversationState.AWAITING_INTENT)
        await channel.send(WHAT_TO_CREATE, intent_keyboard())

    async def _on_plain_message(self, event: PlainMessage, channel: ReplyChannel) -> None:
        await channel.send(FORWARD_PROMPT)

    async def _on_command(self, event: BotCommand, channel: ReplyChannel) -> None:
        if event.name in ("start", "help"):
            await channel.send(WELCOME_TEXT)
        elif event.name == "ping":
            await channel.send("pong")
        elif event.name == "connect":
            url = self._tokens.authorization_url(event.user_id)
            await channel.send(f"Tap to connect your Google Calendar:\n{url}")
        else:
            await self._on_plain_message(
                PlainMessage(event.user_id, event.chat_id, f"/{event.name}"), channel
            )

    async def _on_button(self, event: ButtonPress, channel: ReplyChannel) -> None:
        await channel.acknowledge()

        action = parse_action(event.action_id)
        draft = self._drafts.get(event.user_id)
        if action is None or draft is None:
            logger.info(
                "Button %r from user %s without a usable draft", event.action_id, event.user_id
            )
            self._log_transition(event.user_id, ConversationState.IDLE)
            await channel.send(FORWARD_AGAIN)
            return

        if action.kind == ACTION_INTENT:
            self._log_transition(event.user_id, ConversationState.AWAITING_TIME)
            await channel.edit_or_send(_TIME_QUESTIONS[action.intent], time_keyboard(action.intent))
        elif action.kind == ACTION_TIME:
            await self._on_time_selected(draft, action.intent, action.choice, channel)
        else:
            await self._on_confirm(draft, action.intent, channel)

    async def _on_time_selected(
        self,
        draft: Draft,
        intent: Intent,
        choice: Optional[TimeChoice],
        channel: ReplyChannel,
    ) -> None:
        if choice is None or choice is TimeChoice.CUSTOM:
            await channel.edit_or_send(
                f"{CUSTOM_UNAVAILABLE}\n\n{_TIME_QUESTIONS[intent]}", time_keyboard(intent)
            )
            return

        when = resolve_time_choice(choice, self._clock())
        draft.set_time(intent, when)
        self._log_transition(draft.user_id, ConversationState.AWAITING_CONFIRMATION)

        lines = [f"Create {_NOUNS[intent]}?", "", f"⏰ {format_moment(when)}", "", f"📝 {draft.preview()}"]
        provenance = _provenance(draft)
        if provenance:
            lines.append(provenance)
        await channel.edit_or_send("\n".join(lines), confirm_keyboard(intent))

    async def _on_confirm(self, draft: Draft, intent: Intent, channel: ReplyChannel) -> None:
        start = draft.time_for(intent)
        if start is None:
            await channel.edit_or_send(PICK_TIME_FIRST, time_keyboard(intent))
            return

        try:
            credentials = await self._tokens.get_credentials(user_id=draft.user_id)
        except OAuthTokenNotFoundError:
            logger.info("User %s confirmed a %s without a connected calendar", draft.user_id, _NOUNS[intent])
            await channel.edit_or_send(CONNECT_FIRST, confirm_keyboard(intent))
            return

        event = build_event(intent, draft.text, start, getattr(self._tz, "key", None))
        try:
            created = await self._calendar.create_event(credentials, event)
        except CalendarWriteError as exc:
            logger.warning("Calendar write failed for user %s: %s", draft.user_id, exc)
            await channel.edit_or_send(
                f"❌ Couldn't create the {_NOUNS[intent]}: {exc}\n\nPress Create to try again.",
                confirm_keyboard(intent),
            )
            return

        draft.clear_time(intent)
        self._log_transition(draft.user_id, ConversationState.IDLE)
        message = f"✅ {_NOUNS[intent].capitalize()} created for {format_moment(start)}."
        if created.html_link:
            message += f"\n{created.html_link}"
        await channel.edit_or_send(message)

    @staticmethod
    def _log_transition(user_id: int, state: ConversationState) -> None:
        logger.info("Conversation for user %s -> %s", user_id, state.value)


__all__ = [
    "ButtonAction",
    "ConversationController",
    "ConversationState",
    "ReplyChannel",
    "confirm_keyboard",
    "intent_keyboard",
    "parse_action",
    "time_keyboard",
]
