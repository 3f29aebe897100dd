from __future__ import annotations

import pytest

from goodmemory.schemas import TelegramUpdate
from goodmemory.services.events import BotCommand, ButtonPress, ForwardedMessage, PlainMessage
from goodmemory.services.telegram_updates import (
    NO_TEXT_PLACEHOLDER,
    TelegramUpdateDispatcher,
    parse_update,
)


def _message_update(**message) -> TelegramUpdate:
    payload = {
        "message_id": 10,
        "date": 1_700_000_000,
        "chat": {"id": 42, "type": "private"},
        "from": {"id": 42, "first_name": "Sam"},
    }
    payload.update(message)
    return TelegramUpdate.model_validate({"update_id": 1, "message": payload})


def test_legacy_forward_fields_mark_a_forward() -> None:
    event = parse_update(
        _message_update(
            text="  Dinner at 8?  ",
            forward_date=1_700_000_000,
            forward_sender_name="Hidden Person",
            forward_from_chat={"id": -100, "title": "Friends"},
        )
    )

    assert isinstance(event, ForwardedMessage)
    assert event.user_id == 42
    assert event.text == "Dinner at 8?"
    assert event.source_sender_name == "Hidden Person"
    assert event.source_chat_title == "Friends"


def test_forward_origin_provenance() -> None:
    event = parse_update(
        _message_update(
            caption="Flyer for the meetup",
            forward_origin={
                "type": "user",
                "date": 1_700_000_000,
                "sender_user": {"id": 7, "first_name": "Ana", "last_name": "Lopez"},
            },
        )
    )

    assert isinstance(event, ForwardedMessage)
    assert event.text == "Flyer for the meetup"
    assert event.source_sender_name == "Ana Lopez"
    assert event.source_chat_title is None


def test_forward_without_text_uses_placeholder() -> None:
    event = parse_update(_message_update(forward_date=1, text="   "))
    assert isinstance(event, ForwardedMessage)
    assert event.text == NO_TEXT_PLACEHOLDER


def test_forwarded_slash_text_is_not_a_command() -> None:
    event = parse_update(_message_update(text="/start", forward_date=1))
    assert isinstance(event, ForwardedMessage)


def test_plain_text_and_commands() -> None:
    assert parse_update(_message_update(text="hi")) == PlainMessage(42, 42, "hi")
    assert parse_update(_message_update(text="/connect@GoodMemoryBot now")) == BotCommand(
        42, 42, "connect", "now"
    )


def test_callback_query_becomes_button_press() -> None:
    update = TelegramUpdate.model_validate(
        {
            "update_id": 2,
            "callback_query": {
                "id": "cb-9",
                "from": {"id": 42},
                "data": "INTENT:REMINDER",
                "message": {"message_id": 55, "date": 0, "chat": {"id": 42}},
            },
        }
    )

    assert parse_update(update) == ButtonPress(
        user_id=42,
        chat_id=42,
        callback_query_id="cb-9",
        action_id="INTENT:REMINDER",
        message_id=55,
    )


def test_updates_without_sender_are_ignored() -> None:
    channel_post = TelegramUpdate.model_validate({"update_id": 3})
    assert parse_update(channel_post) is None
    assert parse_update(_message_update(**{"from": None}, text="hi")) is None


class FakeBot:
    def __init__(self) -> None:
        self.answered: list[str] = []
        self.sent: list[tuple[int, str]] = []

    async def answer_callback_query(self, callback_query_id, text=None) -> bool:
        self.answered.append(callback_query_id)
        return True

    async def send_message(self, chat_id, text, buttons=None):
        self.sent.append((chat_id, text))
        return {}

    async def edit_message_text(self, chat_id, message_id, text, buttons=None) -> bool:
        return False


class RecordingController:
    def __init__(self) -> None:
        self.events = []

    async def handle(self, event, channel) -> None:
        self.events.append(event)
        await channel.acknowledge()
        await channel.edit_or_send("edited?")


@pytest.mark.anyio
async def test_dispatcher_routes_events_through_reply_channel() -> None:
    bot = FakeBot()
    controller = RecordingController()
    dispatcher = TelegramUpdateDispatcher(controller, bot)

    handled = await dispatcher.dispatch_raw(
        {
            "update_id": 4,
            "callback_query": {
                "id": "cb-1",
                "from": {"id": 42},
                "data": "CONFIRM:MEETING",
                "message": {"message_id": 5, "date": 0, "chat": {"id": 42}},
            },
        }
    )

    assert handled is None
    assert isinstance(controller.events[0], ButtonPress)
    assert bot.answered == ["cb-1"]
    # The edit was refused, so the reply went out as a new message.
    assert bot.sent == [(42, "edited?")]


@pytest.mark.anyio
async def test_dispatcher_acknowledges_ignored_callbacks() -> None:
    bot = FakeBot()
    controller = RecordingController()
    dispatcher = TelegramUpdateDispatcher(controller, bot)

    update = TelegramUpdate.model_validate(
        {"update_id": 5, "callback_query": {"id": "cb-2", "data": "INTENT:MEETING"}}
    )
    assert await dispatcher.dispatch(update) is False
    assert bot.answered == ["cb-2"]
    assert controller.events == []
