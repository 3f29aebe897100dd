"""Telegram Bot API client, per-update reply channel and long-polling loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramApiError(Exception):
    """Raised when a Bot API call fails or answers ``ok: false``."""


@dataclass(frozen=True, slots=True)
class InlineButton:
    label: str
    action_id: str


Keyboard = Sequence[Sequence[InlineButton]]


def _reply_markup(buttons: Optional[Keyboard]) -> dict[str, Any]:
    if not buttons:
        return {}
    return {
        "reply_markup": {
            "inline_keyboard": [
                [{"text": button.label, "callback_data": button.action_id} for button in row]
                for row in buttons
            ]
        }
    }


class TelegramBotClient:
    """Thin async wrapper over the handful of Bot API methods the bot needs."""

    def __init__(
        self,
        bot_token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        api_base: str = TELEGRAM_API_BASE,
    ) -> None:
        self._base_url = f"{api_base}/bot{bot_token}"
        self._client = http_client or httpx.AsyncClient(timeout=30.0)

    async def _call(
        self, method: str, payload: dict[str, Any], *, timeout: float | None = None
    ) -> Any:
        kwargs: dict[str, Any] = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.post(f"{self._base_url}/{method}", **kwargs)
        except httpx.HTTPError as exc:
            raise TelegramApiError(f"{method} failed: {exc}") from exc
        try:
            data = resp.json()
        except ValueError as exc:
            raise TelegramApiError(
                f"{method} returned non-JSON HTTP {resp.status_code}"
            ) from exc
        if not isinstance(data, dict):
            raise TelegramApiError(f"{method} returned an unexpected body")
        if not data.get("ok"):
            description = data.get("description") or f"HTTP {resp.status_code}"
            raise TelegramApiError(f"{method} failed: {description}")
        return data.get("result")

    async def send_message(
        self, chat_id: int, text: str, buttons: Optional[Keyboard] = None
    ) -> dict[str, Any]:
        payload = {"chat_id": chat_id, "text": text, **_reply_markup(buttons)}
        return await self._call("sendMessage", payload)

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        buttons: Optional[Keyboard] = None,
    ) -> bool:
        """Edit a bot message in place; ``False`` when Telegram refuses."""
        payload = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            **_reply_markup(buttons),
        }
        try:
            await self._call("editMessageText", payload)
        except TelegramApiError as exc:
            logger.warning("Could not edit message %s in chat %s: %s", message_id, chat_id, exc)
            return False
        return True

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> bool:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        try:
            await self._call("answerCallbackQuery", payload)
        except TelegramApiError as exc:
            logger.warning("Could not answer callback query %s: %s", callback_query_id, exc)
            return False
        return True

    async def get_updates(
        self, *, offset: int | None = None, timeout: int = 25
    ) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {
            "timeout": timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", payload, timeout=timeout + 10)
        return list(result or [])

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook", {"drop_pending_updates": False})

    async def aclose(self) -> None:
        await self._client.aclose()


class TelegramReplyChannel:
    """Where replies to one inbound update go.

    Replies to button presses try to edit the pressed message and send a new
    message only when the edit is refused.
    """

    def __init__(
        self,
        bot: TelegramBotClient,
        chat_id: int,
        *,
        message_id: int | None = None,
        callback_query_id: str | None = None,
    ) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._message_id = message_id
        self._callback_query_id = callback_query_id
        self._acknowledged = False

    async def acknowledge(self) -> None:
        """Clear the button's loading indicator; once per update."""
        if self._callback_query_id is None or self._acknowledged:
            return
        self._acknowledged = True
        await self._bot.answer_callback_query(self._callback_query_id)

    async def send(self, text: str, buttons: Optional[Keyboard] = None) -> None:
        await self._bot.send_message(self._chat_id, text, buttons)

    async def edit_or_send(self, text: str, buttons: Optional[Keyboard] = None) -> None:
        if self._message_id is not None:
            edited = await self._bot.edit_message_text(
                self._chat_id, self._message_id, text, buttons
            )
            if edited:
                return
        await self.send(text, buttons)


UpdateHandler = Callable[[dict[str, Any]], Awaitable[None]]


class TelegramUpdatePoller:
    """Long-poll ``getUpdates`` and hand each update to its own task.

    Stopping cancels the polling loop only; handler tasks already running are
    left to finish or die with the process.
    """

    def __init__(
        self,
        bot: TelegramBotClient,
        handler: UpdateHandler,
        *,
        timeout_seconds: int = 25,
        error_backoff_seconds: float = 5.0,
    ) -> None:
        self._bot = bot
        self._handler = handler
        self._timeout = timeout_seconds
        self._backoff = error_backoff_seconds
        self._task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="telegram-poller")
        logger.info("Telegram long polling started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Telegram long polling stopped")

    async def _run(self) -> None:
        offset: int | None = None
        while True:
            try:
                updates = await self._bot.get_updates(offset=offset, timeout=self._timeout)
            except TelegramApiError as exc:
                logger.warning("getUpdates failed, retrying in %ss: %s", self._backoff, exc)
                await asyncio.sleep(self._backoff)
                continue
            except Exception:
                logger.exception("Telegram polling failed, retrying in %ss", self._backoff)
                await asyncio.sleep(self._backoff)
                continue
            for update in updates:
                update_id = update.get("update_id") if isinstance(update, dict) else None
                if not isinstance(update_id, int):
                    logger.warning("Skipping Telegram update without update_id: %r", update)
                    continue
                offset = update_id + 1
                task = asyncio.create_task(self._handler(update))
                self._inflight.add(task)
                task.add_done_callback(self._on_handler_done)

    def _on_handler_done(self, task: asyncio.Task[None]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Telegram update handler crashed", exc_info=exc)


__all__ = [
    "InlineButton",
    "Keyboard",
    "TelegramApiError",
    "TelegramBotClient",
    "TelegramReplyChannel",
    "TelegramUpdatePoller",
]
