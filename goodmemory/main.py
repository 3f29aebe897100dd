"""
FastAPI application entrypoint for the GoodMemory bot.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from goodmemory.api.routes import router as api_router
from goodmemory.clients import TelegramUpdatePoller
from goodmemory.core.config import get_settings
from goodmemory.core.logging import configure_logging
from goodmemory.dependencies import get_telegram_bot_client, get_update_dispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the Telegram long-polling loop for the lifetime of the server."""
    settings = get_settings()
    bot = get_telegram_bot_client()
    poller: TelegramUpdatePoller | None = None
    if settings.telegram.use_polling:
        await bot.delete_webhook()
        poller = TelegramUpdatePoller(
            bot,
            get_update_dispatcher().dispatch_raw,
            timeout_seconds=settings.telegram.poll_timeout_seconds,
        )
        poller.start()
    logger.info("OAuth redirect URI is %s", settings.redirect_uri)
    try:
        yield
    finally:
        if poller is not None:
            await poller.stop()
        await bot.aclose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="GoodMemory Bot",
        version="0.1.0",
        description="Turns forwarded Telegram messages into Google Calendar events.",
        lifespan=lifespan,
    )
    app.include_router(api_router)
    return app


def run() -> None:
    """Console entry point: serve on the port of ``APP_BASE_URL``."""
    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
    )


app = create_app()

__all__ = ["app", "create_app", "run"]
