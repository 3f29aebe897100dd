"""
FastAPI routes for the GoodMemory bot.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from goodmemory.clients.google_auth import InvalidOAuthStateError, OAuthTokenExchangeError
from goodmemory.dependencies import (
    get_google_token_service,
    get_update_dispatcher,
    require_webhook_secret,
)
from goodmemory.schemas import OAuthCallbackQuery, TelegramUpdate

router = APIRouter()
logger = logging.getLogger(__name__)

RESTART_HINT = "Send /connect to the bot in Telegram to start again."


@router.get("/health", status_code=HTTPStatus.OK, response_class=PlainTextResponse)
async def healthcheck() -> str:
    """Simple health endpoint for monitoring."""
    return "ok"


@router.get("/oauth2callback", response_class=PlainTextResponse)
async def handle_google_oauth_callback(
    params: Annotated[OAuthCallbackQuery, Depends()],
    token_service: Annotated[Any, Depends(get_google_token_service)],
) -> str:
    """Complete the OAuth exchange for the user named in ``state``."""
    if not params.code:
        reason = f" ({params.error})" if params.error else ""
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Google did not return an authorization code{reason}. {RESTART_HINT}",
        )

    try:
        user_id = token_service.user_id_from_state(params.state or "")
    except InvalidOAuthStateError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"This authorization link is not valid: {exc} {RESTART_HINT}",
        ) from exc

    try:
        await token_service.complete_authorization(code=params.code, user_id=user_id)
    except OAuthTokenExchangeError as exc:
        logger.warning("Token exchange failed for user %s: %s", user_id, exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    logger.info("Google Calendar connected for user %s", user_id)
    return "✅ Google Calendar connected. You can go back to Telegram."


@router.post(
    "/integrations/telegram/webhook",
    status_code=HTTPStatus.OK,
    dependencies=[Depends(require_webhook_secret)],
)
async def telegram_webhook(
    update: TelegramUpdate,
    dispatcher: Annotated[Any, Depends(get_update_dispatcher)],
) -> dict:
    """Handle one Telegram update pushed by the Bot API."""
    handled = await dispatcher.dispatch(update)
    return {"status": "processed" if handled else "ignored"}


__all__ = ["router"]
