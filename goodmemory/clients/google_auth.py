"""
Google OAuth utilities.

These helpers build the consent URL for a Telegram user, carry the user id
through the redirect in the ``state`` parameter and exchange the returned
authorization code for a token bundle.
"""

from __future__ import annotations

import re
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Callable
from urllib.parse import unquote, urlencode

import httpx

from fastapi import status

from goodmemory.core.config import GoogleSettings, OAuthSettings
from goodmemory.models.oauth import TokenRecord

_PERCENT_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")


class InvalidOAuthStateError(ValueError):
    """Raised when a callback ``state`` does not name a valid user."""


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint returns an error."""


class OAuthTokenNotFoundError(Exception):
    """Raised when no persisted OAuth token is available for a user."""


class OAuthStateCodec:
    """Encode ``user_id:issued_at:nonce`` state values and read the user back.

    The state is not signed; it only lets the callback find the Telegram user
    without keeping a server-side session.
    """

    DELIMITER = ":"

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def encode(self, user_id: int) -> str:
        nonce = secrets.token_hex(16)
        return self.DELIMITER.join((str(user_id), str(int(self._clock())), nonce))

    def decode(self, raw_state: str) -> int:
        """Return the positive user id carried by ``raw_state``."""
        state = _maybe_percent_decode(raw_state or "")
        prefix = state.split(self.DELIMITER, 1)[0].strip()
        if not (prefix.isascii() and prefix.isdigit()):
            raise InvalidOAuthStateError("OAuth state does not start with a user id.")
        user_id = int(prefix)
        if user_id <= 0:
            raise InvalidOAuthStateError("OAuth state carries a non-positive user id.")
        return user_id


def _maybe_percent_decode(value: str) -> str:
    if not _PERCENT_ESCAPE.search(value):
        return value
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange authorization codes."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        *,
        redirect_uri: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._redirect_uri = redirect_uri
        self._transport = transport

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    def build_authorization_url(self, state: str) -> str:
        """Construct the Google OAuth consent URL.

        ``prompt=consent`` makes Google issue a refresh token on every
        authorization, including repeat connects.
        """
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "access_type": "offline",
            "include_granted_scopes": "true",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> TokenRecord:
        """Exchange an authorization code for a token bundle in one round-trip."""
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }

        issued_at = datetime.now(timezone.utc)
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token request failed: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise OAuthTokenExchangeError(_describe_token_error(response))

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Google returned a token response that is not JSON.") from exc
        if not isinstance(token_payload, dict) or not token_payload.get("access_token"):
            raise OAuthTokenExchangeError("Google returned no access token.")

        try:
            expires_in = token_payload.pop("expires_in", None)
            if expires_in:
                token_payload["expires_at"] = issued_at + timedelta(seconds=int(expires_in))
            return TokenRecord.model_validate(token_payload)
        except (OverflowError, TypeError, ValueError) as exc:
            raise OAuthTokenExchangeError(f"Google returned a malformed token response: {exc}") from exc


def _describe_token_error(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        description = body.get("error_description") or body.get("error")
        if description:
            return str(description)
    return response.text or f"HTTP {response.status_code}"


__all__ = [
    "GoogleOAuthClient",
    "InvalidOAuthStateError",
    "OAuthStateCodec",
    "OAuthTokenExchangeError",
    "OAuthTokenNotFoundError",
]
