"""
Helpers for connecting a Telegram user to Google and loading their tokens.
"""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Optional

from google.oauth2.credentials import Credentials

from goodmemory.clients.google_auth import (
    GoogleOAuthClient,
    OAuthStateCodec,
    OAuthTokenNotFoundError,
)
from goodmemory.clients.token_store import TokenFileStore
from goodmemory.core.config import GoogleSettings, OAuthSettings
from goodmemory.models.oauth import TokenRecord
from goodmemory.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class GoogleTokenService:
    """The only writer of the token store.

    Credentials are built fresh for every call and handed to the caller, so
    no process-wide Google login is ever mutated.
    """

    def __init__(
        self,
        store: TokenFileStore,
        oauth_client: GoogleOAuthClient,
        state_codec: OAuthStateCodec,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        token_cipher: Optional[TokenCipherService] = None,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._states = state_codec
        self._google = google_settings
        self._oauth_settings = oauth_settings
        self._cipher = token_cipher

    def authorization_url(self, user_id: int) -> str:
        """Consent URL whose state routes the callback back to ``user_id``."""
        return self._oauth.build_authorization_url(state=self._states.encode(user_id))

    def user_id_from_state(self, raw_state: str) -> int:
        return self._states.decode(raw_state)

    async def complete_authorization(self, *, code: str, user_id: int) -> TokenRecord:
        """Exchange ``code`` and overwrite whatever was stored for the user."""
        record = await self._oauth.exchange_authorization_code(code)
        if not record.refresh_token:
            logger.warning("Google issued no refresh token for user %s", user_id)
        bundle = record.model_dump(mode="json", exclude_none=True)
        if self._cipher is not None:
            bundle = self._cipher.seal(bundle)
        self._store.set(user_id, bundle)
        return record

    def get_token_record(self, user_id: int) -> Optional[TokenRecord]:
        bundle = self._store.get(user_id)
        if not bundle:
            return None
        try:
            if self._cipher is not None:
                bundle = self._cipher.unseal(bundle)
            return TokenRecord.model_validate(bundle)
        except ValueError as exc:
            logger.warning("Stored OAuth token for user %s is unusable: %s", user_id, exc)
            raise OAuthTokenNotFoundError(
                f"Stored OAuth token for user {user_id} is unusable; reconnect required."
            ) from exc

    async def get_credentials(self, *, user_id: int) -> Credentials:
        """Build per-call Google credentials for a connected user.

        Expired access tokens are refreshed by the Google client library using
        the stored refresh token.
        """
        record = self.get_token_record(user_id)
        if record is None:
            raise OAuthTokenNotFoundError(f"No OAuth token stored for user {user_id}.")

        expiry = None
        if record.expires_at is not None:
            # google-auth compares against naive UTC datetimes.
            expiry = record.expires_at.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(
            token=record.access_token,
            refresh_token=record.refresh_token,
            token_uri=GoogleOAuthClient.TOKEN_URL,
            client_id=self._google.client_id,
            client_secret=self._google.client_secret,
            scopes=list(self._oauth_settings.scopes),
            expiry=expiry,
        )


__all__ = ["GoogleTokenService"]
