from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from goodmemory.clients.google_auth import (
    GoogleOAuthClient,
    InvalidOAuthStateError,
    OAuthStateCodec,
    OAuthTokenNotFoundError,
)
from goodmemory.clients.token_store import TokenFileStore
from goodmemory.core.config import GoogleSettings, OAuthSettings
from goodmemory.models.oauth import TokenRecord
from goodmemory.services.google_tokens import GoogleTokenService
from goodmemory.services.token_cipher import TokenCipherService

EXPIRES_AT = datetime(2026, 5, 14, 11, 0, tzinfo=timezone.utc)


class DummyOAuthClient:
    def __init__(self) -> None:
        self.codes: list[str] = []
        self.states: list[str] = []
        self.records: list[TokenRecord] = []

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://oauth.example.com/auth?state={state}"

    async def exchange_authorization_code(self, code: str) -> TokenRecord:
        self.codes.append(code)
        if self.records:
            return self.records.pop(0)
        return TokenRecord(
            access_token=f"access-{code}",
            refresh_token=f"refresh-{code}",
            expires_at=EXPIRES_AT,
            scope="https://www.googleapis.com/auth/calendar",
            token_type="Bearer",
        )


def _service(tmp_path, *, cipher: TokenCipherService | None = None):
    oauth_client = DummyOAuthClient()
    store = TokenFileStore(str(tmp_path / "tokens.json"))
    service = GoogleTokenService(
        store=store,
        oauth_client=oauth_client,
        state_codec=OAuthStateCodec(clock=lambda: 1_700_000_000),
        google_settings=GoogleSettings(
            GOOGLE_CLIENT_ID="client", GOOGLE_CLIENT_SECRET="secret"
        ),
        oauth_settings=OAuthSettings(),
        token_cipher=cipher,
    )
    return service, store, oauth_client


def test_authorization_url_carries_user_state(tmp_path) -> None:
    service, _, oauth_client = _service(tmp_path)

    url = service.authorization_url(42)

    state = oauth_client.states[-1]
    assert state.startswith("42:1700000000:")
    assert state in url
    assert service.user_id_from_state(state) == 42


def test_each_authorization_gets_a_fresh_nonce(tmp_path) -> None:
    service, _, oauth_client = _service(tmp_path)

    service.authorization_url(42)
    service.authorization_url(42)

    assert oauth_client.states[0] != oauth_client.states[1]


@pytest.mark.anyio
async def test_complete_authorization_persists_bundle(tmp_path) -> None:
    service, store, oauth_client = _service(tmp_path)

    await service.complete_authorization(code="c1", user_id=42)

    assert oauth_client.codes == ["c1"]
    stored = store.get(42)
    assert stored["access_token"] == "access-c1"
    assert stored["refresh_token"] == "refresh-c1"
    assert stored["expires_at"].startswith("2026-05-14T11:00:00")


@pytest.mark.anyio
async def test_reconnect_overwrites_previous_bundle(tmp_path) -> None:
    service, store, oauth_client = _service(tmp_path)
    await service.complete_authorization(code="c1", user_id=42)

    oauth_client.records.append(TokenRecord(access_token="only-access"))
    await service.complete_authorization(code="c2", user_id=42)

    assert store.get(42) == {"access_token": "only-access"}


@pytest.mark.anyio
async def test_encrypted_store_holds_no_plaintext_secrets(tmp_path) -> None:
    cipher = TokenCipherService(secret="at-rest-key")
    service, store, _ = _service(tmp_path, cipher=cipher)

    await service.complete_authorization(code="c1", user_id=42)

    raw = store.path.read_text(encoding="utf-8")
    assert "access-c1" not in raw
    assert "refresh-c1" not in raw
    assert json.loads(raw)["42"]["encrypted"] is True

    credentials = await service.get_credentials(user_id=42)
    assert credentials.token == "access-c1"
    assert credentials.refresh_token == "refresh-c1"


@pytest.mark.anyio
async def test_get_credentials_builds_refreshable_credentials(tmp_path) -> None:
    service, _, _ = _service(tmp_path)
    await service.complete_authorization(code="c1", user_id=42)

    credentials = await service.get_credentials(user_id=42)

    assert credentials.token == "access-c1"
    assert credentials.refresh_token == "refresh-c1"
    assert credentials.client_id == "client"
    assert credentials.client_secret == "secret"
    assert credentials.token_uri == GoogleOAuthClient.TOKEN_URL
    assert credentials.expiry == EXPIRES_AT.replace(tzinfo=None)
    assert credentials.scopes == ["https://www.googleapis.com/auth/calendar"]


@pytest.mark.anyio
async def test_get_credentials_without_token_raises(tmp_path) -> None:
    service, _, _ = _service(tmp_path)

    with pytest.raises(OAuthTokenNotFoundError):
        await service.get_credentials(user_id=42)


@pytest.mark.anyio
async def test_undecryptable_token_counts_as_missing(tmp_path) -> None:
    writer, store, _ = _service(tmp_path, cipher=TokenCipherService(secret="old"))
    await writer.complete_authorization(code="c1", user_id=42)

    reader = GoogleTokenService(
        store=store,
        oauth_client=DummyOAuthClient(),
        state_codec=OAuthStateCodec(),
        google_settings=GoogleSettings(
            GOOGLE_CLIENT_ID="client", GOOGLE_CLIENT_SECRET="secret"
        ),
        oauth_settings=OAuthSettings(),
        token_cipher=TokenCipherService(secret="new"),
    )

    with pytest.raises(OAuthTokenNotFoundError):
        await reader.get_credentials(user_id=42)


@pytest.mark.parametrize(
    "state",
    ["", "abc:1:n", "0:1:n", "-5:1:n", ":1:n", "+5:1:n", "1_0:1:n", "\uff15:1:n"],
)
def test_user_id_from_state_rejects_bad_values(tmp_path, state: str) -> None:
    service, _, _ = _service(tmp_path)

    with pytest.raises(InvalidOAuthStateError):
        service.user_id_from_state(state)


def test_user_id_from_state_accepts_percent_encoded_and_bare_values(tmp_path) -> None:
    service, _, _ = _service(tmp_path)

    assert service.user_id_from_state("42%3A1700000000%3Aabc") == 42
    assert service.user_id_from_state("42") == 42
