"""Symmetric encryption for token bundles kept in the token file."""

from __future__ import annotations

import base64
import hashlib
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

ENCRYPTED_FLAG = "encrypted"
SECRET_FIELDS = ("access_token", "refresh_token")


class TokenCipherService:
    """Encrypt the secret fields of a token bundle with a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt stored token; was TOKEN_ENCRYPTION_SECRET changed?"
            ) from exc
        return plaintext.decode("utf-8")

    def seal(self, bundle: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``bundle`` with its secret fields encrypted."""
        sealed = dict(bundle)
        for name in SECRET_FIELDS:
            value = sealed.get(name)
            if value:
                sealed[name] = self.encrypt(value)
        sealed[ENCRYPTED_FLAG] = True
        return sealed

    def unseal(self, bundle: dict[str, Any]) -> dict[str, Any]:
        """Inverse of :meth:`seal`; bundles without the flag pass through."""
        opened = dict(bundle)
        if not opened.pop(ENCRYPTED_FLAG, False):
            return opened
        for name in SECRET_FIELDS:
            value = opened.get(name)
            if value:
                opened[name] = self.decrypt(value)
        return opened


__all__ = ["ENCRYPTED_FLAG", "TokenCipherService"]
