"""
Domain models for OAuth token persistence.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenRecord(BaseModel):
    """Token bundle issued by Google for one Telegram user.

    Unknown provider fields (``id_token`` and friends) are kept as-is so the
    bundle written to disk matches what Google returned.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = Field(
        None, description="Absolute expiry of the access token (UTC)."
    )
    scope: Optional[str] = None
    token_type: Optional[str] = None


__all__ = ["TokenRecord"]
