"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OAuthCallbackQuery(BaseModel):
    """Query string Google sends to the redirect URI.

    Both fields are optional here so the route can answer a missing value with
    a readable 400 instead of a validation error body.
    """

    code: Optional[str] = Field(None, description="Authorization code returned by Google OAuth.")
    state: Optional[str] = Field(None, description="State token issued with the consent URL.")
    error: Optional[str] = Field(None, description="Error reported by Google, e.g. access_denied.")


__all__ = ["OAuthCallbackQuery"]
