"""In-memory store of the one pending draft each user may have."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

PREVIEW_LIMIT = 200


class Intent(str, Enum):
    """What the user wants the forwarded message to become."""

    REMINDER = "REMINDER"
    MEETING = "MEETING"


@dataclass(slots=True)
class Draft:
    """A forwarded message on its way to becoming a calendar event."""

    user_id: int
    text: str
    source_chat_title: Optional[str] = None
    source_sender_name: Optional[str] = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reminder_time: Optional[datetime] = None
    meeting_time: Optional[datetime] = None

    def preview(self, limit: int = PREVIEW_LIMIT) -> str:
        return self.text[:limit]

    def time_for(self, intent: Intent) -> Optional[datetime]:
        if intent is Intent.REMINDER:
            return self.reminder_time
        return self.meeting_time

    def set_time(self, intent: Intent, when: datetime) -> None:
        if intent is Intent.REMINDER:
            self.reminder_time = when
        else:
            self.meeting_time = when

    def clear_time(self, intent: Intent) -> None:
        if intent is Intent.REMINDER:
            self.reminder_time = None
        else:
            self.meeting_time = None


class DraftStore:
    """Process-wide ``user id -> Draft`` map with last-write-wins semantics.

    Nothing is locked and nothing survives a restart.
    """

    def __init__(self) -> None:
        self._drafts: Dict[int, Draft] = {}

    def get(self, user_id: int) -> Optional[Draft]:
        return self._drafts.get(user_id)

    def replace(self, draft: Draft) -> None:
        """Store ``draft``, discarding any draft the user already had."""
        self._drafts[draft.user_id] = draft


__all__ = ["Draft", "DraftStore", "Intent", "PREVIEW_LIMIT"]
