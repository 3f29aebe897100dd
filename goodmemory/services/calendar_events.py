"""Shape drafts into calendar events."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from goodmemory.clients.google_calendar import CalendarEvent
from goodmemory.services.drafts import Intent

REMINDER_DURATION = timedelta(minutes=30)
MEETING_DURATION = timedelta(minutes=60)
REMINDER_TITLE = "Reminder"
MEETING_FALLBACK_TITLE = "Meeting"
MEETING_TITLE_LIMIT = 60


def meeting_title(text: str) -> str:
    title = text.strip()[:MEETING_TITLE_LIMIT]
    return title or MEETING_FALLBACK_TITLE


def build_event(
    intent: Intent,
    text: str,
    start: datetime,
    timezone_name: Optional[str] = None,
) -> CalendarEvent:
    if intent is Intent.REMINDER:
        return CalendarEvent(
            summary=REMINDER_TITLE,
            description=text,
            start=start,
            end=start + REMINDER_DURATION,
            timezone_name=timezone_name,
        )
    return CalendarEvent(
        summary=meeting_title(text),
        description=text,
        start=start,
        end=start + MEETING_DURATION,
        timezone_name=timezone_name,
    )


__all__ = [
    "MEETING_DURATION",
    "MEETING_FALLBACK_TITLE",
    "REMINDER_DURATION",
    "REMINDER_TITLE",
    "build_event",
    "meeting_title",
]
