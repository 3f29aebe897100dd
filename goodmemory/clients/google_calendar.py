"""Google Calendar client wrapper for creating reminder and meeting events."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


class CalendarWriteError(Exception):
    """Raised when Google Calendar refuses or fails to create an event."""


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    """Event about to be written to the user's primary calendar."""

    summary: str
    description: str
    start: datetime
    end: datetime
    timezone_name: Optional[str] = None

    def to_body(self) -> dict[str, Any]:
        def _moment(value: datetime) -> dict[str, str]:
            moment = {"dateTime": value.isoformat()}
            if self.timezone_name:
                moment["timeZone"] = self.timezone_name
            return moment

        return {
            "summary": self.summary,
            "description": self.description,
            "start": _moment(self.start),
            "end": _moment(self.end),
        }


@dataclass(frozen=True, slots=True)
class CreatedEvent:
    event_id: str
    html_link: str


class GoogleCalendarClient:
    """Insert events with caller-supplied credentials.

    There is no retry: each call is exactly one ``events.insert`` request and
    a repeated call creates another event.
    """

    CALENDAR_ID = "primary"

    async def create_event(
        self, credentials: Credentials, event: CalendarEvent
    ) -> CreatedEvent:
        def _execute_insert() -> dict[str, Any]:
            service = build(
                "calendar", "v3", credentials=credentials, cache_discovery=False
            )
            return (
                service.events()
                .insert(calendarId=self.CALENDAR_ID, body=event.to_body())
                .execute()
            )

        try:
            created = await asyncio.to_thread(_execute_insert)
        except HttpError as exc:
            raise CalendarWriteError(_provider_message(exc)) from exc
        except Exception as exc:
            raise CalendarWriteError(str(exc) or exc.__class__.__name__) from exc

        logger.info("Created calendar event %s", created.get("id"))
        return CreatedEvent(
            event_id=created.get("id", ""),
            html_link=created.get("htmlLink", ""),
        )


def _provider_message(error: HttpError) -> str:
    """Extract Google's ``error.message`` from an API error body."""
    try:
        content = json.loads(error.content.decode("utf-8"))
    except (json.JSONDecodeError, AttributeError, UnicodeDecodeError):
        return str(error)
    if isinstance(content, dict):
        info = content.get("error")
        if isinstance(info, dict) and info.get("message"):
            return str(info["message"])
    return str(error)


__all__ = [
    "CalendarEvent",
    "CalendarWriteError",
    "CreatedEvent",
    "GoogleCalendarClient",
]
