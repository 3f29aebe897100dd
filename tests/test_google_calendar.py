from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import httplib2
import pytest
from googleapiclient.errors import HttpError

from goodmemory.clients import google_calendar
from goodmemory.clients.google_calendar import (
    CalendarEvent,
    CalendarWriteError,
    GoogleCalendarClient,
)

START = datetime(2026, 5, 14, 19, 0, tzinfo=timezone.utc)
EVENT = CalendarEvent(
    summary="Reminder",
    description="Pay rent",
    start=START,
    end=START + timedelta(minutes=30),
    timezone_name="UTC",
)


def _http_error(status: int, body: bytes) -> HttpError:
    return HttpError(httplib2.Response({"status": status}), body)


class FakeService:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.inserted: list[tuple[str, dict]] = []

    def events(self):
        return self

    def insert(self, *, calendarId, body):
        self.inserted.append((calendarId, body))
        return self

    def execute(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture()
def fake_build(monkeypatch):
    holder: dict[str, FakeService] = {}

    def install(outcome) -> FakeService:
        service = FakeService(outcome)
        holder["service"] = service
        monkeypatch.setattr(
            google_calendar, "build", lambda *args, **kwargs: holder["service"]
        )
        return service

    return install


@pytest.mark.anyio
async def test_create_event_inserts_into_primary_calendar(fake_build) -> None:
    service = fake_build({"id": "evt-1", "htmlLink": "https://calendar.google.com/e/1"})

    created = await GoogleCalendarClient().create_event(object(), EVENT)

    assert created.event_id == "evt-1"
    assert created.html_link == "https://calendar.google.com/e/1"
    calendar_id, body = service.inserted[0]
    assert calendar_id == "primary"
    assert body["start"] == {"dateTime": START.isoformat(), "timeZone": "UTC"}


@pytest.mark.anyio
async def test_create_event_surfaces_provider_message(fake_build) -> None:
    payload = json.dumps({"error": {"code": 403, "message": "Rate Limit Exceeded"}})
    fake_build(_http_error(403, payload.encode()))

    with pytest.raises(CalendarWriteError, match="^Rate Limit Exceeded$"):
        await GoogleCalendarClient().create_event(object(), EVENT)


@pytest.mark.anyio
async def test_create_event_wraps_other_failures(fake_build) -> None:
    fake_build(RuntimeError("refresh failed"))

    with pytest.raises(CalendarWriteError, match="refresh failed"):
        await GoogleCalendarClient().create_event(object(), EVENT)


def test_provider_message_falls_back_for_non_json_body() -> None:
    error = _http_error(500, b"<html>oops</html>")

    assert google_calendar._provider_message(error) == str(error)
