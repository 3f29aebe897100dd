"""Quick time buttons and how each one turns into an absolute moment."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

TONIGHT_HOUR = 19
MORNING_HOUR = 9


class TimeChoice(str, Enum):
    PLUS_1H = "PLUS_1H"
    TONIGHT = "TONIGHT"
    TOMORROW_MORNING = "TOMORROW_MORNING"
    CUSTOM = "CUSTOM"


TIME_CHOICE_LABELS = {
    TimeChoice.PLUS_1H: "🕒 In 1 hour",
    TimeChoice.TONIGHT: "🌆 Tonight at 19:00",
    TimeChoice.TOMORROW_MORNING: "🌅 Tomorrow at 09:00",
    TimeChoice.CUSTOM: "📅 Pick a date and time",
}


def _today_at(now: datetime, hour: int) -> datetime:
    """``hour``:00 today, or tomorrow when that moment is already past."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate < now:
        candidate += timedelta(days=1)
    return candidate


def resolve_time_choice(choice: TimeChoice, now: datetime) -> datetime:
    """Resolve a quick choice relative to ``now`` (timezone-aware, local zone).

    ``CUSTOM`` has no resolution and raises ``ValueError``.
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")

    if choice is TimeChoice.PLUS_1H:
        later = now.astimezone(timezone.utc) + timedelta(hours=1)
        return later.astimezone(now.tzinfo)
    if choice is TimeChoice.TONIGHT:
        return _today_at(now, TONIGHT_HOUR)
    if choice is TimeChoice.TOMORROW_MORNING:
        tomorrow = now + timedelta(days=1)
        return tomorrow.replace(hour=MORNING_HOUR, minute=0, second=0, microsecond=0)
    raise ValueError(f"{choice.value} has no automatic resolution")


def _named_zone(name: str) -> tzinfo | None:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def host_timezone(localtime_path: str = "/etc/localtime") -> tzinfo:
    """The host's IANA zone, so wall-clock rules follow its DST changes.

    Looks at ``TZ`` first, then at where ``/etc/localtime`` points. Falls back
    to UTC when the host zone cannot be determined.
    """
    name = os.environ.get("TZ", "").lstrip(":")
    if name:
        zone = _named_zone(name)
        if zone is not None:
            return zone
        logger.warning("TZ=%r is not a known time zone; ignoring it", name)

    path = Path(localtime_path)
    target = str(path.resolve())
    if "zoneinfo/" in target:
        zone = _named_zone(target.split("zoneinfo/", 1)[1])
        if zone is not None:
            return zone
    try:
        with path.open("rb") as handle:
            return ZoneInfo.from_file(handle)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read host time zone from %s, using UTC: %s", path, exc)
        return timezone.utc


def format_moment(moment: datetime) -> str:
    return moment.strftime("%a %d %b %Y, %H:%M %Z").strip()


__all__ = [
    "MORNING_HOUR",
    "TIME_CHOICE_LABELS",
    "TONIGHT_HOUR",
    "TimeChoice",
    "format_moment",
    "host_timezone",
    "resolve_time_choice",
]
