from __future__ import annotations

import re
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from ..core.constants import ATTENDANCE_TIMEZONE, DATE_FORMAT

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date.

    strptime alone accepts unpadded fields such as 2024-6-1; those are rejected.
    """
    if not _ISO_DATE_RE.fullmatch(value):
        raise ValueError(f"not a YYYY-MM-DD date: {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()


def format_iso_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def now_utc() -> datetime:
    """Current aware UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def local_now(now: datetime | None = None) -> datetime:
    """``now`` converted to the attendance timezone.

    Naive datetimes are treated as UTC so the server's local zone never leaks in.
    """
    now = now or now_utc()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(ATTENDANCE_TIMEZONE))


def attendance_today(now: datetime | None = None) -> date:
    """Calendar date in the attendance timezone at instant ``now``."""
    return local_now(now).date()


def weekday_name(value: date) -> str:
    # Locale independent, unlike strftime("%A")
    return _DAY_NAMES[value.weekday()]
