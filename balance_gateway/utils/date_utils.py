"""Date manipulation utilities"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_iso_date(value: str | date | None) -> Optional[date]:
    """Parse "YYYY-MM-DD" or a full ISO-8601 timestamp into a date"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if len(value) == 10:
        return date.fromisoformat(value)
    # Backend timestamps use a trailing Z for UTC
    return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


def parse_time_of_day(value: str | None) -> Optional[time]:
    """Parse "HH:MM"; empty input means no time was given"""
    if not value:
        return None
    if not TIME_OF_DAY_PATTERN.match(value):
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def to_utc_instant(day: date, time_of_day: Optional[time], tz_name: str) -> str:
    """
    Normalize a local calendar date (and optional time) to a UTC instant.

    Midnight is used when no time is given. Output is ISO-8601 with
    millisecond precision and a trailing Z, e.g. 2024-06-10T06:00:00.000Z.
    """
    local = datetime.combine(day, time_of_day or time(0, 0), tzinfo=ZoneInfo(tz_name))
    return format_instant(local)


def format_instant(moment: datetime) -> str:
    """Datetime as a UTC ISO-8601 string with milliseconds and Z; naive means UTC"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    instant = moment.astimezone(timezone.utc)
    return instant.strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing Z or a missing offset means UTC"""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def calendar_horizon(start: date, days: int) -> Tuple[date, date]:
    """Date window covering `days` days from start (inclusive)"""
    return start, start + timedelta(days=days)


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()
