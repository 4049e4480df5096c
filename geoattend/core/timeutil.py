"""Timezone helpers. Attendance "days" are local to ATTENDANCE_TIMEZONE."""
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from geoattend.core.config import settings


def get_tz(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.ATTENDANCE_TIMEZONE)


def now_utc() -> datetime:
    """Current UTC time. Wrapped so tests can patch it."""
    return datetime.now(pytz.utc)


def local_today(tz_name: Optional[str] = None) -> date:
    return now_utc().astimezone(get_tz(tz_name)).date()


def day_bounds(start: date, end: Optional[date] = None, tz_name: Optional[str] = None) -> tuple[str, str]:
    """UTC ISO strings for local ``start`` 00:00:00 through ``end`` 23:59:59.999999."""
    tz = get_tz(tz_name)
    end = end or start
    start_dt = tz.localize(datetime.combine(start, time.min))
    end_dt = tz.localize(datetime.combine(end + timedelta(days=1), time.min)) - timedelta(microseconds=1)
    return start_dt.astimezone(pytz.utc).isoformat(), end_dt.astimezone(pytz.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse a backend timestamp (ISO 8601, possibly with a trailing Z)."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt


def to_local(value: str, tz_name: Optional[str] = None) -> datetime:
    return parse_timestamp(value).astimezone(get_tz(tz_name))


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()
