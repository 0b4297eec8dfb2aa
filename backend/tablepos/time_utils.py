from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context


DEFAULT_BUSINESS_TIMEZONE = "Europe/Istanbul"


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def business_timezone() -> ZoneInfo:
    """Zone that defines the calendar day of the restaurant."""
    name = DEFAULT_BUSINESS_TIMEZONE
    if has_app_context():
        name = current_app.config.get("BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE)
    return ZoneInfo(name)


def business_today() -> date:
    """Current calendar date in the business time zone."""
    return datetime.now(business_timezone()).date()


def start_of_business_day_utc(day: date | None = None) -> datetime:
    """
    Local midnight of `day` (default: today) expressed as a UTC-naive datetime.

    Used as the lower bound for "sold today" comparisons against stored
    UTC-naive timestamps.
    """
    day = day or business_today()
    local_midnight = datetime.combine(day, time.min, tzinfo=business_timezone())
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse "YYYY-MM-DD"; None / "" -> None."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return date.fromisoformat(s)


def parse_range_bound(value: Optional[str], *, end: bool) -> Optional[datetime]:
    """
    Parse a dateFrom/dateTo query value into a UTC-naive bound.

    A bare "YYYY-MM-DD" is a business-local day: as a lower bound it means
    local midnight, as an upper bound the whole day is included.
    Full datetimes go through parse_iso_datetime unchanged.
    """
    if value is None or not value.strip():
        return None
    s = value.strip()
    if len(s) == 10:
        day = date.fromisoformat(s)
        if end:
            return start_of_business_day_utc(day + timedelta(days=1)) - timedelta(microseconds=1)
        return start_of_business_day_utc(day)
    return parse_iso_datetime(s)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
