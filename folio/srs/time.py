"""UTC time helpers for review scheduling.

All ISO strings produced by this module are UTC and end with 'Z', with second precision:
YYYY-MM-DDTHH:MM:SSZ

User-local day boundaries are derived from a client-supplied offset in minutes
(positive = ahead of UTC). Offsets are fixed, so there is no DST handling.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

MIN_TZ_OFFSET = -720
MAX_TZ_OFFSET = 840

ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    """Return timezone-aware UTC 'now'."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return current time as UTC ISO string with second precision and trailing 'Z'."""
    return utc_datetime_to_iso_z(utc_now())


def ensure_utc(dt: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_datetime_to_iso_z(dt: datetime) -> str:
    """Format a datetime as UTC ISO string with second precision and trailing 'Z'."""
    dt = ensure_utc(dt).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def parse_iso_z(s: str) -> datetime:
    """Parse an ISO-8601 string ending with 'Z' (or '+00:00') into UTC datetime.

    Accepts both second precision and fractional seconds.
    """
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(s))


def start_of_user_day(tz_offset_minutes: int, reference: datetime | None = None) -> datetime:
    """Return the UTC instant of local midnight for a user at UTC+tz_offset_minutes.

    The reference instant is shifted into the user's wall clock, truncated to
    00:00:00.000000 and shifted back.
    """
    if reference is None:
        reference = utc_now()
    shift = timedelta(minutes=tz_offset_minutes)
    local = ensure_utc(reference) + shift
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - shift


def end_of_user_day(tz_offset_minutes: int, reference: datetime | None = None) -> datetime:
    """Return the last representable instant of the user's local day (inclusive bound)."""
    return start_of_user_day(tz_offset_minutes, reference) + ONE_DAY - timedelta(microseconds=1)


def user_local_date(instant: datetime, tz_offset_minutes: int) -> date:
    """Return the calendar date of an instant on the user's wall clock."""
    return (ensure_utc(instant) + timedelta(minutes=tz_offset_minutes)).date()
