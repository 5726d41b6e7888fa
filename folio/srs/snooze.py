"""Snooze presets: postpone an entry's next review."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Literal

from .time import ONE_DAY, ensure_utc, start_of_user_day, utc_now

SnoozePreset = Literal["tomorrow", "3days", "7days", "custom"]

# Days added on top of the start of the user's next local day
_PRESET_EXTRA_DAYS: dict[str, int] = {
    "tomorrow": 0,
    "3days": 2,
    "7days": 6,
}


class SnoozeError(ValueError):
    """Raised when a snooze request cannot produce a future due date."""

    pass


def compute_snooze_due_at(
    preset: SnoozePreset,
    tz_offset_minutes: int,
    now: datetime | None = None,
    until_at: datetime | None = None,
) -> datetime:
    """Return the new due instant for a snoozed entry.

    Preset snoozes land on a local midnight: "tomorrow" is the start of the
    user's next day, "3days" and "7days" count from there. "custom" uses
    ``until_at`` as given.

    Raises:
        SnoozeError: If a custom snooze has no date or its date is not in the future.
    """
    now = utc_now() if now is None else ensure_utc(now)

    if preset == "custom":
        if until_at is None:
            raise SnoozeError("untilAt is required for a custom snooze")
        until_at = ensure_utc(until_at)
        if until_at <= now:
            raise SnoozeError("Snooze date must be in the future")
        return until_at

    if preset not in _PRESET_EXTRA_DAYS:
        raise SnoozeError(f"Invalid snooze preset: {preset}")

    start_of_tomorrow = start_of_user_day(tz_offset_minutes, now) + ONE_DAY
    return start_of_tomorrow + timedelta(days=_PRESET_EXTRA_DAYS[preset])
