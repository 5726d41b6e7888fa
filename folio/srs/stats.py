"""Due-date classification and review streaks in the user's local time.

This is a pure computation module with no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .time import ONE_DAY, end_of_user_day, ensure_utc, start_of_user_day, user_local_date, utc_now

STREAK_HORIZON_DAYS = 365


@dataclass(frozen=True)
class DueStats:
    """Counts of entries per due bucket.

    The buckets are mutually exclusive but do not cover everything: an entry
    due in three days is in none of them.
    """

    overdue: int = 0
    due_today: int = 0
    upcoming: int = 0
    new_count: int = 0


def classify_due(
    due_ats: Iterable[datetime | None],
    tz_offset_minutes: int,
    now: datetime | None = None,
) -> DueStats:
    """Bucket due instants relative to the user's current local day.

    Each item is one entry's due instant, or None for an entry that has never
    been reviewed.

    - overdue:   due_at < start of today
    - due_today: start of today <= due_at <= end of today
    - upcoming:  end of today < due_at <= now + 24h
    - new:       None
    """
    now = utc_now() if now is None else ensure_utc(now)
    start = start_of_user_day(tz_offset_minutes, now)
    end = end_of_user_day(tz_offset_minutes, now)
    next_24h = now + ONE_DAY

    overdue = due_today = upcoming = new_count = 0
    for due_at in due_ats:
        if due_at is None:
            new_count += 1
            continue
        due_at = ensure_utc(due_at)
        if due_at < start:
            overdue += 1
        elif due_at <= end:
            due_today += 1
        elif due_at <= next_24h:
            upcoming += 1

    return DueStats(overdue=overdue, due_today=due_today, upcoming=upcoming, new_count=new_count)


def compute_streak(
    review_instants: Iterable[datetime],
    tz_offset_minutes: int,
    now: datetime | None = None,
    horizon_days: int = STREAK_HORIZON_DAYS,
) -> int:
    """Count consecutive user-local days with at least one review.

    Counting starts today when today already has a review, otherwise
    yesterday, so an open streak is not broken before the day is over. At most
    ``horizon_days`` days are counted. Reviews after ``now`` are ignored.
    """
    now = utc_now() if now is None else ensure_utc(now)
    review_dates = {
        user_local_date(instant, tz_offset_minutes)
        for instant in review_instants
        if ensure_utc(instant) <= now
    }
    if not review_dates:
        return 0

    day = user_local_date(now, tz_offset_minutes)
    if day not in review_dates:
        day -= ONE_DAY

    streak = 0
    for _ in range(horizon_days):
        if day not in review_dates:
            break
        streak += 1
        day -= ONE_DAY
    return streak
