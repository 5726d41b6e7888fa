"""Simplified SM-2 review scheduler.

A rating moves an entry's review state forward:

- again: interval = 1, ease -= 0.20, lapses += 1
- hard:  interval = base * 1.2, ease -= 0.15
- good:  interval = base * ease (first review = 1)
- easy:  interval = base * ease * 1.3 (first review = 2), ease += 0.10

where base is the previous interval, or 1 when the entry has never been
reviewed. Ease is clamped to [1.3, 3.0] after the adjustment and the interval
is never below one day. Intervals are rounded half away from zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from .time import ensure_utc, utc_now

Rating = Literal["again", "hard", "good", "easy"]

RATINGS: tuple[Rating, ...] = ("again", "hard", "good", "easy")

MIN_EASE = 1.3
MAX_EASE = 3.0
DEFAULT_EASE = 2.5


@dataclass(frozen=True)
class ReviewState:
    due_at: datetime
    last_reviewed_at: datetime | None
    interval_days: float
    ease: float
    reps: int
    lapses: int


DEFAULT_REVIEW_STATE = {
    "interval_days": 0,
    "ease": DEFAULT_EASE,
    "reps": 0,
    "lapses": 0,
}


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def create_default_review_state(now: datetime | None = None) -> ReviewState:
    """Return the state used as input for an entry's first review."""
    if now is None:
        now = utc_now()
    return ReviewState(due_at=ensure_utc(now), last_reviewed_at=None, **DEFAULT_REVIEW_STATE)


def calculate_next_review(
    prev: ReviewState, rating: Rating, now: datetime | None = None
) -> ReviewState:
    """Compute the review state that follows ``prev`` after ``rating`` at ``now``.

    Non-positive intervals (never reviewed, or corrupt data) fall back to a base
    of one day. Fractional positive intervals are used as-is before rounding.

    Raises:
        ValueError: If rating is not one of RATINGS.
    """
    if rating not in RATINGS:
        raise ValueError(f"Invalid rating: {rating!r}")

    now = utc_now() if now is None else ensure_utc(now)

    ease = prev.ease
    interval = prev.interval_days
    reps = prev.reps + 1
    lapses = prev.lapses

    # Keeps a zero interval from staying at zero after multiplication
    first_review = interval <= 0
    base_interval = 1 if first_review else interval

    if rating == "again":
        lapses += 1
        ease -= 0.2
        interval = 1
    elif rating == "hard":
        ease -= 0.15
        interval = _round_half_away(base_interval * 1.2)
    elif rating == "good":
        interval = 1 if first_review else _round_half_away(base_interval * ease)
    else:
        # uses the ease from before the bonus
        interval = 2 if first_review else _round_half_away(base_interval * ease * 1.3)
        ease += 0.1

    ease = clamp(ease, MIN_EASE, MAX_EASE)
    interval = max(1, interval)

    return ReviewState(
        due_at=now + timedelta(days=interval),
        last_reviewed_at=now,
        interval_days=interval,
        ease=ease,
        reps=reps,
        lapses=lapses,
    )
