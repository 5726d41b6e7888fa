"""SRS helpers (scheduler, day boundaries, statistics, queues)."""

from .scheduler import (
    DEFAULT_REVIEW_STATE,
    RATINGS,
    Rating,
    ReviewState,
    calculate_next_review,
    clamp,
    create_default_review_state,
)
from .time import (
    MAX_TZ_OFFSET,
    MIN_TZ_OFFSET,
    end_of_user_day,
    parse_iso_z,
    start_of_user_day,
    user_local_date,
    utc_datetime_to_iso_z,
    utc_now,
    utc_now_iso,
)
from .stats import STREAK_HORIZON_DAYS, DueStats, classify_due, compute_streak
from .queue import QueueRule, build_review_queue
from .snooze import SnoozeError, SnoozePreset, compute_snooze_due_at

__all__ = [
    "DEFAULT_REVIEW_STATE",
    "RATINGS",
    "Rating",
    "ReviewState",
    "calculate_next_review",
    "clamp",
    "create_default_review_state",
    "MAX_TZ_OFFSET",
    "MIN_TZ_OFFSET",
    "end_of_user_day",
    "parse_iso_z",
    "start_of_user_day",
    "user_local_date",
    "utc_datetime_to_iso_z",
    "utc_now",
    "utc_now_iso",
    "STREAK_HORIZON_DAYS",
    "DueStats",
    "classify_due",
    "compute_streak",
    "QueueRule",
    "build_review_queue",
    "SnoozeError",
    "SnoozePreset",
    "compute_snooze_due_at",
]
