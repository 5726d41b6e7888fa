"""Review queue selection.

Builds the list of entries to review for one of the queue rules. Entries that
already have a review event today are never offered again the same day.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Literal

from .time import ensure_utc, parse_iso_z

if TYPE_CHECKING:
    from folio.models import Entry


QueueRule = Literal["due", "new", "starred", "unreviewed", "all"]


def _newest_created_first(entries: list[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda e: parse_iso_z(e.createdAt), reverse=True)


def _newest_updated_first(entries: list[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda e: parse_iso_z(e.updatedAt), reverse=True)


def build_review_queue(
    rule: QueueRule,
    entries: Sequence[Entry],
    due_ats: Mapping[str, datetime],
    reviewed_today_ids: Collection[str],
    now: datetime,
    limit: int,
    new_limit: int,
    new_window_days: int = 7,
) -> list[Entry]:
    """Select up to ``limit`` entries for review.

    Args:
        rule: Queue rule
        entries: The user's live (not deleted) entries
        due_ats: Due instant per entry ID, for entries that have review state
        reviewed_today_ids: Entry IDs already reviewed today
        now: Current instant
        limit: Maximum queue length
        new_limit: Maximum never-reviewed entries used to fill a short due queue
        new_window_days: How far back the "new" rule looks at creation dates

    Returns:
        The queue, in presentation order
    """
    now = ensure_utc(now)
    candidates = [e for e in entries if e.id not in reviewed_today_ids]
    unreviewed = [e for e in candidates if e.id not in due_ats]

    if rule == "due":
        due = [e for e in candidates if e.id in due_ats and ensure_utc(due_ats[e.id]) <= now]
        due.sort(key=lambda e: ensure_utc(due_ats[e.id]))
        items = due[:limit]
        if len(items) < limit:
            remaining = min(new_limit, limit - len(items))
            items += _newest_created_first(unreviewed)[:remaining]
        return items

    if rule == "new":
        since = now - timedelta(days=new_window_days)
        recent = [e for e in unreviewed if parse_iso_z(e.createdAt) >= since]
        return _newest_created_first(recent)[:limit]

    if rule == "starred":
        return _newest_updated_first([e for e in candidates if e.isStarred])[:limit]

    if rule == "unreviewed":
        return _newest_created_first(unreviewed)[:limit]

    if rule == "all":
        return _newest_updated_first(candidates)[:limit]

    raise ValueError(f"Invalid queue rule: {rule}")
