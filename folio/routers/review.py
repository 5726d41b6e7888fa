"""Review (spaced repetition) API router."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from folio.config import get_review_settings
from folio.models import (
    DueStatsResponse,
    EntryResponse,
    EntryReviewCountResponse,
    EntryReviewState,
    MarkReviewedRequest,
    MarkReviewedResponse,
    ReviewEvent,
    ReviewEventResponse,
    ReviewHistoryItem,
    ReviewHistoryResponse,
    ReviewQueueResponse,
    ReviewStateResponse,
    SnoozeRequest,
    SnoozeResponse,
    TodayStatsResponse,
)
from folio.repositories import (
    EntryNotFoundError,
    ReviewConflictError,
    get_entry_repository,
    get_review_repository,
)
from folio.routers.dependencies import get_user_id
from folio.srs.queue import QueueRule, build_review_queue
from folio.srs.scheduler import calculate_next_review, create_default_review_state
from folio.srs.snooze import SnoozeError, compute_snooze_due_at
from folio.srs.stats import classify_due, compute_streak
from folio.srs.time import (
    MAX_TZ_OFFSET,
    MIN_TZ_OFFSET,
    parse_iso_z,
    start_of_user_day,
    utc_datetime_to_iso_z,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/review", tags=["review"])

UserId = Annotated[str, Depends(get_user_id)]
TzOffset = Annotated[int, Query(ge=MIN_TZ_OFFSET, le=MAX_TZ_OFFSET, description="Minutes ahead of UTC")]


def _now() -> datetime:
    """Current instant truncated to whole seconds, matching stored timestamps."""
    return parse_iso_z(utc_now_iso())


def _require_entry(entry_id: str, user_id: str):
    try:
        return get_entry_repository().get_by_id(entry_id, user_id)
    except EntryNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Entry not found",
        )


def _state_response(state: EntryReviewState) -> ReviewStateResponse:
    return ReviewStateResponse(**state.model_dump())


@router.get("/queue", response_model=ReviewQueueResponse)
async def get_queue(
    user_id: UserId,
    rule: QueueRule = "due",
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    tzOffset: TzOffset = 0,
) -> ReviewQueueResponse:
    """Return today's review queue for a rule.

    Entries already reviewed since the user's local midnight are left out.
    """
    entry_repo = get_entry_repository()
    review_repo = get_review_repository()
    settings = get_review_settings()
    now = _now()

    start_of_today = start_of_user_day(tzOffset, now)
    today_events = review_repo.list_events_since(user_id, utc_datetime_to_iso_z(start_of_today))
    reviewed_today_ids = {event.entryId for event in today_events}

    entries = entry_repo.list_active(user_id)
    due_ats = {state.entryId: parse_iso_z(state.dueAt) for state in review_repo.list_states(user_id)}

    items = build_review_queue(
        rule,
        entries,
        due_ats,
        reviewed_today_ids,
        now,
        limit,
        new_limit=settings.new_entry_limit(limit),
        new_window_days=settings.new_window_days,
    )
    return ReviewQueueResponse(
        items=[EntryResponse(**entry.model_dump()) for entry in items],
        rule=rule,
        reviewedTodayCount=len(today_events),
    )


@router.post("/mark", response_model=MarkReviewedResponse)
async def mark_reviewed(req: MarkReviewedRequest, user_id: UserId) -> MarkReviewedResponse:
    """Rate an entry and schedule its next review.

    The new state and the review event are written atomically. A concurrent
    review of the same entry makes this call fail with 409.
    """
    _require_entry(req.entryId, user_id)
    review_repo = get_review_repository()

    now = _now()
    now_iso = utc_datetime_to_iso_z(now)

    existing = review_repo.get_state(req.entryId, user_id)
    prev = existing.to_review_state() if existing else create_default_review_state(now)
    next_state = calculate_next_review(prev, req.rating, now)

    if existing:
        state_doc = existing.apply(next_state, now_iso)
    else:
        state_doc = EntryReviewState.from_review_state(req.entryId, user_id, next_state, now_iso)

    event = ReviewEvent(
        userId=user_id,
        entryId=req.entryId,
        rating=req.rating,
        note=req.note,
        reviewedAt=now_iso,
        scheduledDueAt=state_doc.dueAt,
    )

    try:
        review_repo.record_review(state_doc, event)
    except ReviewConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Entry was reviewed concurrently, please retry",
        )

    logger.info(
        f"Review recorded: user={user_id}, entry={req.entryId}, rating={req.rating}, "
        f"interval={state_doc.intervalDays}, ease={state_doc.ease:.2f}, new_due_at={state_doc.dueAt}"
    )

    return MarkReviewedResponse(
        success=True,
        reviewEvent=ReviewEventResponse(**event.model_dump()),
        state=_state_response(state_doc),
    )


@router.get("/history", response_model=ReviewHistoryResponse)
async def get_history(
    user_id: UserId,
    entryId: str | None = None,
    cursor: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ReviewHistoryResponse:
    """Page through review events, newest first.

    ``cursor`` is the ID of the last event of the previous page; the next page
    continues after it in ``(reviewedAt, id)`` order. An unknown cursor starts
    from the newest event.
    """
    entry_repo = get_entry_repository()
    review_repo = get_review_repository()

    cursor_event = review_repo.get_event(cursor, user_id) if cursor else None
    events = review_repo.list_events(user_id, limit + 1, entry_id=entryId, before=cursor_event)
    has_more = len(events) > limit
    page = events[:limit]

    entries = entry_repo.get_many((event.entryId for event in page), user_id)
    items = [
        ReviewHistoryItem(
            reviewEvent=ReviewEventResponse(**event.model_dump()),
            entry=EntryResponse(**entries[event.entryId].model_dump()) if event.entryId in entries else None,
        )
        for event in page
    ]
    return ReviewHistoryResponse(
        items=items,
        nextCursor=page[-1].id if has_more else None,
        hasMore=has_more,
    )


@router.get("/today-stats", response_model=TodayStatsResponse)
async def get_today_stats(user_id: UserId, tzOffset: TzOffset = 0) -> TodayStatsResponse:
    """Today's review count, entry totals and the current review streak."""
    entry_repo = get_entry_repository()
    review_repo = get_review_repository()
    settings = get_review_settings()
    now = _now()

    start_of_today = start_of_user_day(tzOffset, now)
    horizon_start = start_of_today - timedelta(days=settings.streak_horizon_days)
    events = review_repo.list_events_since(user_id, utc_datetime_to_iso_z(horizon_start))
    reviewed_at = [parse_iso_z(event.reviewedAt) for event in events]

    entries = entry_repo.list_active(user_id)
    reviewed_entry_ids = {state.entryId for state in review_repo.list_states(user_id)}

    return TodayStatsResponse(
        reviewedToday=sum(1 for instant in reviewed_at if instant >= start_of_today),
        totalEntries=len(entries),
        starredEntries=sum(1 for entry in entries if entry.isStarred),
        unreviewedEntries=sum(1 for entry in entries if entry.id not in reviewed_entry_ids),
        streak=compute_streak(reviewed_at, tzOffset, now, settings.streak_horizon_days),
    )


@router.get("/due-stats", response_model=DueStatsResponse)
async def get_due_stats(user_id: UserId, tzOffset: TzOffset = 0) -> DueStatsResponse:
    """Count overdue, due-today, upcoming and never-reviewed entries.

    Day boundaries follow the user's local day; upcoming means due after today
    but within the next 24 hours.
    """
    entry_repo = get_entry_repository()
    review_repo = get_review_repository()

    entries = entry_repo.list_active(user_id)
    due_ats = {state.entryId: parse_iso_z(state.dueAt) for state in review_repo.list_states(user_id)}

    stats = classify_due((due_ats.get(entry.id) for entry in entries), tzOffset, _now())
    return DueStatsResponse(
        overdue=stats.overdue,
        dueToday=stats.due_today,
        upcoming=stats.upcoming,
        newCount=stats.new_count,
    )


@router.get("/entries/{entry_id}/count", response_model=EntryReviewCountResponse)
async def get_entry_review_count(entry_id: str, user_id: UserId) -> EntryReviewCountResponse:
    """Number of reviews of an entry, its latest review and its current state."""
    _require_entry(entry_id, user_id)
    review_repo = get_review_repository()

    count = review_repo.count_events_for_entry(entry_id, user_id)
    latest = review_repo.list_events(user_id, 1, entry_id=entry_id)
    state = review_repo.get_state(entry_id, user_id)

    return EntryReviewCountResponse(
        count=count,
        lastReviewedAt=latest[0].reviewedAt if latest else None,
        state=_state_response(state) if state else None,
    )


@router.post("/snooze", response_model=SnoozeResponse)
async def snooze(req: SnoozeRequest, user_id: UserId) -> SnoozeResponse:
    """Postpone an entry's next review.

    Only dueAt changes; interval, ease and counters are left alone. An entry
    without review state gets a default one due at the snooze date. A review
    recorded concurrently makes this call fail with 409.
    """
    _require_entry(req.entryId, user_id)
    review_repo = get_review_repository()

    now = _now()
    now_iso = utc_datetime_to_iso_z(now)
    preset = req.preset or "tomorrow"

    try:
        new_due_at = compute_snooze_due_at(preset, req.tzOffset, now, req.untilAt)
    except SnoozeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    new_due_iso = utc_datetime_to_iso_z(new_due_at)

    existing = review_repo.get_state(req.entryId, user_id)
    if existing:
        state_doc = existing.model_copy(update={"dueAt": new_due_iso, "updatedAt": now_iso})
    else:
        state_doc = EntryReviewState(
            id=req.entryId,
            entryId=req.entryId,
            userId=user_id,
            dueAt=new_due_iso,
            createdAt=now_iso,
            updatedAt=now_iso,
        )
    try:
        review_repo.save_state(state_doc)
    except ReviewConflictError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Entry was reviewed concurrently, please retry",
        )

    logger.info(f"Entry snoozed: user={user_id}, entry={req.entryId}, preset={preset}, new_due_at={new_due_iso}")

    return SnoozeResponse(success=True, entryId=req.entryId, newDueAt=new_due_iso, preset=preset)
