"""Models for review state, review events and the review endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from folio.models.entry import EntryResponse, generate_uuid
from folio.srs.queue import QueueRule
from folio.srs.scheduler import DEFAULT_EASE, Rating, ReviewState
from folio.srs.snooze import SnoozePreset
from folio.srs.time import MAX_TZ_OFFSET, MIN_TZ_OFFSET, parse_iso_z, utc_datetime_to_iso_z, utc_now_iso


class EntryReviewState(BaseModel):
    """Scheduling snapshot of one entry, as stored in the reviews container.

    The document ID is the entry ID. ``etag`` carries Cosmos' ``_etag`` for
    conditional replaces and is never written back.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Same as entryId")
    docType: Literal["reviewState"] = "reviewState"
    entryId: str
    userId: str = Field(..., description="Owner user ID (partition key)")
    dueAt: str = Field(..., description="Next due timestamp (UTC ISO Z)")
    lastReviewedAt: str | None = Field(None, description="Last review timestamp (UTC ISO Z)")
    intervalDays: int | float = Field(0, description="Current interval in days")
    ease: float = Field(DEFAULT_EASE, description="Ease factor, within [1.3, 3.0] once reviewed")
    reps: int = Field(0, description="Number of reviews")
    lapses: int = Field(0, description="Number of 'again' ratings")
    createdAt: str = Field(default_factory=utc_now_iso)
    updatedAt: str = Field(default_factory=utc_now_iso)
    etag: str | None = Field(None, alias="_etag", exclude=True)

    def to_review_state(self) -> ReviewState:
        return ReviewState(
            due_at=parse_iso_z(self.dueAt),
            last_reviewed_at=parse_iso_z(self.lastReviewedAt) if self.lastReviewedAt else None,
            interval_days=self.intervalDays,
            ease=self.ease,
            reps=self.reps,
            lapses=self.lapses,
        )

    def apply(self, state: ReviewState, now_iso: str) -> EntryReviewState:
        """Return a copy carrying ``state`` (etag and createdAt are kept)."""
        return self.model_copy(
            update={
                "dueAt": utc_datetime_to_iso_z(state.due_at),
                "lastReviewedAt": (
                    utc_datetime_to_iso_z(state.last_reviewed_at) if state.last_reviewed_at else None
                ),
                "intervalDays": state.interval_days,
                "ease": state.ease,
                "reps": state.reps,
                "lapses": state.lapses,
                "updatedAt": now_iso,
            }
        )

    @classmethod
    def from_review_state(
        cls, entry_id: str, user_id: str, state: ReviewState, now_iso: str
    ) -> EntryReviewState:
        """Build a new (never persisted) state document."""
        doc = cls(
            id=entry_id,
            entryId=entry_id,
            userId=user_id,
            dueAt=utc_datetime_to_iso_z(state.due_at),
            createdAt=now_iso,
            updatedAt=now_iso,
        )
        return doc.apply(state, now_iso)


class ReviewEvent(BaseModel):
    """Append-only record of one rating."""

    id: str = Field(default_factory=generate_uuid, description="Unique identifier")
    docType: Literal["reviewEvent"] = "reviewEvent"
    userId: str = Field(..., description="Owner user ID (partition key)")
    entryId: str
    rating: Rating
    note: str | None = None
    reviewedAt: str = Field(..., description="Review timestamp (UTC ISO Z)")
    scheduledDueAt: str = Field(..., description="dueAt computed by this review (UTC ISO Z)")


class ReviewStateResponse(BaseModel):
    """Review state returned by API."""

    entryId: str
    dueAt: str
    lastReviewedAt: str | None
    intervalDays: int | float
    ease: float
    reps: int
    lapses: int
    updatedAt: str


class ReviewEventResponse(BaseModel):
    """Review event returned by API."""

    id: str
    entryId: str
    rating: Rating
    note: str | None
    reviewedAt: str
    scheduledDueAt: str


class MarkReviewedRequest(BaseModel):
    """Request body for POST /review/mark."""

    entryId: str = Field(..., min_length=1)
    rating: Rating = Field("good", description="Recall difficulty")
    note: str | None = Field(None, max_length=2000)


class MarkReviewedResponse(BaseModel):
    """Response for POST /review/mark."""

    success: bool
    reviewEvent: ReviewEventResponse
    state: ReviewStateResponse


class ReviewQueueResponse(BaseModel):
    """Response for GET /review/queue."""

    items: list[EntryResponse]
    rule: QueueRule
    reviewedTodayCount: int


class ReviewHistoryItem(BaseModel):
    """One review event paired with its entry (None once the entry is gone)."""

    reviewEvent: ReviewEventResponse
    entry: EntryResponse | None


class ReviewHistoryResponse(BaseModel):
    """Response for GET /review/history."""

    items: list[ReviewHistoryItem]
    nextCursor: str | None = None
    hasMore: bool


class TodayStatsResponse(BaseModel):
    """Response for GET /review/today-stats."""

    reviewedToday: int
    totalEntries: int
    starredEntries: int
    unreviewedEntries: int
    streak: int


class DueStatsResponse(BaseModel):
    """Response for GET /review/due-stats."""

    overdue: int
    dueToday: int
    upcoming: int
    newCount: int


class EntryReviewCountResponse(BaseModel):
    """Response for GET /review/entries/{entry_id}/count."""

    count: int
    lastReviewedAt: str | None
    state: ReviewStateResponse | None


class SnoozeRequest(BaseModel):
    """Request body for POST /review/snooze."""

    entryId: str = Field(..., min_length=1)
    preset: SnoozePreset | None = Field(None, description="Defaults to 'tomorrow'")
    untilAt: datetime | None = Field(None, description="Target instant, required for 'custom'")
    tzOffset: int = Field(0, ge=MIN_TZ_OFFSET, le=MAX_TZ_OFFSET, description="Minutes ahead of UTC")


class SnoozeResponse(BaseModel):
    """Response for POST /review/snooze."""

    success: bool
    entryId: str
    newDueAt: str
    preset: SnoozePreset
