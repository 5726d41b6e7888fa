"""Models module for Pydantic schemas."""

from .entry import (
    Entry,
    EntryBase,
    EntryCreate,
    EntryUpdate,
    EntryResponse,
    EntryListResponse,
)
from .review import (
    EntryReviewState,
    ReviewEvent,
    ReviewStateResponse,
    ReviewEventResponse,
    MarkReviewedRequest,
    MarkReviewedResponse,
    ReviewQueueResponse,
    ReviewHistoryItem,
    ReviewHistoryResponse,
    TodayStatsResponse,
    DueStatsResponse,
    EntryReviewCountResponse,
    SnoozeRequest,
    SnoozeResponse,
)

__all__ = [
    "Entry",
    "EntryBase",
    "EntryCreate",
    "EntryUpdate",
    "EntryResponse",
    "EntryListResponse",
    "EntryReviewState",
    "ReviewEvent",
    "ReviewStateResponse",
    "ReviewEventResponse",
    "MarkReviewedRequest",
    "MarkReviewedResponse",
    "ReviewQueueResponse",
    "ReviewHistoryItem",
    "ReviewHistoryResponse",
    "TodayStatsResponse",
    "DueStatsResponse",
    "EntryReviewCountResponse",
    "SnoozeRequest",
    "SnoozeResponse",
]
