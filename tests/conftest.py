"""Pytest configuration and fixtures."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from folio.config import get_review_settings
from folio.models import Entry, EntryCreate, EntryReviewState, EntryUpdate, ReviewEvent
from folio.repositories import EntryNotFoundError, ReviewConflictError

FIXED_NOW_ISO = "2024-01-15T10:30:00Z"
FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
USER_ID = "test-user"


@dataclass
class StubEntryRepo:
    entries: dict[str, Entry] = field(default_factory=dict)

    def add(self, entry_id: str, user_id: str = USER_ID, **kwargs) -> Entry:
        kwargs.setdefault("title", entry_id)
        entry = Entry(id=entry_id, userId=user_id, **kwargs)
        self.entries[entry_id] = entry
        return entry

    def list_active(self, user_id: str) -> list[Entry]:
        return [e for e in self.entries.values() if e.userId == user_id and not e.is_deleted]

    def get_by_id(self, entry_id: str, user_id: str) -> Entry:
        entry = self.entries.get(entry_id)
        if entry is None or entry.userId != user_id or entry.is_deleted:
            raise EntryNotFoundError(f"Entry with ID {entry_id} not found")
        return entry

    def get_many(self, entry_ids, user_id: str) -> dict[str, Entry]:
        return {
            entry_id: self.entries[entry_id]
            for entry_id in entry_ids
            if entry_id in self.entries and self.entries[entry_id].userId == user_id
        }

    def create(self, user_id: str, entry_create: EntryCreate) -> Entry:
        entry = Entry(userId=user_id, **entry_create.model_dump())
        self.entries[entry.id] = entry
        return entry

    def update(self, entry_id: str, user_id: str, entry_update: EntryUpdate) -> Entry:
        entry = self.get_by_id(entry_id, user_id)
        updated = entry.model_copy(update=entry_update.model_dump(exclude_unset=True, exclude_none=True))
        self.entries[entry_id] = updated
        return updated

    def soft_delete(self, entry_id: str, user_id: str) -> None:
        entry = self.get_by_id(entry_id, user_id)
        self.entries[entry_id] = entry.model_copy(update={"deletedAt": FIXED_NOW_ISO})


@dataclass
class StubReviewRepo:
    states: dict[str, EntryReviewState] = field(default_factory=dict)
    events: list[ReviewEvent] = field(default_factory=list)
    conflict: bool = False
    batches: int = 0

    def get_state(self, entry_id: str, user_id: str):
        state = self.states.get(entry_id)
        if state is None or state.userId != user_id:
            return None
        return state

    def list_states(self, user_id: str) -> list[EntryReviewState]:
        return [s for s in self.states.values() if s.userId == user_id]

    def save_state(self, state: EntryReviewState) -> EntryReviewState:
        if self.conflict:
            raise ReviewConflictError("conflict")
        self.states[state.entryId] = state
        return state

    def record_review(self, state: EntryReviewState, event: ReviewEvent) -> None:
        if self.conflict:
            raise ReviewConflictError("conflict")
        self.batches += 1
        self.states[state.entryId] = state
        self.events.append(event)

    def get_event(self, event_id: str, user_id: str):
        for event in self.events:
            if event.id == event_id and event.userId == user_id:
                return event
        return None

    def _newest_first(self, user_id: str) -> list[ReviewEvent]:
        own = [e for e in self.events if e.userId == user_id]
        return sorted(own, key=lambda e: (e.reviewedAt, e.id), reverse=True)

    def list_events_since(self, user_id: str, since_iso: str) -> list[ReviewEvent]:
        return [e for e in self._newest_first(user_id) if e.reviewedAt >= since_iso]

    def list_events(self, user_id: str, limit: int, entry_id=None, before=None) -> list[ReviewEvent]:
        events = self._newest_first(user_id)
        if entry_id is not None:
            events = [e for e in events if e.entryId == entry_id]
        if before is not None:
            events = [e for e in events if (e.reviewedAt, e.id) < (before.reviewedAt, before.id)]
        return events[:limit]

    def count_events_for_entry(self, entry_id: str, user_id: str) -> int:
        return sum(1 for e in self.events if e.entryId == entry_id and e.userId == user_id)

    def add_event(self, entry_id: str, reviewed_at: str, rating: str = "good", user_id: str = USER_ID) -> ReviewEvent:
        event = ReviewEvent(
            userId=user_id,
            entryId=entry_id,
            rating=rating,
            reviewedAt=reviewed_at,
            scheduledDueAt=reviewed_at,
        )
        self.events.append(event)
        return event


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Each test sees settings built from its own environment."""
    get_review_settings.cache_clear()
    yield
    get_review_settings.cache_clear()


@pytest.fixture
def entry_repo():
    return StubEntryRepo()


@pytest.fixture
def review_repo():
    return StubReviewRepo()


@pytest.fixture
def client(monkeypatch, entry_repo, review_repo):
    """Test client wired to in-memory repositories and a fixed clock."""
    from folio.main import app
    from folio.routers import entries as entries_router
    from folio.routers import review as review_router

    monkeypatch.setattr(entries_router, "get_entry_repository", lambda: entry_repo)
    monkeypatch.setattr(review_router, "get_entry_repository", lambda: entry_repo)
    monkeypatch.setattr(review_router, "get_review_repository", lambda: review_repo)
    monkeypatch.setattr(review_router, "utc_now_iso", lambda: FIXED_NOW_ISO)
    return TestClient(app)


@pytest.fixture
def headers():
    return {"X-User-Id": USER_ID}
