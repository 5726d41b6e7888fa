"""Repository for review state snapshots and the review event log.

Both document kinds live in the reviews container under the user's partition,
told apart by ``docType``. A review writes the new state and its event in one
transactional batch, so the two never disagree.
"""

import logging

from azure.core import MatchConditions
from azure.cosmos import ContainerProxy
from azure.cosmos.exceptions import (
    CosmosBatchOperationError,
    CosmosHttpResponseError,
    CosmosResourceNotFoundError,
)

from folio.db import get_reviews_container
from folio.models import EntryReviewState, ReviewEvent

logger = logging.getLogger(__name__)

STATE_DOC_TYPE = "reviewState"
EVENT_DOC_TYPE = "reviewEvent"

# Status codes meaning another writer changed the state first
_CONFLICT_STATUS_CODES = (409, 412)


class ReviewConflictError(Exception):
    """Raised when an entry's review state changed while a review was being recorded."""

    pass


class ReviewRepository:
    """Repository for review database operations."""

    def __init__(self, container: ContainerProxy | None = None):
        """Initialize the repository with an optional container."""
        self._container = container

    @property
    def container(self) -> ContainerProxy:
        """Get the container, lazily initializing if needed."""
        if self._container is None:
            self._container = get_reviews_container()
        return self._container

    def _query(self, query: str, parameters: list[dict], user_id: str) -> list:
        return list(
            self.container.query_items(
                query=query,
                parameters=parameters,
                partition_key=user_id,
            )
        )

    # -- review state -------------------------------------------------------

    def get_state(self, entry_id: str, user_id: str) -> EntryReviewState | None:
        """Return the entry's review state, or None if it was never reviewed or snoozed."""
        try:
            item = self.container.read_item(item=entry_id, partition_key=user_id)
        except CosmosResourceNotFoundError:
            return None
        if item.get("docType") != STATE_DOC_TYPE:
            return None
        return EntryReviewState(**item)

    def list_states(self, user_id: str) -> list[EntryReviewState]:
        """List all review states of a user."""
        query = "SELECT * FROM c WHERE c.userId = @userId AND c.docType = @docType"
        parameters = [
            {"name": "@userId", "value": user_id},
            {"name": "@docType", "value": STATE_DOC_TYPE},
        ]
        return [EntryReviewState(**item) for item in self._query(query, parameters, user_id)]

    def save_state(self, state: EntryReviewState) -> EntryReviewState:
        """Write a review state on its own (no event).

        Same concurrency rule as ``record_review``: a state carrying an etag is
        replaced only if unchanged, one without is created.

        Raises:
            ReviewConflictError: If the state was written concurrently.
        """
        body = state.model_dump()
        try:
            if state.etag:
                item = self.container.replace_item(
                    item=state.id,
                    body=body,
                    etag=state.etag,
                    match_condition=MatchConditions.IfNotModified,
                )
            else:
                item = self.container.create_item(body=body)
        except CosmosHttpResponseError as e:
            if e.status_code in _CONFLICT_STATUS_CODES:
                logger.warning(
                    "Review state conflict on save: user=%s, entry=%s, status=%s",
                    state.userId,
                    state.entryId,
                    e.status_code,
                )
                raise ReviewConflictError(
                    f"Review state for entry {state.entryId} was modified concurrently"
                ) from e
            raise
        return EntryReviewState(**item)

    def record_review(self, state: EntryReviewState, event: ReviewEvent) -> None:
        """Persist a new review state together with its review event.

        A state read from the database (it carries an etag) is replaced only if
        it is unchanged; a state without one is created and must not exist yet.

        Raises:
            ReviewConflictError: If the state was written concurrently.
        """
        body = state.model_dump()
        if state.etag:
            state_op = ("replace", (state.id, body), {"if_match_etag": state.etag})
        else:
            state_op = ("create", (body,))
        batch = [state_op, ("create", (event.model_dump(),))]

        try:
            self.container.execute_item_batch(batch_operations=batch, partition_key=state.userId)
        except CosmosBatchOperationError as e:
            if e.status_code in _CONFLICT_STATUS_CODES:
                logger.warning(
                    "Review state conflict: user=%s, entry=%s, status=%s",
                    state.userId,
                    state.entryId,
                    e.status_code,
                )
                raise ReviewConflictError(
                    f"Review state for entry {state.entryId} was modified concurrently"
                ) from e
            raise

    # -- review events ------------------------------------------------------

    def get_event(self, event_id: str, user_id: str) -> ReviewEvent | None:
        try:
            item = self.container.read_item(item=event_id, partition_key=user_id)
        except CosmosResourceNotFoundError:
            return None
        if item.get("docType") != EVENT_DOC_TYPE:
            return None
        return ReviewEvent(**item)

    def list_events_since(self, user_id: str, since_iso: str) -> list[ReviewEvent]:
        """List review events at or after ``since_iso``, newest first."""
        query = (
            "SELECT * FROM c WHERE c.userId = @userId AND c.docType = @docType "
            "AND c.reviewedAt >= @since ORDER BY c.reviewedAt DESC"
        )
        parameters = [
            {"name": "@userId", "value": user_id},
            {"name": "@docType", "value": EVENT_DOC_TYPE},
            {"name": "@since", "value": since_iso},
        ]
        return [ReviewEvent(**item) for item in self._query(query, parameters, user_id)]

    def list_events(
        self,
        user_id: str,
        limit: int,
        entry_id: str | None = None,
        before: ReviewEvent | None = None,
    ) -> list[ReviewEvent]:
        """List up to ``limit`` review events, newest first.

        Events are ordered by ``(reviewedAt, id)`` descending, so events sharing a
        second keep a stable order across pages. This ORDER BY needs a composite
        index on ``reviewedAt DESC, id DESC`` in the reviews container.

        Args:
            user_id: The user ID
            limit: Maximum number of events
            entry_id: Only events of this entry
            before: Only events that sort after this one (the previous page's last event)
        """
        conditions = ["c.userId = @userId", "c.docType = @docType"]
        parameters = [
            {"name": "@userId", "value": user_id},
            {"name": "@docType", "value": EVENT_DOC_TYPE},
            {"name": "@limit", "value": limit},
        ]
        if entry_id is not None:
            conditions.append("c.entryId = @entryId")
            parameters.append({"name": "@entryId", "value": entry_id})
        if before is not None:
            conditions.append(
                "(c.reviewedAt < @beforeAt OR (c.reviewedAt = @beforeAt AND c.id < @beforeId))"
            )
            parameters.append({"name": "@beforeAt", "value": before.reviewedAt})
            parameters.append({"name": "@beforeId", "value": before.id})

        query = (
            "SELECT TOP @limit * FROM c WHERE "
            + " AND ".join(conditions)
            + " ORDER BY c.reviewedAt DESC, c.id DESC"
        )
        return [ReviewEvent(**item) for item in self._query(query, parameters, user_id)]

    def count_events_for_entry(self, entry_id: str, user_id: str) -> int:
        query = (
            "SELECT VALUE COUNT(1) FROM c "
            "WHERE c.userId = @userId AND c.docType = @docType AND c.entryId = @entryId"
        )
        parameters = [
            {"name": "@userId", "value": user_id},
            {"name": "@docType", "value": EVENT_DOC_TYPE},
            {"name": "@entryId", "value": entry_id},
        ]
        result = self._query(query, parameters, user_id)
        return result[0] if result else 0


# Singleton instance
_review_repository: ReviewRepository | None = None


def get_review_repository() -> ReviewRepository:
    """Get the review repository singleton."""
    global _review_repository
    if _review_repository is None:
        _review_repository = ReviewRepository()
    return _review_repository
