"""Tests for the Cosmos-backed repositories, using a mocked container."""

import pytest
from unittest.mock import MagicMock

from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosBatchOperationError,
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from folio.models import EntryCreate, EntryReviewState, EntryUpdate, ReviewEvent
from folio.repositories import (
    EntryNotFoundError,
    EntryRepository,
    ReviewConflictError,
    ReviewRepository,
)

USER_ID = "test-user"


def entry_item(entry_id="e1", **kwargs):
    item = {
        "id": entry_id,
        "userId": USER_ID,
        "title": "Title",
        "content": "",
        "isStarred": False,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    item.update(kwargs)
    return item


def state_doc(etag=None):
    data = {
        "id": "e1",
        "entryId": "e1",
        "userId": USER_ID,
        "dueAt": "2024-01-16T10:30:00Z",
        "lastReviewedAt": "2024-01-15T10:30:00Z",
        "intervalDays": 1,
        "ease": 2.5,
        "reps": 1,
        "lapses": 0,
    }
    if etag:
        data["_etag"] = etag
    return EntryReviewState(**data)


def review_event():
    return ReviewEvent(
        userId=USER_ID,
        entryId="e1",
        rating="good",
        reviewedAt="2024-01-15T10:30:00Z",
        scheduledDueAt="2024-01-16T10:30:00Z",
    )


@pytest.fixture
def container():
    return MagicMock()


class TestEntryRepository:
    def test_list_active_filters_deleted(self, container):
        container.query_items.return_value = [entry_item("a"), entry_item("b")]

        entries = EntryRepository(container).list_active(USER_ID)

        assert [e.id for e in entries] == ["a", "b"]
        kwargs = container.query_items.call_args.kwargs
        assert "IS_NULL(c.deletedAt)" in kwargs["query"]
        assert kwargs["partition_key"] == USER_ID

    def test_get_by_id(self, container):
        container.read_item.return_value = entry_item()
        assert EntryRepository(container).get_by_id("e1", USER_ID).title == "Title"
        container.read_item.assert_called_once_with(item="e1", partition_key=USER_ID)

    def test_get_by_id_missing(self, container):
        container.read_item.side_effect = CosmosResourceNotFoundError(status_code=404, message="Not found")
        with pytest.raises(EntryNotFoundError):
            EntryRepository(container).get_by_id("e1", USER_ID)

    def test_get_by_id_deleted(self, container):
        container.read_item.return_value = entry_item(deletedAt="2024-01-10T00:00:00Z")
        with pytest.raises(EntryNotFoundError):
            EntryRepository(container).get_by_id("e1", USER_ID)

    def test_get_many(self, container):
        container.query_items.return_value = [entry_item("a"), entry_item("b", deletedAt="2024-01-10T00:00:00Z")]

        entries = EntryRepository(container).get_many(["b", "a", "a"], USER_ID)

        assert set(entries) == {"a", "b"}
        parameters = container.query_items.call_args.kwargs["parameters"]
        assert {"name": "@ids", "value": ["a", "b"]} in parameters

    def test_get_many_without_ids_skips_query(self, container):
        assert EntryRepository(container).get_many([], USER_ID) == {}
        container.query_items.assert_not_called()

    def test_create(self, container):
        container.create_item.side_effect = lambda body: body

        entry = EntryRepository(container).create(USER_ID, EntryCreate(title="New"))

        assert entry.userId == USER_ID
        assert entry.title == "New"
        assert container.create_item.call_args.kwargs["body"]["deletedAt"] is None

    def test_update(self, container):
        container.read_item.return_value = entry_item()
        container.replace_item.side_effect = lambda item, body: body

        entry = EntryRepository(container).update("e1", USER_ID, EntryUpdate(title="Renamed"))

        assert entry.title == "Renamed"
        assert entry.updatedAt != "2024-01-01T00:00:00Z"

    def test_update_without_changes_skips_write(self, container):
        container.read_item.return_value = entry_item()
        EntryRepository(container).update("e1", USER_ID, EntryUpdate())
        container.replace_item.assert_not_called()

    def test_soft_delete(self, container):
        container.read_item.return_value = entry_item()

        EntryRepository(container).soft_delete("e1", USER_ID)

        body = container.replace_item.call_args.kwargs["body"]
        assert body["deletedAt"] is not None
        assert body["updatedAt"] == body["deletedAt"]
        container.delete_item.assert_not_called()


class TestReviewRepositoryState:
    def test_get_state(self, container):
        container.read_item.return_value = {**state_doc().model_dump(), "_etag": '"abc"'}

        state = ReviewRepository(container).get_state("e1", USER_ID)

        assert state.reps == 1
        assert state.etag == '"abc"'

    def test_get_state_missing(self, container):
        container.read_item.side_effect = CosmosResourceNotFoundError(status_code=404, message="Not found")
        assert ReviewRepository(container).get_state("e1", USER_ID) is None

    def test_get_state_ignores_other_doc_types(self, container):
        container.read_item.return_value = review_event().model_dump()
        assert ReviewRepository(container).get_state("e1", USER_ID) is None

    def test_save_state_replaces_read_state_conditionally(self, container):
        container.replace_item.side_effect = lambda item, body, **kwargs: body

        ReviewRepository(container).save_state(state_doc(etag='"abc"'))

        kwargs = container.replace_item.call_args.kwargs
        assert kwargs["item"] == "e1"
        assert kwargs["etag"] == '"abc"'
        assert kwargs["match_condition"] == MatchConditions.IfNotModified
        assert kwargs["body"]["docType"] == "reviewState"
        assert "_etag" not in kwargs["body"] and "etag" not in kwargs["body"]
        container.upsert_item.assert_not_called()

    def test_save_state_creates_new_state(self, container):
        container.create_item.side_effect = lambda body: body
        ReviewRepository(container).save_state(state_doc())
        assert container.create_item.call_args.kwargs["body"]["id"] == "e1"
        container.replace_item.assert_not_called()

    @pytest.mark.parametrize(
        "etag, error",
        [
            ('"abc"', CosmosAccessConditionFailedError(status_code=412, message="Precondition failed")),
            (None, CosmosResourceExistsError(status_code=409, message="Conflict")),
        ],
    )
    def test_save_state_conflict(self, container, etag, error):
        container.replace_item.side_effect = error
        container.create_item.side_effect = error
        with pytest.raises(ReviewConflictError):
            ReviewRepository(container).save_state(state_doc(etag=etag))

    def test_save_state_other_errors_propagate(self, container):
        container.replace_item.side_effect = CosmosHttpResponseError(status_code=503, message="Unavailable")
        with pytest.raises(CosmosHttpResponseError):
            ReviewRepository(container).save_state(state_doc(etag='"abc"'))


class TestRecordReview:
    def test_new_state_is_created_with_event(self, container):
        event = review_event()

        ReviewRepository(container).record_review(state_doc(), event)

        kwargs = container.execute_item_batch.call_args.kwargs
        assert kwargs["partition_key"] == USER_ID
        state_op, event_op = kwargs["batch_operations"]
        assert state_op[0] == "create"
        assert state_op[1][0]["id"] == "e1"
        assert event_op[0] == "create"
        assert event_op[1][0]["id"] == event.id

    def test_existing_state_is_replaced_conditionally(self, container):
        ReviewRepository(container).record_review(state_doc(etag='"abc"'), review_event())

        state_op = container.execute_item_batch.call_args.kwargs["batch_operations"][0]
        assert state_op[0] == "replace"
        assert state_op[1][0] == "e1"
        assert state_op[2] == {"if_match_etag": '"abc"'}

    @pytest.mark.parametrize("status_code", [409, 412])
    def test_conflict(self, container, status_code):
        container.execute_item_batch.side_effect = CosmosBatchOperationError(
            error_index=0,
            headers={},
            status_code=status_code,
            message="Precondition failed",
            operation_responses=[],
        )
        with pytest.raises(ReviewConflictError):
            ReviewRepository(container).record_review(state_doc(etag='"abc"'), review_event())

    def test_other_batch_errors_propagate(self, container):
        container.execute_item_batch.side_effect = CosmosBatchOperationError(
            error_index=0,
            headers={},
            status_code=400,
            message="Bad request",
            operation_responses=[],
        )
        with pytest.raises(CosmosBatchOperationError):
            ReviewRepository(container).record_review(state_doc(), review_event())

    def test_http_errors_propagate(self, container):
        container.execute_item_batch.side_effect = CosmosHttpResponseError(status_code=503, message="Unavailable")
        with pytest.raises(CosmosHttpResponseError):
            ReviewRepository(container).record_review(state_doc(), review_event())


class TestReviewRepositoryEvents:
    def test_list_events_since(self, container):
        container.query_items.return_value = [review_event().model_dump()]

        events = ReviewRepository(container).list_events_since(USER_ID, "2024-01-15T00:00:00Z")

        assert len(events) == 1
        kwargs = container.query_items.call_args.kwargs
        assert "c.reviewedAt >= @since" in kwargs["query"]
        assert {"name": "@since", "value": "2024-01-15T00:00:00Z"} in kwargs["parameters"]

    def test_list_events_filters(self, container):
        container.query_items.return_value = []

        cursor = review_event()
        ReviewRepository(container).list_events(USER_ID, 21, entry_id="e1", before=cursor)

        kwargs = container.query_items.call_args.kwargs
        assert kwargs["query"].startswith("SELECT TOP @limit")
        assert "c.entryId = @entryId" in kwargs["query"]
        assert "(c.reviewedAt < @beforeAt OR (c.reviewedAt = @beforeAt AND c.id < @beforeId))" in kwargs["query"]
        assert kwargs["query"].endswith("ORDER BY c.reviewedAt DESC, c.id DESC")
        assert {"name": "@limit", "value": 21} in kwargs["parameters"]
        assert {"name": "@beforeAt", "value": "2024-01-15T10:30:00Z"} in kwargs["parameters"]
        assert {"name": "@beforeId", "value": cursor.id} in kwargs["parameters"]

    def test_list_events_without_filters(self, container):
        container.query_items.return_value = []
        ReviewRepository(container).list_events(USER_ID, 5)
        query = container.query_items.call_args.kwargs["query"]
        assert "@entryId" not in query
        assert "@before" not in query

    def test_count_events_for_entry(self, container):
        container.query_items.return_value = [4]
        assert ReviewRepository(container).count_events_for_entry("e1", USER_ID) == 4

    def test_get_event_ignores_state_documents(self, container):
        container.read_item.return_value = state_doc().model_dump()
        assert ReviewRepository(container).get_event("e1", USER_ID) is None
