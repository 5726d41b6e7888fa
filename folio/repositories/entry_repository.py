"""Repository for Entry CRUD operations."""

from collections.abc import Iterable

from azure.cosmos import ContainerProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from folio.db import get_entries_container
from folio.models import Entry, EntryCreate, EntryUpdate
from folio.srs.time import utc_now_iso

_LIVE = "(NOT IS_DEFINED(c.deletedAt) OR IS_NULL(c.deletedAt))"


class EntryNotFoundError(Exception):
    """Raised when an entry is not found (or has been deleted)."""

    pass


class EntryRepository:
    """Repository for Entry database operations."""

    def __init__(self, container: ContainerProxy | None = None):
        """Initialize the repository with an optional container."""
        self._container = container

    @property
    def container(self) -> ContainerProxy:
        """Get the container, lazily initializing if needed."""
        if self._container is None:
            self._container = get_entries_container()
        return self._container

    def list_active(self, user_id: str) -> list[Entry]:
        """List the user's entries that are not deleted, newest first."""
        query = f"SELECT * FROM c WHERE c.userId = @userId AND {_LIVE} ORDER BY c.createdAt DESC"
        parameters = [{"name": "@userId", "value": user_id}]

        items = list(
            self.container.query_items(
                query=query,
                parameters=parameters,
                partition_key=user_id,
            )
        )
        return [Entry(**item) for item in items]

    def get_by_id(self, entry_id: str, user_id: str) -> Entry:
        """Get a live entry by ID and user ID."""
        try:
            item = self.container.read_item(item=entry_id, partition_key=user_id)
        except CosmosResourceNotFoundError:
            raise EntryNotFoundError(f"Entry with ID {entry_id} not found")
        entry = Entry(**item)
        if entry.is_deleted:
            raise EntryNotFoundError(f"Entry with ID {entry_id} not found")
        return entry

    def get_many(self, entry_ids: Iterable[str], user_id: str) -> dict[str, Entry]:
        """Fetch entries by ID, deleted ones included. Missing IDs are left out."""
        ids = sorted(set(entry_ids))
        if not ids:
            return {}
        query = "SELECT * FROM c WHERE c.userId = @userId AND ARRAY_CONTAINS(@ids, c.id)"
        parameters = [
            {"name": "@userId", "value": user_id},
            {"name": "@ids", "value": ids},
        ]

        items = self.container.query_items(
            query=query,
            parameters=parameters,
            partition_key=user_id,
        )
        return {item["id"]: Entry(**item) for item in items}

    def create(self, user_id: str, entry_create: EntryCreate) -> Entry:
        """Create a new entry."""
        entry = Entry(userId=user_id, **entry_create.model_dump())
        created_item = self.container.create_item(body=entry.model_dump())
        return Entry(**created_item)

    def update(self, entry_id: str, user_id: str, entry_update: EntryUpdate) -> Entry:
        """Update an existing entry."""
        existing = self.get_by_id(entry_id, user_id)

        update_data = entry_update.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            return existing

        for key, value in update_data.items():
            setattr(existing, key, value)
        existing.updatedAt = utc_now_iso()

        updated_item = self.container.replace_item(
            item=entry_id,
            body=existing.model_dump(),
        )
        return Entry(**updated_item)

    def soft_delete(self, entry_id: str, user_id: str) -> None:
        """Mark an entry as deleted. Its review history is kept."""
        existing = self.get_by_id(entry_id, user_id)
        now_iso = utc_now_iso()
        existing.deletedAt = now_iso
        existing.updatedAt = now_iso
        self.container.replace_item(item=entry_id, body=existing.model_dump())


# Singleton instance
_entry_repository: EntryRepository | None = None


def get_entry_repository() -> EntryRepository:
    """Get the entry repository singleton."""
    global _entry_repository
    if _entry_repository is None:
        _entry_repository = EntryRepository()
    return _entry_repository
