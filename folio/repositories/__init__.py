"""Repositories module for data access layer."""

from .entry_repository import (
    EntryRepository,
    EntryNotFoundError,
    get_entry_repository,
)
from .review_repository import (
    ReviewRepository,
    ReviewConflictError,
    get_review_repository,
)

__all__ = [
    "EntryRepository",
    "EntryNotFoundError",
    "get_entry_repository",
    "ReviewRepository",
    "ReviewConflictError",
    "get_review_repository",
]
