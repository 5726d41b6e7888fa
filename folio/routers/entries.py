"""Entries API router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from folio.models import EntryCreate, EntryUpdate, EntryResponse, EntryListResponse
from folio.repositories import EntryNotFoundError, get_entry_repository
from folio.routers.dependencies import get_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/entries", tags=["entries"])

UserId = Annotated[str, Depends(get_user_id)]


def _not_found(entry_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Entry with ID {entry_id} not found",
    )


@router.get("", response_model=EntryListResponse)
async def list_entries(user_id: UserId) -> EntryListResponse:
    """List the caller's entries (deleted entries excluded)."""
    repo = get_entry_repository()
    entries = repo.list_active(user_id)
    return EntryListResponse(
        entries=[EntryResponse(**entry.model_dump()) for entry in entries],
        count=len(entries),
    )


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(entry_id: str, user_id: UserId) -> EntryResponse:
    """Get a specific entry by ID."""
    repo = get_entry_repository()
    try:
        entry = repo.get_by_id(entry_id, user_id)
    except EntryNotFoundError:
        raise _not_found(entry_id)
    return EntryResponse(**entry.model_dump())


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(entry_create: EntryCreate, user_id: UserId) -> EntryResponse:
    """Create a new entry."""
    repo = get_entry_repository()
    entry = repo.create(user_id, entry_create)
    logger.info(f"Entry created: user={user_id}, entry={entry.id}")
    return EntryResponse(**entry.model_dump())


@router.put("/{entry_id}", response_model=EntryResponse)
async def update_entry(entry_id: str, entry_update: EntryUpdate, user_id: UserId) -> EntryResponse:
    """Update an existing entry."""
    repo = get_entry_repository()
    try:
        entry = repo.update(entry_id, user_id, entry_update)
    except EntryNotFoundError:
        raise _not_found(entry_id)
    return EntryResponse(**entry.model_dump())


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(entry_id: str, user_id: UserId) -> None:
    """Soft-delete an entry."""
    repo = get_entry_repository()
    try:
        repo.soft_delete(entry_id, user_id)
    except EntryNotFoundError:
        raise _not_found(entry_id)
    logger.info(f"Entry deleted: user={user_id}, entry={entry_id}")
