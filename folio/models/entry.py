"""Entry models for API requests and responses."""

from pydantic import BaseModel, Field
from uuid import uuid4

from folio.srs.time import utc_now_iso


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


class EntryBase(BaseModel):
    """Base entry model with common fields."""

    title: str = Field(..., min_length=1, max_length=500, description="Entry title")
    content: str = Field("", max_length=20000, description="Plain-text entry content")


class EntryCreate(EntryBase):
    """Model for creating a new entry."""

    isStarred: bool = Field(False, description="Whether the entry is starred")


class EntryUpdate(BaseModel):
    """Model for updating an existing entry."""

    title: str | None = Field(None, min_length=1, max_length=500, description="Entry title")
    content: str | None = Field(None, max_length=20000, description="Plain-text entry content")
    isStarred: bool | None = Field(None, description="Whether the entry is starred")


class Entry(EntryBase):
    """Full entry model as stored in the database."""

    id: str = Field(default_factory=generate_uuid, description="Unique identifier")
    userId: str = Field(..., description="Owner user ID (partition key)")
    isStarred: bool = Field(False, description="Whether the entry is starred")
    createdAt: str = Field(default_factory=utc_now_iso, description="Creation timestamp")
    updatedAt: str = Field(default_factory=utc_now_iso, description="Last update timestamp")
    deletedAt: str | None = Field(None, description="Soft-delete timestamp")

    @property
    def is_deleted(self) -> bool:
        return self.deletedAt is not None

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174001",
                "userId": "user-001",
                "title": "Forgetting curve",
                "content": "Retention drops fastest right after learning.",
                "isStarred": False,
                "createdAt": "2025-01-01T00:00:00Z",
                "updatedAt": "2025-01-01T00:00:00Z",
                "deletedAt": None,
            }
        }


class EntryResponse(EntryBase):
    """Entry response model returned by API."""

    id: str
    userId: str
    isStarred: bool
    createdAt: str
    updatedAt: str
    deletedAt: str | None = None


class EntryListResponse(BaseModel):
    """Response containing a list of entries."""

    entries: list[EntryResponse]
    count: int
