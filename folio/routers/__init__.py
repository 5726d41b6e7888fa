"""API routers module."""

from .entries import router as entries_router
from .review import router as review_router

__all__ = [
    "entries_router",
    "review_router",
]
