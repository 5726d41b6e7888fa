"""Review service configuration loaded from environment variables."""

import os
from functools import lru_cache
from pydantic import BaseModel, Field

from folio.srs.stats import STREAK_HORIZON_DAYS


DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


class ReviewSettings(BaseModel):
    """Tunables for review queues and statistics."""

    streak_horizon_days: int = Field(STREAK_HORIZON_DAYS, ge=1)
    new_entry_ratio: float = Field(0.3, ge=0.0, le=1.0)  # share of the queue limit for new entries
    new_entry_cap: int = Field(20, ge=0)
    new_window_days: int = Field(7, ge=1)  # "new" rule looks this far back

    def new_entry_limit(self, limit: int) -> int:
        """Maximum number of never-reviewed entries mixed into a due queue."""
        return min(self.new_entry_cap, int(limit * self.new_entry_ratio))


@lru_cache()
def get_review_settings() -> ReviewSettings:
    """Get cached review settings from environment variables."""
    return ReviewSettings(
        streak_horizon_days=int(os.getenv("FOLIO_STREAK_HORIZON_DAYS", STREAK_HORIZON_DAYS)),
        new_entry_ratio=float(os.getenv("FOLIO_NEW_ENTRY_RATIO", "0.3")),
        new_entry_cap=int(os.getenv("FOLIO_NEW_ENTRY_CAP", "20")),
        new_window_days=int(os.getenv("FOLIO_NEW_WINDOW_DAYS", "7")),
    )


def get_cors_origins() -> list[str]:
    """Allowed CORS origins (comma separated CORS_ORIGINS)."""
    raw = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
