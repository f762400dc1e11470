from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from aperture.models.candidate import _unique_genres


class WatchedItem(BaseModel):
    """One entry of a user's watch history, supplied favourites/play count/recency first."""

    id: str
    genres: list[str] = Field(default_factory=list)
    play_count: int = 0
    is_favorite: bool = False
    last_played_at: datetime | None = None
    community_rating: float | None = None

    @field_validator("genres", mode="before")
    @classmethod
    def _dedupe_genres(cls, value: Any) -> list[str]:
        return _unique_genres(value)


class GenrePreferenceProfile(BaseModel):
    """
    Normalized genre-frequency distribution of recent watch history.

    Built fresh for every scoring pass and never persisted.
    """

    genre_frequency: dict[str, int] = Field(default_factory=dict, description="Genre → occurrence count")
    total_occurrences: int = 0
    window_size: int = 0

    @property
    def genre_preference(self) -> dict[str, float]:
        """Genre → share of all genre occurrences in the window."""
        if self.total_occurrences <= 0:
            return {}
        return {genre: count / self.total_occurrences for genre, count in self.genre_frequency.items()}

    def preference(self, genre: str) -> float:
        if self.total_occurrences <= 0:
            return 0.0
        return self.genre_frequency.get(genre, 0) / self.total_occurrences

    def get_top_genres(self, limit: int = 5) -> list[tuple[str, float]]:
        """Get top N genres by preference."""
        return sorted(self.genre_preference.items(), key=lambda x: (-x[1], x[0]))[:limit]
