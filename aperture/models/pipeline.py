from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aperture.core.config import settings
from aperture.core.exceptions import InvalidConfigError
from aperture.models.candidate import SelectedCandidate

MediaType = Literal["movie", "series"]


class PipelineConfig(BaseModel):
    """Weights and bounds for one scoring pass. Out-of-range values are rejected, never clamped."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    max_candidates: int = Field(gt=0)
    selected_count: int = Field(gt=0)
    similarity_weight: float = Field(ge=0.0)
    novelty_weight: float = Field(ge=0.0)
    rating_weight: float = Field(ge=0.0)
    diversity_weight: float = Field(ge=0.0, le=1.0)
    recent_watch_limit: int = Field(gt=0)

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "PipelineConfig":
        """Validate raw values, raising InvalidConfigError naming the first offending field."""
        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidConfigError(f"Invalid pipeline config: {field}: {first.get('msg')}", field=field) from e

    def merged(self, overrides: dict[str, Any] | None) -> "PipelineConfig":
        if not overrides:
            return self
        return PipelineConfig.from_values({**self.model_dump(), **overrides})


def default_pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        max_candidates=settings.DEFAULT_MAX_CANDIDATES,
        selected_count=settings.DEFAULT_SELECTED_COUNT,
        similarity_weight=settings.DEFAULT_SIMILARITY_WEIGHT,
        novelty_weight=settings.DEFAULT_NOVELTY_WEIGHT,
        rating_weight=settings.DEFAULT_RATING_WEIGHT,
        diversity_weight=settings.DEFAULT_DIVERSITY_WEIGHT,
        recent_watch_limit=settings.DEFAULT_RECENT_WATCH_LIMIT,
    )


class User(BaseModel):
    id: str
    username: str
    provider_user_id: str | None = None
    include_watched: bool = False
    exclude_disliked: bool = True


class PipelineRun(BaseModel):
    run_id: str
    user_id: str
    media_type: MediaType = "movie"
    status: Literal["running", "completed", "failed"] = "running"
    candidate_count: int = 0
    selected_count: int = 0
    duration_ms: int = 0
    error_message: str | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    recommendations: list[SelectedCandidate] = Field(default_factory=list)


class BatchResult(BaseModel):
    success: int = 0
    failed: int = 0
    total_recommendations: int = 0
