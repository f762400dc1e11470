from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _unique_genres(value: Any) -> list[str]:
    if value is None:
        return []
    seen: dict[str, None] = {}
    for genre in value:
        if genre:
            seen.setdefault(str(genre), None)
    return list(seen)


class Candidate(BaseModel):
    """An item competing for a recommendation slot, as handed over by the candidate source."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    year: int | None = None
    genres: list[str] = Field(default_factory=list, description="Genre tags; order irrelevant")
    community_rating: float | None = Field(default=None, description="Community/critic score, 0-10")
    similarity: float = Field(
        default=0.0, ge=0.0, le=1.0, allow_inf_nan=False, description="Cosine similarity to taste vector"
    )
    network: str | None = Field(default=None, description="Network or studio (series only)")

    @field_validator("genres", mode="before")
    @classmethod
    def _dedupe_genres(cls, value: Any) -> list[str]:
        return _unique_genres(value)

    @property
    def title_key(self) -> str:
        """Identity used to skip duplicate versions of the same title."""
        if not self.title:
            return f"id:{self.id}"
        return f"{self.title.lower()}|{self.year or 'unknown'}"


class ScoredCandidate(BaseModel):
    """
    Candidate with its sub-scores and immutable base score.

    final_score is fixed at scoring time; selection never rewrites it.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    candidate: Candidate
    novelty: float
    rating_score: float
    preference_bonus: float
    final_score: float

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def genres(self) -> list[str]:
        return self.candidate.genres

    @property
    def similarity(self) -> float:
        return self.candidate.similarity

    @property
    def network(self) -> str | None:
        return self.candidate.network


class SelectedCandidate(BaseModel):
    """A scored candidate that won a slot during diversity selection."""

    model_config = ConfigDict(frozen=True)

    scored: ScoredCandidate
    rank: int = Field(ge=1)
    diversity_boost: float
    selection_score: float

    @property
    def id(self) -> str:
        return self.scored.id

    @property
    def final_score(self) -> float:
        return self.scored.final_score

    def score_breakdown(self) -> dict[str, float]:
        return {
            "similarity": self.scored.similarity,
            "novelty": self.scored.novelty,
            "rating": self.scored.rating_score,
            "preference": self.scored.preference_bonus,
            "diversity": self.diversity_boost,
        }


class SelectionResult(BaseModel):
    selected: list[SelectedCandidate] = Field(default_factory=list)
    selected_ranks: dict[str, int] = Field(default_factory=dict, description="Candidate ID → 1-based rank")

    def __len__(self) -> int:
        return len(self.selected)


class CandidateRow(BaseModel):
    """Persisted candidate row, enough to explain a pick without re-running the pipeline."""

    candidate_id: str
    rank: int
    is_selected: bool
    selected_rank: int | None = None
    final_score: float
    selection_score: float | None = None
    similarity: float
    novelty: float
    rating_score: float
    preference_bonus: float
    diversity_boost: float = 0.0
    score_breakdown: dict[str, float] = Field(default_factory=dict)


class EvidenceRow(BaseModel):
    candidate_id: str
    similar_item_id: str
    similarity: float
    evidence_type: str  # "favorite", "highly_rated", "watched"
