"""
Boundaries to the systems the recommender reads from and writes to.

Database queries, vector search and the config store live behind these
interfaces. The in-memory implementations back the preview service and tests.
"""

import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Any

from aperture.models.candidate import Candidate, CandidateRow, EvidenceRow
from aperture.models.pipeline import MediaType, PipelineRun
from aperture.models.profile import WatchedItem
from aperture.services.profile.taste import cosine_similarity


class ConfigSource(ABC):
    @abstractmethod
    async def get_recommendation_config(self, media_type: MediaType) -> dict[str, Any]:
        """Return raw pipeline config values for a media type."""
        pass


class WatchHistorySource(ABC):
    @abstractmethod
    async def get_watch_history(self, user_id: str, limit: int, media_type: MediaType) -> list[WatchedItem]:
        """Watch history ordered favourites first, then play count, then recency."""
        pass

    @abstractmethod
    async def get_watched_ids(self, user_id: str, media_type: MediaType) -> set[str]:
        pass

    @abstractmethod
    async def get_disliked_ids(self, user_id: str, media_type: MediaType) -> set[str]:
        pass


class EmbeddingSource(ABC):
    @abstractmethod
    async def get_embeddings(self, item_ids: Iterable[str]) -> dict[str, list[float]]:
        """Embeddings for the given IDs; missing items are omitted."""
        pass


class CandidateSource(ABC):
    @abstractmethod
    async def get_candidates(
        self,
        taste_vector: Sequence[float],
        exclude_ids: set[str],
        limit: int,
        media_type: MediaType,
    ) -> list[Candidate]:
        """Nearest items to the taste vector with similarity filled in."""
        pass


class RecommendationStore(ABC):
    @abstractmethod
    async def create_run(self, user_id: str, media_type: MediaType) -> str:
        pass

    @abstractmethod
    async def store_taste_vector(self, user_id: str, media_type: MediaType, vector: Sequence[float]) -> None:
        pass

    @abstractmethod
    async def store_candidates(self, run_id: str, rows: Sequence[CandidateRow]) -> None:
        pass

    @abstractmethod
    async def store_evidence(self, run_id: str, rows: Sequence[EvidenceRow]) -> None:
        pass

    @abstractmethod
    async def finalize_run(self, run: PipelineRun) -> None:
        pass


class StaticConfigSource(ConfigSource):
    def __init__(self, values: dict[str, Any] | None = None, per_media_type: dict[str, dict[str, Any]] | None = None):
        self.values = values or {}
        self.per_media_type = per_media_type or {}

    async def get_recommendation_config(self, media_type: MediaType) -> dict[str, Any]:
        return {**self.values, **self.per_media_type.get(media_type, {})}


class InMemoryWatchHistory(WatchHistorySource):
    def __init__(
        self,
        history: dict[str, list[WatchedItem]] | None = None,
        disliked: dict[str, set[str]] | None = None,
    ):
        # user_id → watched items, already in priority order
        self.history = history or {}
        self.disliked = disliked or {}

    async def get_watch_history(self, user_id: str, limit: int, media_type: MediaType) -> list[WatchedItem]:
        return list(self.history.get(user_id, []))[:limit]

    async def get_watched_ids(self, user_id: str, media_type: MediaType) -> set[str]:
        return {item.id for item in self.history.get(user_id, [])}

    async def get_disliked_ids(self, user_id: str, media_type: MediaType) -> set[str]:
        return set(self.disliked.get(user_id, set()))


class InMemoryEmbeddings(EmbeddingSource):
    def __init__(self, vectors: dict[str, list[float]] | None = None):
        self.vectors = vectors or {}

    async def get_embeddings(self, item_ids: Iterable[str]) -> dict[str, list[float]]:
        return {item_id: self.vectors[item_id] for item_id in item_ids if item_id in self.vectors}


class InMemoryCandidateSource(CandidateSource):
    """Brute-force nearest-neighbour search over a small catalogue."""

    def __init__(self, catalog: Sequence[Candidate], embeddings: EmbeddingSource):
        self.catalog = list(catalog)
        self.embeddings = embeddings

    async def get_candidates(
        self,
        taste_vector: Sequence[float],
        exclude_ids: set[str],
        limit: int,
        media_type: MediaType,
    ) -> list[Candidate]:
        vectors = await self.embeddings.get_embeddings(c.id for c in self.catalog)
        ranked = []
        for candidate in self.catalog:
            if candidate.id in exclude_ids or candidate.id not in vectors:
                continue
            similarity = min(max(cosine_similarity(taste_vector, vectors[candidate.id]), 0.0), 1.0)
            ranked.append(candidate.model_copy(update={"similarity": similarity}))
        ranked.sort(key=lambda c: (-c.similarity, c.id))
        return ranked[:limit]


class InMemoryRecommendationStore(RecommendationStore):
    def __init__(self):
        self.runs: dict[str, PipelineRun] = {}
        self.candidates: dict[str, list[CandidateRow]] = {}
        self.evidence: dict[str, list[EvidenceRow]] = {}
        self.taste_vectors: dict[tuple[str, str], list[float]] = {}

    async def create_run(self, user_id: str, media_type: MediaType) -> str:
        run_id = str(uuid.uuid4())
        self.runs[run_id] = PipelineRun(run_id=run_id, user_id=user_id, media_type=media_type)
        return run_id

    async def store_taste_vector(self, user_id: str, media_type: MediaType, vector: Sequence[float]) -> None:
        self.taste_vectors[(user_id, media_type)] = list(vector)

    async def store_candidates(self, run_id: str, rows: Sequence[CandidateRow]) -> None:
        self.candidates.setdefault(run_id, []).extend(rows)

    async def store_evidence(self, run_id: str, rows: Sequence[EvidenceRow]) -> None:
        self.evidence.setdefault(run_id, []).extend(rows)

    async def finalize_run(self, run: PipelineRun) -> None:
        self.runs[run.run_id] = run
