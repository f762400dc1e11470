import time
from collections.abc import Sequence
from typing import Any

from loguru import logger

from aperture.core.config import settings
from aperture.core.exceptions import ConfigLoadError
from aperture.models.pipeline import BatchResult, MediaType, PipelineConfig, PipelineRun, User, default_pipeline_config
from aperture.services.profile.taste import build_taste_vector
from aperture.services.recommendation.evidence import build_evidence
from aperture.services.recommendation.ranking import build_candidate_rows
from aperture.services.recommendation.scoring import score_candidates
from aperture.services.recommendation.selection import apply_diversity_selection
from aperture.services.recommendation.sources import (
    CandidateSource,
    ConfigSource,
    EmbeddingSource,
    RecommendationStore,
    WatchHistorySource,
)


async def load_pipeline_config(source: ConfigSource, media_type: MediaType) -> PipelineConfig:
    """
    Read and validate pipeline config.

    Raises:
        ConfigLoadError: the source could not be read
        InvalidConfigError: the stored values are out of range
    """
    try:
        values = await source.get_recommendation_config(media_type)
    except Exception as e:
        raise ConfigLoadError(f"Failed to load {media_type} recommendation config: {e}") from e
    return PipelineConfig.from_values(values)


class RecommendationPipeline:
    """
    Generates recommendations for a user.

    Flow:
    1. Load config (fallback to defaults only when the source is unreachable)
    2. Fetch watch history and build the taste vector
    3. Fetch candidates nearest to the taste vector
    4. Score, then select with diversity
    5. Persist candidate rows, evidence and the run summary
    """

    def __init__(
        self,
        config_source: ConfigSource,
        history: WatchHistorySource,
        embeddings: EmbeddingSource,
        candidates: CandidateSource,
        store: RecommendationStore,
        allow_config_fallback: bool | None = None,
    ):
        self.config_source = config_source
        self.history = history
        self.embeddings = embeddings
        self.candidates = candidates
        self.store = store
        self.allow_config_fallback = (
            settings.CONFIG_FALLBACK_ENABLED if allow_config_fallback is None else allow_config_fallback
        )

    async def resolve_config(self, media_type: MediaType, overrides: dict[str, Any] | None = None) -> PipelineConfig:
        try:
            config = await load_pipeline_config(self.config_source, media_type)
        except ConfigLoadError as e:
            if not self.allow_config_fallback:
                raise
            logger.warning(f"{e}; using fallback defaults")
            config = default_pipeline_config()
        return config.merged(overrides)

    async def generate_for_user(
        self,
        user: User,
        media_type: MediaType = "movie",
        overrides: dict[str, Any] | None = None,
    ) -> PipelineRun:
        cfg = await self.resolve_config(media_type, overrides)
        start = time.monotonic()

        logger.info(f"Starting {media_type} recommendations for {user.username} ({user.id})")
        run_id = await self.store.create_run(user.id, media_type)
        run = PipelineRun(run_id=run_id, user_id=user.id, media_type=media_type)

        try:
            watched = await self.history.get_watch_history(user.id, cfg.recent_watch_limit, media_type)
            disliked = await self.history.get_disliked_ids(user.id, media_type) if user.exclude_disliked else set()
            logger.info(f"Found {len(watched)} watched {media_type} items, {len(disliked)} disliked")

            if not watched:
                logger.warning(f"User {user.id} has no watch history, nothing to recommend")
                return await self._finish(run, start)

            watched_embeddings = await self.embeddings.get_embeddings(item.id for item in watched)
            taste_vector = build_taste_vector(watched, watched_embeddings)
            if taste_vector is None:
                logger.warning(f"Could not build taste vector for {user.id}: watched items lack embeddings")
                return await self._finish(run, start)
            await self.store.store_taste_vector(user.id, media_type, taste_vector)

            exclude_ids = set(disliked)
            if not user.include_watched:
                exclude_ids |= await self.history.get_watched_ids(user.id, media_type)

            pool = await self.candidates.get_candidates(taste_vector, exclude_ids, cfg.max_candidates, media_type)
            logger.info(f"Found {len(pool)} candidate {media_type} items (excluding {len(exclude_ids)})")
            if not pool:
                return await self._finish(run, start)

            logger.info(
                f"Scoring with weights similarity={cfg.similarity_weight} novelty={cfg.novelty_weight} "
                f"rating={cfg.rating_weight} diversity={cfg.diversity_weight}"
            )
            scored = score_candidates(pool, watched, cfg)
            selection = apply_diversity_selection(
                scored,
                cfg.selected_count,
                cfg.diversity_weight,
                use_network_diversity=media_type == "series",
            )
            for pick in selection.selected[:10]:
                logger.debug(
                    f"  {pick.rank}. {pick.scored.candidate.title or pick.id} "
                    f"final={pick.final_score:.3f} selection={pick.selection_score:.3f}"
                )

            await self.store.store_candidates(run_id, build_candidate_rows(scored, selection))

            selected_embeddings = await self.embeddings.get_embeddings(pick.id for pick in selection.selected)
            evidence = build_evidence(selection.selected, watched, {**watched_embeddings, **selected_embeddings})
            await self.store.store_evidence(run_id, evidence)

            run.candidate_count = len(scored)
            run.selected_count = len(selection.selected)
            run.recommendations = selection.selected
            return await self._finish(run, start)
        except Exception as e:
            logger.error(f"Recommendation generation failed for {user.id}: {e}")
            await self._finish(run, start, error=str(e))
            raise

    async def generate_for_users(self, users: Sequence[User], media_type: MediaType = "movie") -> BatchResult:
        """Run the pipeline per user; one user's failure does not stop the others."""
        result = BatchResult()
        for user in users:
            try:
                run = await self.generate_for_user(user, media_type)
            except Exception as e:
                logger.error(f"Failed to generate recommendations for {user.username}: {e}")
                result.failed += 1
                continue
            result.success += 1
            result.total_recommendations += run.selected_count

        logger.info(
            f"Processed {len(users)} users: {result.success} succeeded, {result.failed} failed, "
            f"{result.total_recommendations} recommendations"
        )
        return result

    async def _finish(self, run: PipelineRun, start: float, error: str | None = None) -> PipelineRun:
        run.duration_ms = int((time.monotonic() - start) * 1000)
        run.status = "failed" if error else "completed"
        run.error_message = error
        if error:
            run.candidate_count = 0
            run.selected_count = 0
        await self.store.finalize_run(run)
        if not error:
            logger.info(f"Run {run.run_id} complete: {run.selected_count} picks in {run.duration_ms}ms")
        return run
