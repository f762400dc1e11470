from typing import Any

from fastapi import APIRouter, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from aperture.core.exceptions import InvalidConfigError
from aperture.models.candidate import Candidate, CandidateRow
from aperture.models.pipeline import MediaType, default_pipeline_config
from aperture.models.profile import WatchedItem
from aperture.services.recommendation.ranking import build_candidate_rows
from aperture.services.recommendation.scoring import build_genre_profile, score_candidates
from aperture.services.recommendation.selection import apply_diversity_selection

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


class PreviewRequest(BaseModel):
    candidates: list[Candidate]
    watched: list[WatchedItem] = Field(default_factory=list)
    config: dict[str, Any] | None = Field(default=None, description="Overrides on top of the default weights")
    media_type: MediaType = "movie"


class PreviewResponse(BaseModel):
    selected: list[CandidateRow]
    candidate_count: int
    genre_preference: dict[str, float]


@router.post("/preview", response_model=PreviewResponse)
async def preview_recommendations(payload: PreviewRequest) -> PreviewResponse:
    """
    Score and select a posted candidate pool without touching storage.

    Used when tuning weights: shows what a run with these settings would pick.
    """
    try:
        cfg = default_pipeline_config().merged(payload.config)
    except InvalidConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        scored = score_candidates(payload.candidates, payload.watched, cfg)
        selection = apply_diversity_selection(
            scored,
            cfg.selected_count,
            cfg.diversity_weight,
            use_network_diversity=payload.media_type == "series",
        )
        rows = build_candidate_rows(scored, selection, limit=0)
    except Exception as e:
        logger.exception(f"Preview failed for {len(payload.candidates)} candidates: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    rows.sort(key=lambda row: row.selected_rank or 0)
    profile = build_genre_profile(payload.watched, limit=cfg.recent_watch_limit)
    return PreviewResponse(selected=rows, candidate_count=len(scored), genre_preference=profile.genre_preference)
