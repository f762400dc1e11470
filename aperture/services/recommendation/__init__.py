"""
Recommendation core: score a candidate pool, select with diversity, rank for storage.
"""

from aperture.services.recommendation.pipeline import RecommendationPipeline, load_pipeline_config
from aperture.services.recommendation.ranking import assign_ranks, build_candidate_rows
from aperture.services.recommendation.scoring import build_genre_profile, score_candidates
from aperture.services.recommendation.selection import apply_diversity_selection, apply_simple_selection

__all__ = [
    "RecommendationPipeline",
    "load_pipeline_config",
    "build_genre_profile",
    "score_candidates",
    "apply_diversity_selection",
    "apply_simple_selection",
    "assign_ranks",
    "build_candidate_rows",
]
