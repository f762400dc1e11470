import math
from collections import defaultdict
from collections.abc import Sequence

from loguru import logger

from aperture.models.candidate import Candidate, ScoredCandidate
from aperture.models.pipeline import PipelineConfig
from aperture.models.profile import GenrePreferenceProfile, WatchedItem
from aperture.services.recommendation.constants import (
    GENRE_PROFILE_WINDOW,
    NOVELTY_FAMILIAR,
    NOVELTY_PARTIAL_BASE,
    NOVELTY_PARTIAL_SLOPE,
    NOVELTY_PENALTY_THRESHOLD,
    NOVELTY_TOO_NOVEL,
    PREFERENCE_BONUS_CAP,
    PREFERENCE_BONUS_SCALE,
    RATING_LOW_DIVISOR,
    RATING_MAX,
    RATING_MIN,
    RATING_SCORE_UNRATED,
)


def build_genre_profile(
    watched_window: Sequence[WatchedItem],
    limit: int | None = None,
    window_cap: int = GENRE_PROFILE_WINDOW,
) -> GenrePreferenceProfile:
    """
    Count genre occurrences across the most recent watched items.

    The window is bounded by `limit` (the configured history size) and then
    capped at `window_cap` so the profile follows recent taste.
    """
    size = window_cap if limit is None else min(limit, window_cap)
    window = list(watched_window[: max(0, size)])

    frequency: dict[str, int] = defaultdict(int)
    total = 0
    for item in window:
        for genre in item.genres:
            frequency[genre] += 1
            total += 1

    return GenrePreferenceProfile(genre_frequency=dict(frequency), total_occurrences=total, window_size=len(window))


def calculate_novelty(genres: Sequence[str], profile: GenrePreferenceProfile) -> float:
    """
    Reward partial novelty: some unfamiliar genres mixed with familiar ones.

    Fully familiar items are "okay but not exciting", mostly unfamiliar ones
    are a poor match to demonstrated taste.
    """
    if not genres:
        return NOVELTY_FAMILIAR

    novel = sum(1 for genre in genres if profile.preference(genre) <= 0)
    ratio = novel / len(genres)

    if 0 < ratio < NOVELTY_PENALTY_THRESHOLD:
        return NOVELTY_PARTIAL_BASE + ratio * NOVELTY_PARTIAL_SLOPE
    if ratio >= NOVELTY_PENALTY_THRESHOLD:
        return NOVELTY_TOO_NOVEL
    return NOVELTY_FAMILIAR


def calculate_rating_score(rating: float | None) -> float:
    """
    Piecewise mapping of a 0-10 community rating onto 0-1.

    Media servers report 0 for unrated items, so 0 and NaN are treated like a
    missing rating. Out-of-range values (bad data such as 101) are clamped.
    """
    if not rating or math.isnan(rating):
        return RATING_SCORE_UNRATED

    r = min(max(float(rating), RATING_MIN), RATING_MAX)
    if r >= 8:
        return 0.8 + (r - 8) * 0.1  # 0.8-1.0
    if r >= 7:
        return 0.6 + (r - 7) * 0.2  # 0.6-0.8
    if r >= 6:
        return 0.4 + (r - 6) * 0.2  # 0.4-0.6
    return r / RATING_LOW_DIVISOR


def calculate_preference_bonus(genres: Sequence[str], profile: GenrePreferenceProfile) -> float:
    """Additive nudge toward the user's dominant genres, independent of weights."""
    match = sum(profile.preference(genre) for genre in genres)
    return min(match * PREFERENCE_BONUS_SCALE, PREFERENCE_BONUS_CAP)


def calculate_base_score(similarity: float, novelty: float, rating_score: float, config: PipelineConfig) -> float:
    return (
        similarity * config.similarity_weight
        + novelty * config.novelty_weight
        + rating_score * config.rating_weight
    )


def score_candidate(candidate: Candidate, profile: GenrePreferenceProfile, config: PipelineConfig) -> ScoredCandidate:
    novelty = calculate_novelty(candidate.genres, profile)
    rating_score = calculate_rating_score(candidate.community_rating)
    bonus = calculate_preference_bonus(candidate.genres, profile)
    final_score = calculate_base_score(candidate.similarity, novelty, rating_score, config) + bonus
    return ScoredCandidate(
        candidate=candidate,
        novelty=novelty,
        rating_score=rating_score,
        preference_bonus=bonus,
        final_score=final_score,
    )


def sort_scored(scored: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """Descending by final score; candidate ID breaks ties so the order is reproducible."""
    return sorted(scored, key=lambda s: (-s.final_score, s.id))


def score_candidates(
    candidates: Sequence[Candidate],
    watched_window: Sequence[WatchedItem],
    config: PipelineConfig,
) -> list[ScoredCandidate]:
    """
    Score every candidate against a genre profile built once for this pass.

    diversity_weight is not applied here; it belongs to selection.

    Args:
        candidates: Unranked candidate pool with precomputed similarity
        watched_window: Recency-ordered watch history
        config: Pipeline weights

    Returns:
        New scored candidates sorted by final score descending
    """
    profile = build_genre_profile(watched_window, limit=config.recent_watch_limit)
    logger.debug(
        f"Genre profile from {profile.window_size} watched items: "
        f"{len(profile.genre_frequency)} genres, top={profile.get_top_genres(3)}"
    )

    scored = sort_scored([score_candidate(c, profile, config) for c in candidates])

    for s in scored[:5]:
        logger.debug(
            f"Top candidate {s.id}: similarity={s.similarity:.3f} novelty={s.novelty:.3f} "
            f"rating={s.rating_score:.3f} bonus={s.preference_bonus:.3f} final={s.final_score:.3f}"
        )
    return scored
