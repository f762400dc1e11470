import math
from collections.abc import Mapping, Sequence

import numpy as np
from loguru import logger

from aperture.models.profile import WatchedItem
from aperture.services.profile.constants import (
    TASTE_ACCLAIMED_RATING,
    TASTE_FAVORITE_BOOST,
    TASTE_FAVORITE_BOOST_LOTS,
    TASTE_FAVORITE_BOOST_MANY,
    TASTE_PLAY_COUNT_BOOST,
    TASTE_POSITION_DECAY,
    TASTE_RATING_BOOST,
    TASTE_WEIGHT_CAP_FACTOR,
)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors (0.0 when either is zero)."""
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.shape != vec_b.shape:
        raise ValueError(f"Vector dimensions differ: {len(vec_a)} != {len(vec_b)}")

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def average_embeddings(embeddings: Sequence[Sequence[float]], weights: Sequence[float] | None = None) -> list[float]:
    """Weighted mean of embeddings, L2-normalised."""
    if len(embeddings) == 0:
        raise ValueError("Cannot average empty embeddings")

    vectors = np.asarray(embeddings, dtype=float)
    if weights is not None and sum(weights) > 0:
        mean = np.average(vectors, axis=0, weights=np.asarray(weights, dtype=float))
    else:
        mean = np.mean(vectors, axis=0)

    magnitude = np.linalg.norm(mean)
    if magnitude > 0:
        mean = mean / magnitude
    return mean.tolist()


def _favorite_boost(favorite_count: int) -> float:
    if favorite_count > 20:
        return TASTE_FAVORITE_BOOST_LOTS
    if favorite_count > 10:
        return TASTE_FAVORITE_BOOST_MANY
    return TASTE_FAVORITE_BOOST


def calculate_item_weights(watched: Sequence[WatchedItem]) -> list[float]:
    """
    Weight each watched item for the taste vector.

    Gentle position decay (input is favourites/play count/recency ordered),
    a log play-count boost, a favourite boost that shrinks as favourites grow,
    and a small boost for acclaimed titles.
    """
    total = len(watched)
    if total == 0:
        return []

    max_play_count = max(max(item.play_count for item in watched), 1)
    favorite_count = sum(1 for item in watched if item.is_favorite)

    weights = []
    for i, item in enumerate(watched):
        weight = 1.0 - (i / total) * TASTE_POSITION_DECAY

        if item.play_count > 1:
            normalized = math.log2(item.play_count + 1) / math.log2(max_play_count + 1)
            weight *= 1.0 + normalized * TASTE_PLAY_COUNT_BOOST

        if item.is_favorite:
            weight *= _favorite_boost(favorite_count)

        if item.community_rating and item.community_rating >= TASTE_ACCLAIMED_RATING:
            weight *= 1.0 + (item.community_rating - 7) * TASTE_RATING_BOOST

        weights.append(weight)
    return weights


def build_taste_vector(
    watched: Sequence[WatchedItem],
    embeddings: Mapping[str, Sequence[float]],
) -> list[float] | None:
    """
    Build the user's taste vector from watched item embeddings.

    Items without an embedding are skipped. Each weight is capped at three
    times the mean weight so no single title dominates.

    Returns:
        Normalised taste vector, or None when no watched item has an embedding
    """
    with_embedding = [item for item in watched if embeddings.get(item.id)]
    if not with_embedding:
        return None

    # Positions and favourite counts come from the full history ordering
    all_weights = calculate_item_weights(watched)
    weights = np.array([w for item, w in zip(watched, all_weights) if embeddings.get(item.id)])
    vectors = [embeddings[item.id] for item in with_embedding]

    mean = float(weights.mean())
    capped = np.minimum(weights, mean * TASTE_WEIGHT_CAP_FACTOR)

    logger.debug(
        f"Taste vector from {len(vectors)}/{len(watched)} watched items, "
        f"avg weight {mean:.2f}, top weights {np.round(capped[:5], 2).tolist()}"
    )
    return average_embeddings(vectors, capped.tolist())
