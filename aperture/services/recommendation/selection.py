"""
Diversity-aware selection.

Each step re-evaluates every remaining candidate against what has already been
picked, so a lower-scored candidate with unrepresented genres can overtake a
higher-scored one whose genres are already saturated. Base scores are read
only; the blended step score is recorded separately on the selected item.
"""

from collections import defaultdict
from collections.abc import Mapping, Sequence

from loguru import logger

from aperture.core.exceptions import SelectionError
from aperture.models.candidate import ScoredCandidate, SelectedCandidate, SelectionResult
from aperture.services.recommendation.constants import (
    DIVERSITY_GENRE_SHARE,
    DIVERSITY_NEUTRAL_SECONDARY,
    DIVERSITY_NO_GENRES,
    DIVERSITY_SECONDARY_SHARE,
    SIMPLE_SELECTION_NO_GENRES,
)


def _check_arguments(count: int, diversity_weight: float) -> None:
    if count < 0:
        raise SelectionError(f"count must be >= 0, got {count}")
    if not 0.0 <= diversity_weight <= 1.0:
        raise SelectionError(f"diversity_weight must be within [0, 1], got {diversity_weight}")


def _genre_diversity(genres: Sequence[str], selected_genres: Mapping[str, int]) -> float:
    overlap = sum(1 for genre in genres if genre in selected_genres)
    return 1.0 - overlap / len(genres)


def calculate_diversity_boost(
    candidate: ScoredCandidate,
    selected_genres: Mapping[str, int],
    selected_networks: Mapping[str, int] | None,
    selection_count: int,
) -> float:
    """
    Score how much a candidate would diversify the current selection (0-1).

    Genres carry 60%. The other 40% goes to network spread when
    `selected_networks` is tracked (series), otherwise to genres again.
    """
    genres = candidate.genres

    if genres:
        boost = _genre_diversity(genres, selected_genres) * DIVERSITY_GENRE_SHARE
    else:
        boost = DIVERSITY_NO_GENRES

    if selected_networks is not None:
        if candidate.network and selection_count > 0:
            network_count = selected_networks.get(candidate.network, 0)
            boost += (1.0 - network_count / selection_count) * DIVERSITY_SECONDARY_SHARE
        else:
            boost += DIVERSITY_NEUTRAL_SECONDARY
    elif genres:
        boost += _genre_diversity(genres, selected_genres) * DIVERSITY_SECONDARY_SHARE
    else:
        boost += DIVERSITY_NEUTRAL_SECONDARY

    return boost


def apply_diversity_selection(
    candidates: Sequence[ScoredCandidate],
    count: int,
    diversity_weight: float,
    use_network_diversity: bool = False,
) -> SelectionResult:
    """
    Greedily pick up to `count` candidates, blending base score with diversity.

    Ties keep the input order (already sorted by final score, then ID).
    Candidates duplicating an already selected title/year are skipped.

    Args:
        candidates: Scored candidates, best first
        count: Number of items to select
        diversity_weight: Share of the step score given to diversity (0-1)
        use_network_diversity: Track network spread (series)

    Returns:
        SelectionResult in rank order
    """
    _check_arguments(count, diversity_weight)

    selected: list[SelectedCandidate] = []
    selected_ranks: dict[str, int] = {}
    selected_genres: dict[str, int] = defaultdict(int)
    selected_networks: dict[str, int] | None = defaultdict(int) if use_network_diversity else None
    selected_titles: set[str] = set()

    remaining = list(candidates)

    while len(selected) < count and remaining:
        best_index: int | None = None
        best_score = float("-inf")
        best_boost = 0.0

        for index, candidate in enumerate(remaining):
            if candidate.candidate.title_key in selected_titles:
                continue

            boost = calculate_diversity_boost(candidate, selected_genres, selected_networks, len(selected))
            step_score = candidate.final_score * (1.0 - diversity_weight) + boost * diversity_weight

            if step_score > best_score:
                best_score = step_score
                best_index = index
                best_boost = boost

        # Only duplicate titles left
        if best_index is None:
            break

        best = remaining.pop(best_index)
        rank = len(selected) + 1

        selected_titles.add(best.candidate.title_key)
        for genre in best.genres:
            selected_genres[genre] += 1
        if selected_networks is not None and best.network:
            selected_networks[best.network] += 1

        selected_ranks[best.id] = rank
        selected.append(SelectedCandidate(scored=best, rank=rank, diversity_boost=best_boost, selection_score=best_score))

    logger.debug(f"Diversity selection picked {len(selected)}/{count} from {len(candidates)} candidates")
    return SelectionResult(selected=selected, selected_ranks=selected_ranks)


def apply_simple_selection(
    candidates: Sequence[ScoredCandidate],
    count: int,
    diversity_weight: float,
) -> SelectionResult:
    """
    Single pass over candidates by final score with an additive diversity bonus.

    Cheaper than `apply_diversity_selection` but diversity cannot change
    which items get picked, only their selection score.
    """
    _check_arguments(count, diversity_weight)

    selected: list[SelectedCandidate] = []
    selected_ranks: dict[str, int] = {}
    selected_genres: dict[str, int] = defaultdict(int)
    selected_titles: set[str] = set()

    for candidate in sorted(candidates, key=lambda s: (-s.final_score, s.id)):
        if len(selected) >= count:
            break
        if candidate.candidate.title_key in selected_titles:
            continue

        genres = candidate.genres
        boost = _genre_diversity(genres, selected_genres) if genres else SIMPLE_SELECTION_NO_GENRES

        selected_titles.add(candidate.candidate.title_key)
        for genre in genres:
            selected_genres[genre] += 1

        rank = len(selected) + 1
        selected_ranks[candidate.id] = rank
        selected.append(
            SelectedCandidate(
                scored=candidate,
                rank=rank,
                diversity_boost=boost,
                selection_score=candidate.final_score + boost * diversity_weight,
            )
        )

    return SelectionResult(selected=selected, selected_ranks=selected_ranks)
