from collections.abc import Sequence

from aperture.core.config import settings
from aperture.models.candidate import CandidateRow, ScoredCandidate, SelectedCandidate, SelectionResult


def assign_ranks(selected: Sequence[SelectedCandidate]) -> dict[str, int]:
    """Map candidate ID → 1-based position in selection order."""
    return {item.id: position for position, item in enumerate(selected, start=1)}


def build_candidate_rows(
    scored: Sequence[ScoredCandidate],
    selection: SelectionResult,
    limit: int | None = None,
) -> list[CandidateRow]:
    """
    Rows to persist for a run.

    Stores the top `limit` scored candidates plus every selected candidate
    beyond that limit, since diversity selection can reach past it. `rank` is
    the position in the full scored list; `selected_rank` the selection order.

    Args:
        scored: All scored candidates, best first
        selection: Output of diversity selection
        limit: Number of top scored candidates to keep

    Returns:
        Candidate rows in storage order
    """
    limit = settings.STORED_CANDIDATE_LIMIT if limit is None else limit
    ranks = selection.selected_ranks or assign_ranks(selection.selected)
    by_id = {item.id: item for item in selection.selected}
    positions = {s.id: position for position, s in enumerate(scored, start=1)}

    to_store = list(scored[:limit])
    stored_ids = {s.id for s in to_store}
    to_store.extend(item.scored for item in selection.selected if item.id not in stored_ids)

    rows = []
    for s in to_store:
        picked = by_id.get(s.id)
        diversity = picked.diversity_boost if picked else 0.0
        rows.append(
            CandidateRow(
                candidate_id=s.id,
                rank=positions.get(s.id, len(positions) + 1),
                is_selected=picked is not None,
                selected_rank=ranks.get(s.id) if picked else None,
                final_score=s.final_score,
                selection_score=picked.selection_score if picked else None,
                similarity=s.similarity,
                novelty=s.novelty,
                rating_score=s.rating_score,
                preference_bonus=s.preference_bonus,
                diversity_boost=diversity,
                score_breakdown={
                    "similarity": s.similarity,
                    "novelty": s.novelty,
                    "rating": s.rating_score,
                    "preference": s.preference_bonus,
                    "diversity": diversity,
                },
            )
        )
    return rows
