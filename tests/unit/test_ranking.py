"""Rank assignment and persisted row tests."""

from aperture.services.recommendation.ranking import assign_ranks, build_candidate_rows
from aperture.services.recommendation.selection import apply_diversity_selection
from tests.factories import make_scored


def test_assign_ranks_one_based():
    scored = [make_scored(id, 0.5) for id in ("x", "y", "z")]
    result = apply_diversity_selection(scored, 3, 0.0)

    assert assign_ranks(result.selected) == {"x": 1, "y": 2, "z": 3}
    assert assign_ranks(result.selected) == result.selected_ranks


def test_rows_include_selected_beyond_limit():
    scored = [
        make_scored("a", 0.90, genres=["Action"]),
        make_scored("b", 0.89, genres=["Action"]),
        make_scored("c", 0.88, genres=["Action"]),
        make_scored("d", 0.50, genres=["Comedy"]),
    ]
    selection = apply_diversity_selection(scored, 2, 0.9)

    rows = build_candidate_rows(scored, selection, limit=2)

    assert [row.candidate_id for row in rows] == ["a", "b", "d"]
    extra = rows[-1]
    assert extra.rank == 4
    assert extra.is_selected
    assert extra.selected_rank == 2


def test_row_scores_and_breakdown():
    scored = [make_scored("a", 0.9, genres=["Action"]), make_scored("b", 0.1, genres=["Drama"])]
    selection = apply_diversity_selection(scored, 1, 0.2)

    picked, skipped = build_candidate_rows(scored, selection, limit=10)

    assert picked.is_selected and picked.selected_rank == 1
    assert picked.final_score == 0.9
    assert picked.selection_score == selection.selected[0].selection_score
    assert picked.score_breakdown["diversity"] == picked.diversity_boost
    assert not skipped.is_selected
    assert skipped.selected_rank is None
    assert skipped.selection_score is None
    assert skipped.diversity_boost == 0.0
    assert set(skipped.score_breakdown) == {"similarity", "novelty", "rating", "preference", "diversity"}
