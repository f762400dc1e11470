"""Scorer tests: genre profile, novelty, rating score, preference bonus, final score."""

import math

import pytest
from pydantic import ValidationError

from aperture.models.profile import GenrePreferenceProfile, WatchedItem
from aperture.services.recommendation.scoring import (
    build_genre_profile,
    calculate_novelty,
    calculate_preference_bonus,
    calculate_rating_score,
    score_candidates,
)
from aperture.services.recommendation.selection import apply_diversity_selection
from tests.factories import make_candidate


class TestGenreProfile:
    def test_normalized_preferences(self, action_drama_window):
        profile = build_genre_profile(action_drama_window)

        assert profile.genre_frequency == {"Action": 20, "Drama": 10}
        assert profile.total_occurrences == 30
        assert profile.genre_preference["Action"] == pytest.approx(2 / 3)
        assert profile.genre_preference["Drama"] == pytest.approx(1 / 3)

    def test_window_capped_at_thirty(self):
        window = [WatchedItem(id=f"a{i}", genres=["Action"]) for i in range(30)]
        window += [WatchedItem(id=f"h{i}", genres=["Horror"]) for i in range(10)]

        profile = build_genre_profile(window, limit=50)

        assert profile.window_size == 30
        assert "Horror" not in profile.genre_frequency

    def test_limit_smaller_than_cap(self, action_drama_window):
        profile = build_genre_profile(action_drama_window, limit=5)

        assert profile.window_size == 5
        assert profile.genre_frequency == {"Action": 5}

    def test_empty_window(self):
        profile = build_genre_profile([])

        assert profile.genre_preference == {}
        assert profile.preference("Action") == 0.0

    def test_idempotent(self, action_drama_window):
        first = build_genre_profile(action_drama_window)
        second = build_genre_profile(action_drama_window)

        assert first.genre_preference == second.genre_preference

    def test_duplicate_genres_counted_once_per_item(self):
        profile = build_genre_profile([WatchedItem(id="x", genres=["Action", "Action", None])])

        assert profile.genre_frequency == {"Action": 1}


class TestNovelty:
    @pytest.fixture
    def profile(self, action_drama_window) -> GenrePreferenceProfile:
        return build_genre_profile(action_drama_window)

    def test_fully_familiar(self, profile):
        assert calculate_novelty(["Action"], profile) == 0.4

    def test_half_novel(self, profile):
        assert calculate_novelty(["Horror", "Action"], profile) == pytest.approx(0.75)

    def test_one_third_novel(self, profile):
        assert calculate_novelty(["Horror", "Action", "Drama"], profile) == pytest.approx(0.5 + (1 / 3) * 0.5)

    def test_two_thirds_novel_still_rewarded(self, profile):
        assert calculate_novelty(["Horror", "Comedy", "Action"], profile) == pytest.approx(0.5 + (2 / 3) * 0.5)

    def test_exactly_seventy_percent_novel_penalized(self):
        profile = build_genre_profile([WatchedItem(id="w1", genres=["Action", "Drama", "Comedy"])])
        genres = ["Action", "Drama", "Comedy", "Horror", "Western", "Musical", "War", "Sport", "Family", "Fantasy"]

        assert calculate_novelty(genres, profile) == 0.3

    def test_mostly_novel_penalized(self, profile):
        assert calculate_novelty(["Horror", "Comedy", "Western", "Action"], profile) == 0.3
        assert calculate_novelty(["Horror"], profile) == 0.3

    def test_no_genres(self, profile):
        assert calculate_novelty([], profile) == 0.4


class TestRatingScore:
    @pytest.mark.parametrize(
        "rating,expected",
        [
            (None, 0.5),
            (0, 0.5),
            (10, 1.0),
            (8, 0.8),
            (8.5, 0.85),
            (7.5, 0.7),
            (7, 0.6),
            (6.5, 0.5),
            (6, 0.4),
            (4.5, 0.3),
            (101, 1.0),
            (-3, 0.0),
            (float("nan"), 0.5),
            (float("inf"), 1.0),
            (float("-inf"), 0.0),
        ],
    )
    def test_piecewise_mapping(self, rating, expected):
        assert calculate_rating_score(rating) == pytest.approx(expected)

    def test_always_in_unit_range(self):
        for tenth in range(-20, 121):
            score = calculate_rating_score(tenth / 10)
            assert 0.0 <= score <= 1.0


class TestPreferenceBonus:
    def test_capped(self, action_drama_window):
        profile = build_genre_profile(action_drama_window)

        assert calculate_preference_bonus(["Action"], profile) == pytest.approx(0.15)

    def test_below_cap(self, action_drama_window):
        profile = build_genre_profile(action_drama_window)

        assert calculate_preference_bonus(["Drama"], profile) == pytest.approx(0.1)

    def test_unknown_genres(self, action_drama_window):
        profile = build_genre_profile(action_drama_window)

        assert calculate_preference_bonus(["Horror"], profile) == 0.0
        assert calculate_preference_bonus([], profile) == 0.0


class TestScoreCandidates:
    def test_action_candidate(self, action_drama_window, pipeline_config):
        candidate = make_candidate("c1", genres=["Action"], rating=8.5, similarity=0.9)

        [scored] = score_candidates([candidate], action_drama_window, pipeline_config)

        assert scored.novelty == 0.4
        assert scored.rating_score == pytest.approx(0.85)
        assert scored.preference_bonus == pytest.approx(0.15)
        assert scored.final_score == pytest.approx(0.9 * 0.4 + 0.4 * 0.2 + 0.85 * 0.2 + 0.15)

    def test_mixed_genre_candidate(self, action_drama_window, pipeline_config):
        candidate = make_candidate("c1", genres=["Horror", "Action"], rating=7.0, similarity=0.5)

        [scored] = score_candidates([candidate], action_drama_window, pipeline_config)

        assert scored.novelty == pytest.approx(0.75)

    def test_sorted_descending_with_id_tiebreak(self, action_drama_window, pipeline_config):
        candidates = [
            make_candidate("b", genres=["Drama"], rating=7, similarity=0.5),
            make_candidate("a", genres=["Drama"], rating=7, similarity=0.5),
            make_candidate("c", genres=["Action"], rating=9, similarity=0.9),
        ]

        scored = score_candidates(candidates, action_drama_window, pipeline_config)

        assert [s.id for s in scored] == ["c", "a", "b"]

    def test_empty_history(self, pipeline_config):
        candidates = [make_candidate("a", genres=["Action", "Horror"]), make_candidate("b", genres=[])]

        scored = score_candidates(candidates, [], pipeline_config)

        assert all(s.novelty == 0.4 for s in scored)
        assert all(s.preference_bonus == 0.0 for s in scored)

    def test_missing_genres_and_rating(self, action_drama_window, pipeline_config):
        candidate = make_candidate("a", genres=None, rating=None, similarity=0.0)

        [scored] = score_candidates([candidate], action_drama_window, pipeline_config)

        assert scored.novelty == 0.4
        assert scored.rating_score == 0.5
        assert scored.preference_bonus == 0.0

    def test_nan_rating_scored_as_unrated_and_still_selected(self, action_drama_window, pipeline_config):
        candidates = [
            make_candidate("a", genres=["Action"], rating=float("nan"), similarity=0.9),
            make_candidate("b", genres=["Action"], rating=9.0, similarity=0.1),
        ]

        scored = score_candidates(candidates, action_drama_window, pipeline_config)
        result = apply_diversity_selection(scored, 2, pipeline_config.diversity_weight)

        by_id = {s.id: s for s in scored}
        assert by_id["a"].rating_score == 0.5
        assert math.isfinite(by_id["a"].final_score)
        assert [s.id for s in scored] == ["a", "b"]
        assert len(result.selected) == 2

    def test_inputs_not_mutated(self, action_drama_window, pipeline_config):
        candidate = make_candidate("a", genres=["Action"], rating=8)

        [scored] = score_candidates([candidate], action_drama_window, pipeline_config)

        assert scored.candidate is candidate
        with pytest.raises(ValidationError):
            scored.final_score = 0.0

    def test_deterministic(self, action_drama_window, pipeline_config):
        candidates = [
            make_candidate(f"c{i}", genres=["Action", "Drama", "Horror"][: i % 3 + 1], rating=5 + i % 5, similarity=i / 20)
            for i in range(20)
        ]

        first = score_candidates(candidates, action_drama_window, pipeline_config)
        second = score_candidates(candidates, action_drama_window, pipeline_config)

        assert [(s.id, s.final_score) for s in first] == [(s.id, s.final_score) for s in second]

    def test_novelty_range(self, action_drama_window, pipeline_config):
        genre_sets = [[], ["Action"], ["Horror"], ["Horror", "Action"], ["Horror", "Comedy", "Action"], ["A", "B", "C"]]
        candidates = [make_candidate(f"c{i}", genres=g) for i, g in enumerate(genre_sets)]

        for s in score_candidates(candidates, action_drama_window, pipeline_config):
            assert s.novelty in (0.3, 0.4) or 0.5 <= s.novelty <= 0.85
