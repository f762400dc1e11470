"""Shared fixtures for recommender tests."""

import pytest

from aperture.models.pipeline import PipelineConfig
from aperture.models.profile import WatchedItem


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig(
        max_candidates=1000,
        selected_count=10,
        similarity_weight=0.4,
        novelty_weight=0.2,
        rating_weight=0.2,
        diversity_weight=0.2,
        recent_watch_limit=50,
    )


@pytest.fixture
def action_drama_window() -> list[WatchedItem]:
    """20 Action movies followed by 10 Drama movies."""
    action = [WatchedItem(id=f"a{i}", genres=["Action"]) for i in range(20)]
    drama = [WatchedItem(id=f"d{i}", genres=["Drama"]) for i in range(10)]
    return action + drama
