from typing import Final

# Genre preference window (most recent watched items)
GENRE_PROFILE_WINDOW: Final[int] = 30

# Novelty (share of a candidate's genres the user has never watched)
NOVELTY_PENALTY_THRESHOLD: Final[float] = 0.7  # At or above: too unfamiliar
NOVELTY_PARTIAL_BASE: Final[float] = 0.5
NOVELTY_PARTIAL_SLOPE: Final[float] = 0.5  # 0.5-0.85 range for partial novelty
NOVELTY_TOO_NOVEL: Final[float] = 0.3
NOVELTY_FAMILIAR: Final[float] = 0.4

# Rating score (0-10 community rating → 0-1)
RATING_MIN: Final[float] = 0.0
RATING_MAX: Final[float] = 10.0
RATING_SCORE_UNRATED: Final[float] = 0.5
RATING_LOW_DIVISOR: Final[float] = 15.0  # Below 6: steep penalty

# Genre preference bonus (additive, outside the weighted blend)
PREFERENCE_BONUS_SCALE: Final[float] = 0.3
PREFERENCE_BONUS_CAP: Final[float] = 0.15

# Diversity boost split
DIVERSITY_GENRE_SHARE: Final[float] = 0.6
DIVERSITY_SECONDARY_SHARE: Final[float] = 0.4  # Network share for series, extra genre share for movies
DIVERSITY_NO_GENRES: Final[float] = 0.3
DIVERSITY_NEUTRAL_SECONDARY: Final[float] = 0.2
SIMPLE_SELECTION_NO_GENRES: Final[float] = 0.5

# Evidence
EVIDENCE_TYPE_FAVORITE: Final[str] = "favorite"
EVIDENCE_TYPE_HIGHLY_RATED: Final[str] = "highly_rated"
EVIDENCE_TYPE_WATCHED: Final[str] = "watched"
