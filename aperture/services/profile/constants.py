from typing import Final

# Taste vector weighting (history arrives favourites/play count/recency ordered)
TASTE_POSITION_DECAY: Final[float] = 0.3  # First item 1.0, last item ~0.7
TASTE_PLAY_COUNT_BOOST: Final[float] = 0.4  # Up to 40% for the most rewatched
TASTE_FAVORITE_BOOST: Final[float] = 1.8
TASTE_FAVORITE_BOOST_MANY: Final[float] = 1.5  # More than 10 favourites
TASTE_FAVORITE_BOOST_LOTS: Final[float] = 1.3  # More than 20 favourites
TASTE_ACCLAIMED_RATING: Final[float] = 7.5
TASTE_RATING_BOOST: Final[float] = 0.05  # Per rating point above 7
TASTE_WEIGHT_CAP_FACTOR: Final[float] = 3.0  # Max weight as a multiple of the mean
