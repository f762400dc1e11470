"""
Taste profile helpers: embedding-based taste vector and vector math.
"""

from aperture.services.profile.taste import average_embeddings, build_taste_vector, cosine_similarity

__all__ = [
    "average_embeddings",
    "build_taste_vector",
    "cosine_similarity",
]
