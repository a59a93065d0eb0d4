"""Utility functions for filetriage."""

from .similarity import (
    centroid,
    cosine_distance,
    cosine_distances_to,
    cosine_similarity,
    cosine_similarity_matrix,
    normalize_rows,
)

__all__ = [
    "cosine_similarity",
    "cosine_distance",
    "centroid",
    "normalize_rows",
    "cosine_similarity_matrix",
    "cosine_distances_to",
]
