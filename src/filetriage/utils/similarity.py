"""Similarity computation utilities for file embeddings."""

from typing import Optional, Sequence, Union

import numpy as np

ArrayLike = Union[np.ndarray, Sequence[float]]


def cosine_similarity(a: ArrayLike, b: ArrayLike) -> float:
    """Compute cosine similarity between two embeddings.

    Args:
        a: First embedding (will be flattened)
        b: Second embedding (will be flattened)

    Returns:
        Cosine similarity value between -1 and 1.
        Returns 0.0 if the lengths differ or either vector has zero norm.
    """
    a_flat = np.asarray(a, dtype=np.float64).ravel()
    b_flat = np.asarray(b, dtype=np.float64).ravel()

    if a_flat.shape != b_flat.shape or a_flat.size == 0:
        return 0.0

    norm_a = np.linalg.norm(a_flat)
    norm_b = np.linalg.norm(b_flat)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a_flat, b_flat) / (norm_a * norm_b))


def cosine_distance(a: ArrayLike, b: ArrayLike) -> float:
    """Cosine distance, ``1 - cosine_similarity(a, b)``."""
    return 1.0 - cosine_similarity(a, b)


def centroid(vectors: Sequence[ArrayLike]) -> np.ndarray:
    """Element-wise mean of a group of embeddings.

    Returns an empty array for empty input.
    """
    if len(vectors) == 0:
        return np.empty(0, dtype=np.float64)
    return np.mean(np.asarray(vectors, dtype=np.float64), axis=0)


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """L2-normalize each row, leaving zero rows as zeros."""
    data = np.asarray(matrix, dtype=np.float64)
    norms = np.linalg.norm(data, axis=1, keepdims=True)
    safe = np.where(norms == 0, 1.0, norms)
    return data / safe


def cosine_similarity_matrix(
    matrix: np.ndarray,
    other: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Cosine similarities between the rows of ``matrix`` and the rows of ``other``.

    With ``other`` omitted the result is the pairwise matrix of ``matrix``.
    Rows with zero norm have similarity 0 to everything, themselves included,
    matching :func:`cosine_similarity`.
    """
    unit = normalize_rows(matrix)
    other_unit = unit if other is None else normalize_rows(other)
    return unit @ other_unit.T


def cosine_distances_to(matrix: np.ndarray, point: ArrayLike) -> np.ndarray:
    """Cosine distance from every row of ``matrix`` to ``point``."""
    unit = normalize_rows(matrix)
    target = np.asarray(point, dtype=np.float64).ravel()
    norm = np.linalg.norm(target)
    if norm == 0 or target.shape[0] != unit.shape[1]:
        return np.ones(unit.shape[0], dtype=np.float64)
    return 1.0 - unit @ (target / norm)
