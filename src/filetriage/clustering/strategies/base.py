"""Base density clustering strategy interface and label validation."""

import asyncio
import functools
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import numpy as np

from ..cluster_types import NOISE_LABEL, PrimitiveFailureError

logger = logging.getLogger(__name__)


class DensityClusterer(ABC):
    """
    Abstract base class for density-based clustering primitives.

    A strategy receives an (n_samples, n_features) matrix together with
    ``min_cluster_size`` and ``min_samples`` and returns one integer label per
    row: ``0..K-1`` for cluster members and ``-1`` for noise. Strategies are
    stateless between calls; the same input yields the same labels.

    ``similarity_threshold`` is an optional hint. Higher values mean nearby
    density clusters may be merged more readily; strategies that have no use
    for it ignore it.
    """

    def __init__(self, **params: Any):
        """Initialize strategy with parameters."""
        self.params = params
        self.validate_params()

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy name."""

    @abstractmethod
    def validate_params(self) -> None:
        """Validate strategy parameters, filling in defaults."""

    @abstractmethod
    def _fit_labels(
        self,
        data: np.ndarray,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float],
    ) -> np.ndarray:
        """Compute labels for a non-empty 2-D float matrix."""

    def cluster(
        self,
        vectors: Any,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float] = None,
    ) -> np.ndarray:
        """
        Cluster embedding vectors.

        Args:
            vectors: Matrix of shape (n_samples, n_features)
            min_cluster_size: Smallest group the primitive may report as a cluster
            min_samples: Neighbourhood size used to estimate density
            similarity_threshold: Optional merge-permissiveness hint in (0, 1]

        Returns:
            Integer label array of length n_samples
        """
        data = np.asarray(vectors, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2-D matrix, got shape {data.shape}")
        if data.shape[0] == 0:
            return np.empty(0, dtype=np.int64)

        return self._fit_labels(data, min_cluster_size, min_samples, similarity_threshold)

    async def cluster_async(
        self,
        vectors: Any,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float] = None,
    ) -> np.ndarray:
        """Run :meth:`cluster` in the default executor so the event loop stays free."""
        loop = asyncio.get_running_loop()
        call = functools.partial(
            self.cluster, vectors, min_cluster_size, min_samples, similarity_threshold
        )
        return await loop.run_in_executor(None, call)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.params!r})"


def validate_labels(labels: Any, n_samples: int) -> np.ndarray:
    """
    Check a label array against the density primitive contract.

    Labels must be a 1-D integer array of length ``n_samples`` whose values
    are ``-1`` or form the contiguous range ``0..K-1``.

    Returns:
        The labels as an int64 array

    Raises:
        PrimitiveFailureError: If the labels are malformed
    """
    try:
        array = np.asarray(labels)
    except Exception as e:
        raise PrimitiveFailureError("clusterer returned labels that are not an array") from e

    if array.ndim != 1 or array.shape[0] != n_samples:
        raise PrimitiveFailureError(
            f"clusterer returned {array.shape} labels for {n_samples} vectors"
        )
    if n_samples == 0:
        return array.astype(np.int64)

    if array.dtype.kind == "f":
        if not np.all(np.isfinite(array)) or not np.all(array == np.round(array)):
            raise PrimitiveFailureError("clusterer returned non-integer labels")
    elif array.dtype.kind not in ("i", "u"):
        raise PrimitiveFailureError(f"clusterer returned labels of dtype {array.dtype}")

    array = array.astype(np.int64)
    if np.any(array < NOISE_LABEL):
        raise PrimitiveFailureError("clusterer returned labels below -1")

    cluster_labels = np.unique(array[array != NOISE_LABEL])
    if cluster_labels.size and cluster_labels[-1] != cluster_labels.size - 1:
        raise PrimitiveFailureError(
            f"clusterer returned out-of-range cluster ids (max {cluster_labels[-1]}, "
            f"{cluster_labels.size} clusters)"
        )
    return array
