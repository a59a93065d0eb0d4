"""HDBSCAN clustering strategy implementation."""

import logging
from typing import Optional

import numpy as np
from sklearn.cluster import HDBSCAN
from sklearn.preprocessing import normalize

from .base import DensityClusterer

logger = logging.getLogger(__name__)


class HDBSCANStrategy(DensityClusterer):
    """
    HDBSCAN (Hierarchical Density-Based Spatial Clustering of Applications with Noise).

    Finds clusters of varying density without a preset cluster count and
    labels sparse points as noise. Embeddings are L2-normalized first, so
    euclidean distances rank pairs exactly as cosine distances do.

    Parameters:
        cluster_selection_method: 'eom' or 'leaf' (default: 'eom')
        allow_single_cluster: Allow a single cluster covering all points (default: False)
        algorithm: Neighbour search algorithm (default: 'auto')
        use_similarity_threshold: Map the similarity threshold to a merge radius (default: True)
        merge_scale: Radius per unit of threshold above threshold_floor (default: 1.0)
        threshold_floor: Threshold at or below which no merging happens (default: 0.7)

    Example:
        >>> strategy = HDBSCANStrategy()
        >>> labels = strategy.cluster(embeddings, min_cluster_size=3, min_samples=3)
    """

    @property
    def name(self) -> str:
        """Strategy name."""
        return "hdbscan"

    def validate_params(self) -> None:
        """Validate strategy parameters."""
        self.params.setdefault("cluster_selection_method", "eom")
        self.params.setdefault("allow_single_cluster", False)
        self.params.setdefault("algorithm", "auto")
        self.params.setdefault("use_similarity_threshold", True)
        self.params.setdefault("merge_scale", 1.0)
        self.params.setdefault("threshold_floor", 0.7)

        if self.params["cluster_selection_method"] not in ("eom", "leaf"):
            raise ValueError("cluster_selection_method must be 'eom' or 'leaf'")

        valid_algorithms = ["auto", "brute", "kd_tree", "ball_tree"]
        if self.params["algorithm"] not in valid_algorithms:
            raise ValueError(f"algorithm must be one of {valid_algorithms}")

        if self.params["merge_scale"] < 0:
            raise ValueError("merge_scale must be >= 0")

        if not (0.0 <= self.params["threshold_floor"] < 1.0):
            raise ValueError("threshold_floor must be in [0, 1)")

    def selection_epsilon(self, similarity_threshold: Optional[float]) -> float:
        """Merge radius on the unit sphere derived from the similarity threshold."""
        if similarity_threshold is None or not self.params["use_similarity_threshold"]:
            return 0.0
        excess = max(0.0, similarity_threshold - self.params["threshold_floor"])
        return float(self.params["merge_scale"] * excess)

    def _fit_labels(
        self,
        data: np.ndarray,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float],
    ) -> np.ndarray:
        n_samples = data.shape[0]

        # HDBSCAN needs at least two points; a lone point is its own group
        if n_samples < 2:
            return np.zeros(n_samples, dtype=np.int64)

        unit = normalize(data)

        # scikit-learn requires min_cluster_size >= 2 and min_samples <= n_samples
        cluster_size = max(2, min(min_cluster_size, n_samples))
        samples = max(1, min(min_samples, n_samples))
        epsilon = self.selection_epsilon(similarity_threshold)

        logger.debug(
            f"Performing HDBSCAN with min_cluster_size={cluster_size}, "
            f"min_samples={samples}, cluster_selection_epsilon={epsilon:.4f}"
        )

        hdbscan = HDBSCAN(
            min_cluster_size=cluster_size,
            min_samples=samples,
            cluster_selection_epsilon=epsilon,
            cluster_selection_method=self.params["cluster_selection_method"],
            allow_single_cluster=self.params["allow_single_cluster"],
            algorithm=self.params["algorithm"],
            copy=False,
        )
        labels = hdbscan.fit_predict(unit)

        n_clusters = len(set(labels.tolist()) - {-1})
        n_noise = int(np.sum(labels == -1))
        logger.info(f"HDBSCAN found {n_clusters} clusters and {n_noise} noise points")

        return labels.astype(np.int64)
