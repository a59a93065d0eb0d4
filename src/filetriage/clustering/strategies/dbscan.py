"""DBSCAN clustering strategy implementation."""

import logging
from typing import Optional

import numpy as np
from sklearn.cluster import DBSCAN
from sklearn.neighbors import NearestNeighbors
from sklearn.preprocessing import normalize

from .base import DensityClusterer

logger = logging.getLogger(__name__)


class DBSCANStrategy(DensityClusterer):
    """
    DBSCAN (Density-Based Spatial Clustering of Applications with Noise) strategy.

    Uses a single global density level. Embeddings are L2-normalized so the
    euclidean radius corresponds to a cosine similarity band. Groups smaller
    than ``min_cluster_size`` are reported as noise.

    Parameters:
        eps: Neighbourhood radius on the unit sphere (default: auto)
        auto_eps: Tune eps from the k-distance curve when eps is None (default: True)
        eps_quantile: Quantile of k-distances used for auto eps (default: 0.3)
        algorithm: Neighbour search algorithm (default: 'auto')

    Example:
        >>> strategy = DBSCANStrategy(eps_quantile=0.5)
        >>> labels = strategy.cluster(embeddings, min_cluster_size=2, min_samples=2)
    """

    @property
    def name(self) -> str:
        """Strategy name."""
        return "dbscan"

    def validate_params(self) -> None:
        """Validate strategy parameters."""
        self.params.setdefault("eps", None)
        self.params.setdefault("auto_eps", True)
        self.params.setdefault("eps_quantile", 0.3)
        self.params.setdefault("algorithm", "auto")

        if self.params["eps"] is not None and self.params["eps"] <= 0:
            raise ValueError("eps must be > 0")

        if self.params["eps_quantile"] <= 0 or self.params["eps_quantile"] >= 1:
            raise ValueError("eps_quantile must be in (0, 1)")

        valid_algorithms = ["auto", "ball_tree", "kd_tree", "brute"]
        if self.params["algorithm"] not in valid_algorithms:
            raise ValueError(f"algorithm must be one of {valid_algorithms}")

    def _fit_labels(
        self,
        data: np.ndarray,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float],
    ) -> np.ndarray:
        n_samples = data.shape[0]
        if n_samples < 2:
            return np.zeros(n_samples, dtype=np.int64)

        unit = normalize(data)
        samples = max(1, min(min_samples, n_samples))

        if self.params["auto_eps"] and self.params["eps"] is None:
            eps = self._auto_tune_eps(unit, samples)
            logger.debug(f"Auto-tuned eps: {eps:.4f}")
        else:
            eps = self.params["eps"] if self.params["eps"] is not None else 0.5

        logger.debug(f"Performing DBSCAN with eps={eps:.4f}, min_samples={samples}")
        dbscan = DBSCAN(eps=eps, min_samples=samples, algorithm=self.params["algorithm"])
        labels = dbscan.fit_predict(unit).astype(np.int64)

        labels = self._drop_small_clusters(labels, min_cluster_size)
        n_clusters = len(set(labels.tolist()) - {-1})
        logger.info(
            f"DBSCAN found {n_clusters} clusters and {int(np.sum(labels == -1))} noise points"
        )
        return labels

    def _auto_tune_eps(self, data: np.ndarray, min_samples: int) -> float:
        """
        Automatically tune eps using the k-distance graph method.

        Args:
            data: Normalized feature matrix
            min_samples: Minimum samples parameter

        Returns:
            Suggested eps value
        """
        k = min(min_samples, data.shape[0])
        nbrs = NearestNeighbors(n_neighbors=k)
        nbrs.fit(data)

        distances, _ = nbrs.kneighbors(data)
        k_distances = np.sort(distances[:, -1])

        eps = float(np.quantile(k_distances, self.params["eps_quantile"]))
        if eps <= 0:
            eps = float(np.mean(k_distances))
        if eps <= 0:
            # Every point coincides with its neighbours
            eps = 1e-6

        # Add some buffer
        return eps * 1.1

    @staticmethod
    def _drop_small_clusters(labels: np.ndarray, min_cluster_size: int) -> np.ndarray:
        """Mark clusters below min_cluster_size as noise and renumber the rest contiguously."""
        result = np.full(labels.shape, -1, dtype=np.int64)
        next_id = 0
        for label in sorted(set(labels.tolist()) - {-1}):
            mask = labels == label
            if int(np.sum(mask)) >= min_cluster_size:
                result[mask] = next_id
                next_id += 1
        return result
