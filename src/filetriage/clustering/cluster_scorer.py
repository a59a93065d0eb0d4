"""
Partition quality scoring.

Combines four sub-scores into one comparable value in [0, 1]:

- balance: closeness of the bucket distribution to an ideal profile
- extreme-size penalty: how far the largest cluster exceeds its allowed share
- target count: closeness to a requested number of clusters
- count balance: whether the clusters-per-file ratio sits in a sane band

Inactive sub-scores (no target, too few files) drop out and the remaining
weights are renormalised.
"""

import logging
from typing import Dict, Optional

from .cluster_config import ScoringConfig
from .cluster_types import PartitionStats

logger = logging.getLogger(__name__)


class QualityScorer:
    """Score partitions from their PartitionStats."""

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        max_cluster_size_percent: float = 0.1,
    ):
        """
        Initialize QualityScorer.

        Args:
            config: Scoring weights and constants
            max_cluster_size_percent: Largest acceptable share of files in one cluster
        """
        self.config = config or ScoringConfig()
        self.max_cluster_size_percent = max_cluster_size_percent

    def score(
        self,
        stats: PartitionStats,
        total_files: int,
        target_cluster_count: Optional[int] = None,
    ) -> float:
        """
        Score a partition.

        Args:
            stats: Statistics of the partition
            total_files: Number of files being clustered
            target_cluster_count: Desired number of clusters, if any

        Returns:
            Score in [0, 1]; higher is better
        """
        components = self.components(stats, total_files, target_cluster_count)
        if not components:
            return 0.0

        weights = {
            "balance": self.config.balance_weight,
            "extreme": self.config.extreme_weight,
            "target": self.config.target_weight,
            "count_balance": self.config.count_balance_weight,
        }
        total_weight = sum(weights[name] for name in components)
        if total_weight <= 0:
            return 0.0

        value = sum(weights[name] * score for name, score in components.items()) / total_weight
        return min(1.0, max(0.0, value))

    def components(
        self,
        stats: PartitionStats,
        total_files: int,
        target_cluster_count: Optional[int] = None,
    ) -> Dict[str, float]:
        """Active sub-scores keyed by name; empty for an empty partition."""
        if stats.total_clusters == 0 or total_files <= 0:
            return {}

        components = {
            "balance": self.balance_score(stats),
            "extreme": self.extreme_size_score(stats, total_files),
        }
        if target_cluster_count:
            components["target"] = self.target_score(stats.total_clusters, target_cluster_count)
        if total_files >= self.config.count_balance_min_files:
            components["count_balance"] = self.count_balance_score(
                stats.total_clusters, total_files
            )
        return components

    def balance_score(self, stats: PartitionStats) -> float:
        """1 minus the mean absolute deviation from the ideal bucket profile."""
        actual = stats.bucket_distribution
        ideal = self.config.ideal_distribution
        if not actual:
            return 0.0
        deviation = sum(abs(a - b) for a, b in zip(actual, ideal)) / len(ideal)
        return max(0.0, 1.0 - deviation)

    def extreme_size_score(self, stats: PartitionStats, total_files: int) -> float:
        share = stats.largest_cluster_size / total_files
        ceiling = max(self.max_cluster_size_percent, self.config.extreme_size_floor / total_files)
        excess = max(0.0, share - ceiling)
        return max(0.0, 1.0 - excess * self.config.penalty_multiplier)

    @staticmethod
    def target_score(actual: int, target: int) -> float:
        return max(0.0, 1.0 - abs(actual - target) / target)

    def count_balance_score(self, total_clusters: int, total_files: int) -> float:
        """
        Score the clusters-per-file ratio.

        1 inside the configured band, falling linearly to 0 at half the lower
        edge and at twice the upper edge.
        """
        low, high = self.config.count_ratio_band
        ratio = total_clusters / total_files

        if low <= ratio <= high:
            return 1.0
        if ratio < low:
            zero_at = low / 2
            return max(0.0, (ratio - zero_at) / (low - zero_at))
        zero_at = high * 2
        return max(0.0, (zero_at - ratio) / (zero_at - high))
