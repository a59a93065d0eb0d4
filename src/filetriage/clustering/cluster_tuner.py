"""
Rule-based parameter tuning.

Given the parameters of the last attempt and the statistics of its
partition, proposes the parameters for the next attempt. Rules run in a
fixed order and each sees the changes made by the ones before it; the
emergency rule runs last and overrides the size and threshold fields.
"""

import logging
import math
from typing import List, Optional, Tuple

from .cluster_analyzer import LARGE_BUCKETS, SMALLEST_BUCKET
from .cluster_config import TuningConfig
from .cluster_types import ClusteringParameters, PartitionStats

logger = logging.getLogger(__name__)

THRESHOLD_DECIMALS = 4


class ParameterTuner:
    """
    Propose the next ClusteringParameters from the current partition stats.

    Rules, in order:
        1. Giant cluster: shrink max_cluster_size and lower the threshold
        2. Too many tiny clusters: raise min_cluster_size
        3. Cluster count off target: nudge the threshold toward the target
        4. Too many large clusters: shrink max_cluster_size
        5. Emergency: one cluster still holds a large share of all files
    """

    def __init__(
        self,
        config: Optional[TuningConfig] = None,
        max_cluster_size_percent: float = 0.1,
    ):
        """
        Initialize ParameterTuner.

        Args:
            config: Rule constants
            max_cluster_size_percent: Largest acceptable share of files in one cluster
        """
        self.config = config or TuningConfig()
        self.max_cluster_size_percent = max_cluster_size_percent

    def propose(
        self,
        current: ClusteringParameters,
        stats: PartitionStats,
        total_files: int,
        target_cluster_count: Optional[int] = None,
    ) -> ClusteringParameters:
        """Return the next parameters; ``current`` itself when no rule fires."""
        proposed, _ = self.propose_with_log(current, stats, total_files, target_cluster_count)
        return proposed

    def propose_with_log(
        self,
        current: ClusteringParameters,
        stats: PartitionStats,
        total_files: int,
        target_cluster_count: Optional[int] = None,
    ) -> Tuple[ClusteringParameters, List[str]]:
        """
        Apply the rule table.

        Args:
            current: Parameters of the last attempt
            stats: Statistics of the partition produced with ``current``
            total_files: Number of files being clustered
            target_cluster_count: Desired number of clusters, if any

        Returns:
            Tuple of (proposed parameters, human-readable change descriptions)
        """
        if total_files <= 0 or stats.total_clusters == 0:
            return current, []

        cfg = self.config
        min_size = current.min_cluster_size
        max_size = current.max_cluster_size
        threshold = current.similarity_threshold
        changes: List[str] = []
        largest = stats.largest_cluster_size

        # 1. Giant cluster
        giant_limit = max(self.max_cluster_size_percent * total_files, cfg.extreme_size_floor)
        if largest > giant_limit:
            overshoot = largest / giant_limit
            if overshoot > 3:
                factor = cfg.severe_reduction
            elif overshoot > 2:
                factor = cfg.strong_reduction
            else:
                factor = cfg.mild_reduction
            max_size = max(min_size, math.floor(min(max_size, largest) * factor))
            step = min(cfg.giant_threshold_step, cfg.giant_step_per_overshoot * overshoot)
            threshold = max(cfg.threshold_floor, threshold - step)
            changes.append(
                f"Largest cluster has {largest} files (limit {giant_limit:.0f}); "
                f"max_cluster_size -> {max_size}, similarity_threshold -> {threshold:.3f}"
            )

        # 2. Glut of tiny clusters
        small_share = stats.bucket_share([SMALLEST_BUCKET])
        if (
            small_share > cfg.small_bucket_share
            and stats.total_clusters > cfg.small_glut_min_clusters
            and min_size < cfg.max_min_cluster_size
        ):
            min_size += 1
            max_size = max(max_size, min_size)
            changes.append(
                f"{small_share:.0%} of clusters have 5 or fewer files; "
                f"min_cluster_size -> {min_size}"
            )

        # 3. Cluster count relative to target
        if target_cluster_count:
            upper = target_cluster_count * (1 + cfg.target_tolerance)
            lower = target_cluster_count * (1 - cfg.target_tolerance)
            if stats.total_clusters > upper and threshold < cfg.threshold_ceiling:
                threshold = min(cfg.threshold_ceiling, threshold + cfg.target_threshold_step)
                changes.append(
                    f"{stats.total_clusters} clusters above target {target_cluster_count}; "
                    f"similarity_threshold -> {threshold:.3f}"
                )
            elif stats.total_clusters < lower and threshold > cfg.threshold_floor:
                threshold = max(cfg.threshold_floor, threshold - cfg.target_threshold_step)
                changes.append(
                    f"{stats.total_clusters} clusters below target {target_cluster_count}; "
                    f"similarity_threshold -> {threshold:.3f}"
                )

        # 4. Glut of large clusters
        large_share = stats.bucket_share(LARGE_BUCKETS)
        if large_share > cfg.large_bucket_share:
            reduced = max(min_size, math.floor(max_size * (1 - large_share / 2)))
            if reduced != max_size:
                max_size = reduced
                changes.append(
                    f"{large_share:.0%} of clusters have more than 25 files; "
                    f"max_cluster_size -> {max_size}"
                )

        # 5. Emergency
        emergency_limit = max(cfg.emergency_fraction * total_files, cfg.extreme_size_floor)
        if largest > emergency_limit:
            max_size = max(min_size, math.ceil(self.max_cluster_size_percent * total_files))
            threshold = max(
                cfg.threshold_floor,
                current.similarity_threshold - cfg.emergency_threshold_drop,
            )
            changes.append(
                f"Emergency: largest cluster holds {largest / total_files:.0%} of files; "
                f"max_cluster_size -> {max_size}, similarity_threshold -> {threshold:.3f}"
            )

        if threshold != current.similarity_threshold:
            threshold = round(threshold, THRESHOLD_DECIMALS)
        proposed = current.replace(
            min_cluster_size=min_size,
            max_cluster_size=max_size,
            similarity_threshold=threshold,
        )
        if proposed == current:
            return current, []

        for change in changes:
            logger.debug(f"Tuning rule fired: {change}")
        return proposed, changes
