"""
Partition statistics and tuning suggestions.

Summarises a partition as a fixed-bucket size histogram plus a handful of
plain-language suggestions for the next clustering attempt.
"""

import logging
from collections import OrderedDict
from typing import List, Optional, Sequence, Tuple

from .cluster_types import Cluster, PartitionStats

logger = logging.getLogger(__name__)

# (label, lower bound, upper bound) with inclusive bounds; None = unbounded
SIZE_BUCKETS: Tuple[Tuple[str, int, Optional[int]], ...] = (
    ("1-5", 1, 5),
    ("6-10", 6, 10),
    ("11-25", 11, 25),
    ("26-50", 26, 50),
    ("51-100", 51, 100),
    ("100+", 101, None),
)

BUCKET_LABELS: Tuple[str, ...] = tuple(label for label, _, _ in SIZE_BUCKETS)
SMALLEST_BUCKET = BUCKET_LABELS[0]
TWO_LARGEST_BUCKETS = BUCKET_LABELS[-2:]
LARGE_BUCKETS = BUCKET_LABELS[3:]


def bucket_for_size(size: int) -> str:
    """Return the histogram bucket label for a cluster size."""
    for label, low, high in SIZE_BUCKETS:
        if size >= low and (high is None or size <= high):
            return label
    # Sizes below 1 never occur in a partition; count them with the smallest clusters
    return SMALLEST_BUCKET


class ClusterAnalyzer:
    """
    Compute PartitionStats for a partition.

    Thresholds for the suggestions:
        - more than 30% of clusters with 1-5 files
        - largest cluster above ``max_cluster_size_percent`` of all files
        - more than 20% of clusters in the two largest buckets
        - a single cluster with more than 10 files
        - more than 25% of files in noise clusters
    """

    SMALL_CLUSTER_SHARE = 0.3
    LARGE_CLUSTER_SHARE = 0.2
    SINGLE_CLUSTER_MIN_FILES = 10
    NOISE_SHARE = 0.25

    def __init__(self, max_cluster_size_percent: float = 0.1):
        self.max_cluster_size_percent = max_cluster_size_percent

    def analyze(self, partition: Sequence[Cluster]) -> PartitionStats:
        """
        Analyze a partition.

        Args:
            partition: Clusters to summarise; not modified

        Returns:
            PartitionStats with histogram, sizes and suggestions
        """
        sizes = sorted((cluster.size for cluster in partition), reverse=True)
        histogram = OrderedDict((label, 0) for label in BUCKET_LABELS)
        for size in sizes:
            histogram[bucket_for_size(size)] += 1

        stats = PartitionStats(
            total_clusters=len(sizes),
            total_files=sum(sizes),
            size_histogram=dict(histogram),
            cluster_sizes_descending=tuple(sizes),
            noise_files=sum(cluster.size for cluster in partition if cluster.is_noise),
        )
        suggestions = self.suggest(stats)

        logger.debug(
            f"Analyzed {stats.total_clusters} clusters over {stats.total_files} files "
            f"(largest {stats.largest_cluster_size}, noise {stats.noise_files})"
        )

        return PartitionStats(
            total_clusters=stats.total_clusters,
            total_files=stats.total_files,
            size_histogram=stats.size_histogram,
            cluster_sizes_descending=stats.cluster_sizes_descending,
            noise_files=stats.noise_files,
            suggestions=tuple(suggestions),
        )

    def suggest(self, stats: PartitionStats) -> List[str]:
        """Suggestions for improving the next clustering attempt."""
        suggestions: List[str] = []
        if stats.total_clusters == 0:
            return suggestions

        small_share = stats.bucket_share([SMALLEST_BUCKET])
        if small_share > self.SMALL_CLUSTER_SHARE:
            suggestions.append(
                f"{small_share:.0%} of clusters have 5 or fewer files; "
                f"consider increasing the minimum cluster size"
            )

        if stats.largest_cluster_share > self.max_cluster_size_percent:
            suggestions.append(
                f"Largest cluster holds {stats.largest_cluster_share:.0%} of all files; "
                f"consider decreasing the maximum cluster size or enabling ultra-strict mode"
            )

        large_share = stats.bucket_share(TWO_LARGEST_BUCKETS)
        if large_share > self.LARGE_CLUSTER_SHARE:
            suggestions.append(
                f"{large_share:.0%} of clusters have more than 50 files; "
                f"consider decreasing the maximum cluster size"
            )

        if stats.total_clusters == 1 and stats.total_files > self.SINGLE_CLUSTER_MIN_FILES:
            suggestions.append(
                "All files landed in a single cluster; consider lowering the similarity threshold"
            )

        if stats.total_files and stats.noise_files / stats.total_files > self.NOISE_SHARE:
            suggestions.append(
                f"{stats.noise_files / stats.total_files:.0%} of files were not assigned "
                f"to any dense group; consider lowering min_samples"
            )

        return suggestions
