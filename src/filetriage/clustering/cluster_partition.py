"""Building and ordering partitions from density labels."""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

import numpy as np

from .cluster_types import NOISE_LABEL, Cluster, FileVector

logger = logging.getLogger(__name__)


def build_partition(files: Sequence[FileVector], labels: np.ndarray) -> List[Cluster]:
    """
    Group files into clusters by label.

    Regular clusters come first in label order. Files labelled as noise are
    gathered into one trailing cluster flagged ``is_noise`` rather than being
    dropped, so every file appears in exactly one cluster.

    Args:
        files: Files in the order the labels were computed for
        labels: One label per file, ``-1`` for noise

    Returns:
        Raw partition with ids 0..K-1
    """
    groups: Dict[int, List[FileVector]] = defaultdict(list)
    for file_vector, label in zip(files, labels.tolist()):
        groups[label].append(file_vector)

    partition = [
        Cluster.from_members(cluster_id=index, members=groups[label])
        for index, label in enumerate(sorted(label for label in groups if label != NOISE_LABEL))
    ]

    noise = groups.get(NOISE_LABEL)
    if noise:
        if not partition:
            logger.warning(f"Density clustering labelled all {len(noise)} files as noise")
        partition.append(
            Cluster.from_members(cluster_id=len(partition), members=noise, is_noise=True)
        )

    return partition


def order_partition(clusters: Sequence[Cluster]) -> List[Cluster]:
    """
    Sort clusters largest first, breaking ties by id, with noise clusters last.

    Ids are renumbered 0..K-1 in the new order.
    """
    ordered = sorted(clusters, key=lambda c: (c.is_noise, -c.size, c.id))
    return [cluster.with_id(index) for index, cluster in enumerate(ordered)]


def single_cluster(files: Sequence[FileVector]) -> List[Cluster]:
    """Whole input as one cluster, used when there are too few files to cluster."""
    if not files:
        return []
    return [Cluster.from_members(cluster_id=0, members=files)]
