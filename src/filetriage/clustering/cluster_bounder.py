"""
Cluster size enforcement.

Splits clusters that exceed the maximum size into similarity-coherent
sub-clusters. Central members seed the sub-clusters; the rest are placed by
average cosine similarity to each sub-cluster's current members, with a
single swap pass that lets a better-fitting member displace the weakest
member of a full sub-cluster.
"""

import logging
import math
from collections import deque
from typing import Deque, List, Optional, Sequence, Set

import numpy as np

from ..utils.similarity import (
    centroid,
    cosine_distances_to,
    cosine_similarity_matrix,
    normalize_rows,
)
from .cluster_types import Cluster, InvalidInputError

logger = logging.getLogger(__name__)


class ClusterSizeBounder:
    """
    Enforce a maximum cluster size on a partition.

    Clusters at or under the bound pass through unchanged; larger clusters are
    split into ``ceil(size / max_cluster_size)`` sub-clusters. Output ids are
    renumbered sequentially so ids never collide. For a fixed member order the
    result is fully deterministic: every tie is broken by original member
    index or by sub-cluster index.
    """

    def __init__(self, max_cluster_size: int):
        """
        Initialize ClusterSizeBounder.

        Args:
            max_cluster_size: Largest number of members allowed in one cluster
        """
        if max_cluster_size < 1:
            raise InvalidInputError(f"max_cluster_size must be >= 1, got {max_cluster_size}")
        self.max_cluster_size = max_cluster_size

    def bound(self, clusters: Sequence[Cluster]) -> List[Cluster]:
        """
        Enforce the size bound on every cluster of a partition.

        Args:
            clusters: Raw partition

        Returns:
            Bounded partition with ids 0..K-1 in emission order
        """
        bounded: List[Cluster] = []
        split_count = 0

        for cluster in clusters:
            if cluster.size == 0:
                continue
            if cluster.size <= self.max_cluster_size:
                bounded.append(cluster)
                continue

            parts = self.split_cluster(cluster)
            split_count += 1
            logger.debug(
                f"Split cluster {cluster.id} ({cluster.size} files) into {len(parts)} sub-clusters"
            )
            bounded.extend(parts)

        if split_count:
            logger.info(
                f"Split {split_count} oversized clusters; partition now has {len(bounded)} clusters"
            )

        return [cluster.with_id(index) for index, cluster in enumerate(bounded)]

    def split_cluster(self, cluster: Cluster) -> List[Cluster]:
        """
        Split one cluster into sub-clusters of at most ``max_cluster_size`` members.

        Args:
            cluster: Cluster to split

        Returns:
            Sub-clusters in seed order (most central seed first); the input
            cluster itself when no split is needed
        """
        members = cluster.members
        n_members = len(members)
        if n_members == 0:
            return []

        n_parts = math.ceil(n_members / self.max_cluster_size)
        if n_parts <= 1:
            return [cluster]

        embeddings = np.vstack([member.embedding for member in members])
        center = cluster.centroid if cluster.centroid is not None else centroid(embeddings)
        distances = cosine_distances_to(embeddings, center)

        # Rank by distance to centroid, ties by original index
        ranked = sorted(range(n_members), key=lambda i: (distances[i], i))
        seeds = ranked[:n_parts]

        # sums[j, x] = total cosine similarity between member x and the members of group j
        sums = cosine_similarity_matrix(embeddings[seeds], embeddings)
        groups = self._assign(normalize_rows(embeddings), sums, seeds, deque(ranked[n_parts:]))

        return [
            Cluster.from_members(
                cluster_id=part_index,
                members=[members[i] for i in sorted(group)],
                is_noise=cluster.is_noise,
            )
            for part_index, group in enumerate(groups)
        ]

    def _assign(
        self,
        unit: np.ndarray,
        sums: np.ndarray,
        seeds: List[int],
        pool: Deque[int],
    ) -> List[List[int]]:
        """Place pooled members into the seeded groups, returning member indices per group."""
        capacity = self.max_cluster_size
        groups: List[List[int]] = [[seed] for seed in seeds]
        seed_set: Set[int] = set(seeds)
        evicted: Set[int] = set()

        while pool:
            index = pool.popleft()
            sizes = np.array([len(group) for group in groups], dtype=np.float64)
            fit = sums[:, index] / sizes
            best = int(np.argmax(fit))

            if sizes[best] < capacity:
                self._add(groups, sums, unit, best, index)
                continue

            if index not in evicted:
                victim = self._weakest_member(groups[best], sums[best], unit, seed_set)
                if victim is not None:
                    rest = len(groups[best]) - 1
                    victim_fit = (sums[best, victim] - float(unit[victim] @ unit[victim])) / rest
                    newcomer_fit = (sums[best, index] - float(unit[index] @ unit[victim])) / rest
                    if newcomer_fit > victim_fit:
                        self._remove(groups, sums, unit, best, victim)
                        self._add(groups, sums, unit, best, index)
                        evicted.add(victim)
                        pool.appendleft(victim)
                        continue

            open_fit = np.where(sizes < capacity, fit, -np.inf)
            self._add(groups, sums, unit, int(np.argmax(open_fit)), index)

        return groups

    @staticmethod
    def _weakest_member(
        group: List[int],
        group_sums: np.ndarray,
        unit: np.ndarray,
        seed_set: Set[int],
    ) -> Optional[int]:
        """Non-seed member with the lowest average similarity to the rest of its group."""
        candidates = sorted(i for i in group if i not in seed_set)
        if not candidates or len(group) < 2:
            return None

        candidate_array = np.array(candidates)
        self_similarity = np.einsum("ij,ij->i", unit[candidate_array], unit[candidate_array])
        affinity = (group_sums[candidate_array] - self_similarity) / (len(group) - 1)
        return candidates[int(np.argmin(affinity))]

    @staticmethod
    def _add(groups: List[List[int]], sums: np.ndarray, unit: np.ndarray, part: int, index: int) -> None:
        groups[part].append(index)
        sums[part] += unit @ unit[index]

    @staticmethod
    def _remove(groups: List[List[int]], sums: np.ndarray, unit: np.ndarray, part: int, index: int) -> None:
        groups[part].remove(index)
        sums[part] -= unit @ unit[index]
