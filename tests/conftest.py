"""Shared fixtures for filetriage tests."""

from datetime import datetime

import numpy as np
import pytest

from filetriage.clustering import (
    BUCKET_LABELS,
    CallableStrategy,
    Cluster,
    FileVector,
    PartitionStats,
    bucket_for_size,
)


def _make_files(embeddings, prefix="file"):
    return [
        FileVector(
            id=f"/data/{prefix}_{i}.txt",
            embedding=np.asarray(embedding, dtype=np.float64),
            size=1024 * (i + 1),
            last_modified=datetime(2024, 1, 1, 12, 0, 0),
        )
        for i, embedding in enumerate(embeddings)
    ]


@pytest.fixture
def make_files():
    """Factory turning a list of embeddings into FileVectors."""
    return _make_files


@pytest.fixture
def make_clusters():
    """Factory building clusters of the given sizes from random embeddings."""

    def factory(sizes, noise_sizes=()):
        rng = np.random.RandomState(42)
        clusters = []
        for size in list(sizes) + list(noise_sizes):
            is_noise = len(clusters) >= len(sizes)
            files = _make_files(rng.randn(size, 4), prefix=f"c{len(clusters)}")
            clusters.append(Cluster.from_members(len(clusters), files, is_noise=is_noise))
        return clusters

    return factory


@pytest.fixture
def make_stats():
    """Factory building PartitionStats directly from cluster sizes."""

    def factory(sizes, noise_files=0):
        histogram = {label: 0 for label in BUCKET_LABELS}
        for size in sizes:
            histogram[bucket_for_size(size)] += 1
        return PartitionStats(
            total_clusters=len(sizes),
            total_files=sum(sizes),
            size_histogram=histogram,
            cluster_sizes_descending=tuple(sorted(sizes, reverse=True)),
            noise_files=noise_files,
        )

    return factory


@pytest.fixture
def fixed_labels():
    """Factory for strategies that always return the same labels."""

    def factory(labels):
        labels = np.asarray(labels, dtype=np.int64)

        def assign(vectors, min_cluster_size, min_samples):
            return labels.copy()

        return CallableStrategy(fn=assign, name="fixed")

    return factory


@pytest.fixture
def two_group_files(make_files):
    """Twelve 2-D vectors forming two tight groups of six."""
    group_a = [[1.0, 0.01 * i] for i in range(6)]
    group_b = [[0.01 * i, 1.0] for i in range(6)]
    return make_files(group_a + group_b)
