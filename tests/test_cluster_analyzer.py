"""Tests for ClusterAnalyzer."""

import pytest

from filetriage.clustering import BUCKET_LABELS, ClusterAnalyzer, bucket_for_size


class TestBuckets:
    """Test size bucketing."""

    @pytest.mark.parametrize(
        "size, label",
        [
            (1, "1-5"),
            (5, "1-5"),
            (6, "6-10"),
            (10, "6-10"),
            (11, "11-25"),
            (26, "26-50"),
            (50, "26-50"),
            (51, "51-100"),
            (100, "51-100"),
            (101, "100+"),
            (5000, "100+"),
        ],
    )
    def test_bucket_for_size(self, size, label):
        assert bucket_for_size(size) == label

    def test_bucket_order(self):
        assert BUCKET_LABELS == ("1-5", "6-10", "11-25", "26-50", "51-100", "100+")


class TestClusterAnalyzer:
    """Test partition analysis."""

    def test_totals_and_histogram(self, make_clusters):
        stats = ClusterAnalyzer().analyze(make_clusters([6, 6, 30, 2]))

        assert stats.total_clusters == 4
        assert stats.total_files == 44
        assert stats.cluster_sizes_descending == (30, 6, 6, 2)
        assert list(stats.size_histogram) == list(BUCKET_LABELS)
        assert stats.size_histogram["6-10"] == 2
        assert stats.size_histogram["26-50"] == 1
        assert stats.size_histogram["1-5"] == 1
        assert stats.noise_files == 0

    def test_does_not_modify_partition(self, make_clusters):
        clusters = make_clusters([6, 6])
        before = [c.member_ids for c in clusters]
        ClusterAnalyzer().analyze(clusters)
        assert [c.member_ids for c in clusters] == before

    def test_empty_partition(self):
        stats = ClusterAnalyzer().analyze([])
        assert stats.total_clusters == 0
        assert stats.total_files == 0
        assert stats.suggestions == ()

    def test_many_small_clusters(self, make_clusters):
        stats = ClusterAnalyzer(max_cluster_size_percent=0.5).analyze(make_clusters([2] * 10))
        assert len(stats.suggestions) == 1
        assert "minimum cluster size" in stats.suggestions[0]

    def test_oversized_cluster(self, make_clusters):
        stats = ClusterAnalyzer(max_cluster_size_percent=0.1).analyze(make_clusters([8, 8, 6]))
        assert any("ultra-strict" in s for s in stats.suggestions)

    def test_many_large_clusters(self, make_clusters):
        stats = ClusterAnalyzer(max_cluster_size_percent=0.5).analyze(
            make_clusters([60, 60, 10, 10])
        )
        assert any("more than 50 files" in s for s in stats.suggestions)

    def test_single_cluster(self, make_clusters):
        stats = ClusterAnalyzer().analyze(make_clusters([20]))
        assert any("single cluster" in s for s in stats.suggestions)

    def test_small_single_cluster_is_not_flagged(self, make_clusters):
        stats = ClusterAnalyzer(max_cluster_size_percent=1.0).analyze(make_clusters([8]))
        assert not any("single cluster" in s for s in stats.suggestions)

    def test_noise_heavy_partition(self, make_clusters):
        stats = ClusterAnalyzer(max_cluster_size_percent=1.0).analyze(
            make_clusters([10, 10], noise_sizes=[10])
        )
        assert stats.noise_files == 10
        assert any("min_samples" in s for s in stats.suggestions)

    def test_balanced_partition_has_no_suggestions(self, make_clusters):
        stats = ClusterAnalyzer().analyze(make_clusters([8] * 10 + [12] * 10 + [6] * 5))
        assert stats.suggestions == ()
