"""Tests for plain-text cluster reports."""

from datetime import datetime

import numpy as np
import pytest

from filetriage.clustering import (
    AutoClusterOrchestrator,
    Cluster,
    ClusterAnalyzer,
    FileVector,
    describe_cluster,
    format_date,
    format_file_size,
    render_analysis,
    render_tuning_result,
)


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0.0B"),
        (512, "512.0B"),
        (1536, "1.5KB"),
        (1048576, "1.0MB"),
        (3 * 1024**3, "3.0GB"),
        (5 * 1024**4, "5120.0GB"),
    ],
)
def test_format_file_size(num_bytes, expected):
    assert format_file_size(num_bytes) == expected


def test_format_date():
    assert format_date(datetime(2024, 3, 9, 8, 5, 1)) == "2024-03-09 08:05:01"
    assert format_date(None) == "unknown"


class TestDescribeCluster:
    """Test per-cluster listings."""

    def test_header_and_rows(self, make_files):
        cluster = Cluster.from_members(3, make_files([[1.0, 0.0], [0.0, 1.0]]))
        lines = describe_cluster(cluster).splitlines()

        assert lines[0] == "Cluster 3 (2 files, 3.0KB)"
        assert len(lines) == 3
        assert lines[1].startswith("  file_0.txt")
        assert "1.0KB" in lines[1]
        assert lines[1].endswith("2024-01-01 12:00:00")
        assert "2.0KB" in lines[2]

    def test_columns_are_aligned(self, make_files):
        files = make_files([[1.0, 0.0]] * 2)
        files.append(
            FileVector(id="/tmp/a_much_longer_file_name_than_usual.log", embedding=np.ones(2))
        )
        lines = describe_cluster(Cluster.from_members(0, files)).splitlines()[1:]

        date_columns = {len(line) - len(line.split("  ")[-1]) for line in lines}
        assert len(date_columns) == 1
        assert lines[2].endswith("  0.0B  unknown")

    def test_noise_cluster(self, make_files):
        cluster = Cluster.from_members(1, make_files([[1.0, 0.0]]), is_noise=True)
        assert describe_cluster(cluster).startswith("Unclustered files (1 files, 1.0KB)")


class TestRenderAnalysis:
    """Test the analysis block."""

    def test_size_distribution(self, make_stats):
        text = render_analysis(make_stats([6, 6]))

        assert "Clustering Analysis:" in text
        assert "Total files: 12" in text
        assert "Total clusters: 2" in text
        assert "  6-10: 2 clusters" in text
        assert "1-5:" not in text
        assert "Suggestions" not in text

    def test_noise_and_suggestions(self, make_clusters):
        stats = ClusterAnalyzer().analyze(make_clusters([20], noise_sizes=[10]))
        text = render_analysis(stats)

        assert "Unclustered files: 10" in text
        assert "Suggestions for better clustering:" in text
        assert "  - " in text


def test_render_tuning_result(make_files, fixed_labels):
    files = make_files([np.ones(4)] * 100)
    result = AutoClusterOrchestrator(fixed_labels([0] * 100)).run(files)

    text = render_tuning_result(result)

    assert text.startswith("Auto-clustering completed in 2 iteration(s) (converged")
    assert "Final parameters: min_cluster_size=2" in text
    assert "Parameter adjustments made:" in text
    assert "  - Iteration 1: " in text
    assert "Total files: 100" in text
