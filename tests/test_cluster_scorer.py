"""Tests for QualityScorer."""

import pytest

from filetriage.clustering import QualityScorer, ScoringConfig


@pytest.fixture
def scorer():
    return QualityScorer(ScoringConfig(), max_cluster_size_percent=0.1)


class TestQualityScorer:
    """Test the combined score."""

    def test_two_balanced_groups(self, scorer, make_stats):
        # balance 1 - 1.3/6, no extreme cluster, weights renormalised over 0.35 + 0.25
        expected = (0.35 * (1 - 1.3 / 6) + 0.25) / 0.6
        assert scorer.score(make_stats([6, 6]), 12) == pytest.approx(expected)
        assert scorer.score(make_stats([6, 6]), 12) > 0.8

    def test_empty_partition_scores_zero(self, scorer, make_stats):
        assert scorer.score(make_stats([]), 0) == 0.0
        assert scorer.score(make_stats([]), 10) == 0.0

    @pytest.mark.parametrize(
        "sizes",
        [
            [100],
            [1] * 100,
            [1000],
            [50, 50],
            [5, 7, 12, 30, 60, 200],
        ],
    )
    def test_score_bounds(self, scorer, make_stats, sizes):
        total = sum(sizes)
        for target in (None, 1, 10, 500):
            value = scorer.score(make_stats(sizes), total, target)
            assert 0.0 <= value <= 1.0

    def test_single_giant_cluster_scores_low(self, scorer, make_stats):
        giant = scorer.score(make_stats([100]), 100)
        balanced = scorer.score(make_stats([8] * 5 + [12] * 5), 100)
        assert giant < balanced

    def test_components_without_target_or_many_files(self, scorer, make_stats):
        components = scorer.components(make_stats([6, 6]), 12)
        assert set(components) == {"balance", "extreme"}

    def test_components_with_target_and_many_files(self, scorer, make_stats):
        components = scorer.components(make_stats([10] * 10), 100, target_cluster_count=10)
        assert set(components) == {"balance", "extreme", "target", "count_balance"}
        assert components["target"] == 1.0

    def test_zero_active_weight(self, make_stats):
        config = ScoringConfig(
            balance_weight=0.0, extreme_weight=0.0, target_weight=1.0, count_balance_weight=0.0
        )
        assert QualityScorer(config).score(make_stats([6, 6]), 12) == 0.0


class TestSubScores:
    """Test the individual sub-scores."""

    def test_balance_matches_ideal_profile(self, scorer, make_stats):
        # 20 clusters laid out exactly as (0.15, 0.35, 0.30, 0.15, 0.05, 0.0)
        sizes = [3] * 3 + [8] * 7 + [20] * 6 + [40] * 3 + [80]
        assert scorer.balance_score(make_stats(sizes)) == pytest.approx(1.0)

    def test_extreme_size_within_floor(self, scorer, make_stats):
        assert scorer.extreme_size_score(make_stats([10, 2]), 12) == 1.0

    def test_extreme_size_penalty(self, make_stats):
        stats = make_stats([15] + [5] * 17)
        normal = QualityScorer(ScoringConfig(), 0.1).extreme_size_score(stats, 100)
        strict = QualityScorer(ScoringConfig().for_ultra_strict(), 0.1).extreme_size_score(
            stats, 100
        )
        assert normal == pytest.approx(0.75)
        assert strict == pytest.approx(0.5)

    def test_extreme_size_floors_at_zero(self, scorer, make_stats):
        assert scorer.extreme_size_score(make_stats([90, 10]), 100) == 0.0

    @pytest.mark.parametrize(
        "actual, target, expected",
        [(10, 10, 1.0), (15, 10, 0.5), (5, 10, 0.5), (30, 10, 0.0)],
    )
    def test_target_score(self, actual, target, expected):
        assert QualityScorer.target_score(actual, target) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "clusters, files, expected",
        [
            (1, 100, 1.0),
            (5, 100, 1.0),
            (3, 1000, 0.0),
            (5, 1000, 0.0),
            (75, 1000, 1.0 - 0.25 / 0.5),
            (100, 1000, 0.0),
            (200, 1000, 0.0),
            (15, 2000, 0.5),
        ],
    )
    def test_count_balance(self, scorer, clusters, files, expected):
        assert scorer.count_balance_score(clusters, files) == pytest.approx(expected)
