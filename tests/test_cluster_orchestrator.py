"""Tests for AutoClusterOrchestrator."""

import asyncio
import logging
import threading
from unittest import mock

import numpy as np
import pytest

from filetriage.clustering import (
    AutoClusteringOptions,
    AutoClusterOrchestrator,
    CallableStrategy,
    ClusteringParameters,
    ErrorKind,
    FileVector,
    InvalidInputError,
    PrimitiveFailureError,
    TerminationReason,
    TuningCancelledError,
)


@pytest.fixture
def identical_files(make_files):
    """One hundred identical embeddings."""
    return make_files([np.ones(4)] * 100)


@pytest.fixture
def sequence_labels():
    """Factory for strategies returning a different label array on each call."""

    def factory(*label_sets):
        calls = []

        def assign(vectors, min_cluster_size, min_samples):
            calls.append(min_cluster_size)
            index = min(len(calls), len(label_sets)) - 1
            return np.asarray(label_sets[index], dtype=np.int64)

        return CallableStrategy(fn=assign, name="sequence"), calls

    return factory


class TestGoodEnough:
    """Test stopping on a good partition."""

    def test_two_groups_in_one_iteration(self, two_group_files, fixed_labels):
        orchestrator = AutoClusterOrchestrator(fixed_labels([0] * 6 + [1] * 6))
        result = orchestrator.run(two_group_files, ClusteringParameters(max_cluster_size=10))

        assert result.termination == TerminationReason.GOOD_ENOUGH
        assert result.iterations_run == 1
        assert [c.size for c in result.best_partition] == [6, 6]
        assert result.best_score > 0.8
        assert result.final_parameters == ClusteringParameters(max_cluster_size=10)
        assert result.parameter_change_log == ()

    def test_partition_is_complete(self, two_group_files, fixed_labels):
        orchestrator = AutoClusterOrchestrator(fixed_labels([0] * 6 + [1] * 6))
        result = orchestrator.run(two_group_files, ClusteringParameters(max_cluster_size=10))

        ids = sorted(i for c in result.best_partition for i in c.member_ids)
        assert ids == sorted(f.id for f in two_group_files)


class TestInputValidation:
    """Test rejection of unusable input."""

    def test_empty_input(self, fixed_labels):
        with pytest.raises(InvalidInputError, match="No files"):
            AutoClusterOrchestrator(fixed_labels([])).run([])

    def test_mismatched_dimensions(self, make_files, fixed_labels):
        files = make_files([[1.0, 0.0], [1.0, 0.0, 0.0]])
        with pytest.raises(InvalidInputError, match="dimension"):
            AutoClusterOrchestrator(fixed_labels([0, 0])).run(files)

    def test_non_finite_values(self, make_files, fixed_labels):
        files = make_files([[1.0, np.nan], [1.0, 0.0]])
        with pytest.raises(InvalidInputError, match="NaN"):
            AutoClusterOrchestrator(fixed_labels([0, 0])).run(files)

    def test_invalid_parameters(self, two_group_files, fixed_labels):
        params = ClusteringParameters(min_cluster_size=5, max_cluster_size=3)
        with pytest.raises(InvalidInputError):
            AutoClusterOrchestrator(fixed_labels([0] * 12)).run(two_group_files, params)

    def test_invalid_options(self, fixed_labels):
        with pytest.raises(InvalidInputError, match="options"):
            AutoClusterOrchestrator(fixed_labels([]), AutoClusteringOptions(max_iterations=0))

    @pytest.mark.parametrize(
        "changes, match",
        [
            ({"max_cluster_size": 12.5}, "max_cluster_size"),
            ({"max_cluster_size": "20"}, "max_cluster_size"),
            ({"similarity_threshold": "0.9"}, "similarity_threshold"),
            ({"similarity_threshold": None}, "similarity_threshold"),
        ],
    )
    def test_malformed_parameter_types(self, make_files, fixed_labels, changes, match):
        params = ClusteringParameters().replace(**changes)
        files = make_files([np.ones(4)] * 100)

        with pytest.raises(InvalidInputError, match=match):
            AutoClusterOrchestrator(fixed_labels([0] * 100)).run(files, params)


class TestTermination:
    """Test the loop's stopping conditions."""

    def test_too_few_files(self, make_files):
        fn = mock.Mock(side_effect=AssertionError("must not be called"))
        files = make_files([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        result = AutoClusterOrchestrator(CallableStrategy(fn=fn)).run(
            files, ClusteringParameters(min_cluster_size=5, max_cluster_size=10)
        )

        fn.assert_not_called()
        assert result.termination == TerminationReason.TOO_FEW_FILES
        assert len(result.best_partition) == 1
        assert result.best_partition[0].size == 3

    def test_converged_without_change(self, two_group_files, fixed_labels):
        options = AutoClusteringOptions(good_enough_score=0.95)
        orchestrator = AutoClusterOrchestrator(fixed_labels([0] * 6 + [1] * 6), options)

        result = orchestrator.run(two_group_files, ClusteringParameters(max_cluster_size=10))

        assert result.termination == TerminationReason.CONVERGED
        assert result.iterations_run == 1
        assert len(result.trace) == 1

    def test_converged_after_adjustment(self, identical_files, fixed_labels):
        orchestrator = AutoClusterOrchestrator(fixed_labels([0] * 100))
        result = orchestrator.run(identical_files, ClusteringParameters())

        assert result.termination == TerminationReason.CONVERGED
        assert result.iterations_run == 2
        assert result.final_parameters.max_cluster_size == 10
        assert result.final_parameters.similarity_threshold == pytest.approx(0.8)
        assert [c.size for c in result.best_partition] == [10] * 10
        assert result.parameter_change_log
        assert all(entry.startswith("Iteration 1:") for entry in result.parameter_change_log)

    def test_budget_exhausted(self, identical_files, fixed_labels):
        options = AutoClusteringOptions(max_iterations=1)
        orchestrator = AutoClusterOrchestrator(fixed_labels([0] * 100), options)

        result = orchestrator.run(identical_files, ClusteringParameters())

        assert result.termination == TerminationReason.BUDGET_EXHAUSTED
        assert result.iterations_run == 1
        assert result.final_parameters == ClusteringParameters()
        assert [c.size for c in result.best_partition] == [50, 50]


class TestBestTracking:
    """Test best-so-far retention."""

    def test_keeps_earlier_better_partition(self, two_group_files, sequence_labels):
        strategy, calls = sequence_labels([0] * 6 + [1] * 6, list(range(12)))
        options = AutoClusteringOptions(max_iterations=2, target_cluster_count=4)

        result = AutoClusterOrchestrator(strategy, options).run(
            two_group_files, ClusteringParameters(max_cluster_size=10)
        )

        assert len(calls) == 2
        assert result.termination == TerminationReason.BUDGET_EXHAUSTED
        assert [c.size for c in result.best_partition] == [6, 6]
        assert result.trace[1].score < result.trace[0].score
        assert result.best_score == result.trace[0].score

    def test_best_so_far_is_monotonic(self, identical_files, fixed_labels):
        result = AutoClusterOrchestrator(fixed_labels([0] * 100)).run(identical_files)

        best = [record.best_so_far for record in result.trace]
        assert best == sorted(best)
        assert result.best_score == max(record.score for record in result.trace)


class TestCancellation:
    """Test external cancellation."""

    def test_cancelled_before_first_iteration(self, two_group_files, fixed_labels):
        event = threading.Event()
        event.set()

        with pytest.raises(TuningCancelledError):
            AutoClusterOrchestrator(fixed_labels([0] * 12)).run(
                two_group_files, cancel_event=event
            )

    def test_cancelled_after_first_iteration(self, two_group_files, sequence_labels):
        strategy, calls = sequence_labels([0] * 6 + [1] * 6, list(range(12)))
        options = AutoClusteringOptions(target_cluster_count=4)
        event = threading.Event()

        result = AutoClusterOrchestrator(strategy, options).run(
            two_group_files,
            ClusteringParameters(max_cluster_size=10),
            progress_callback=lambda *args: event.set(),
            cancel_event=event,
        )

        assert len(calls) == 1
        assert result.termination == TerminationReason.CANCELLED
        assert result.iterations_run == 1
        assert [c.size for c in result.best_partition] == [6, 6]


class TestPrimitiveFailure:
    """Test failures of the density primitive."""

    def test_exception_is_wrapped(self, two_group_files):
        def broken(vectors, min_cluster_size, min_samples):
            raise RuntimeError("segfault in native code")

        with pytest.raises(PrimitiveFailureError) as excinfo:
            AutoClusterOrchestrator(CallableStrategy(fn=broken)).run(two_group_files)

        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert "segfault" not in str(excinfo.value)

    def test_malformed_labels(self, two_group_files, fixed_labels):
        with pytest.raises(PrimitiveFailureError):
            AutoClusterOrchestrator(fixed_labels([0, 1])).run(two_group_files)

    @pytest.mark.parametrize("error", [InvalidInputError("inner"), TuningCancelledError("inner")])
    def test_engine_errors_from_strategy_are_reclassified(self, two_group_files, error):
        def raising(vectors, min_cluster_size, min_samples):
            raise error

        with pytest.raises(PrimitiveFailureError) as excinfo:
            AutoClusterOrchestrator(CallableStrategy(fn=raising)).run(two_group_files)

        assert excinfo.value.kind == ErrorKind.PRIMITIVE_FAILURE
        assert excinfo.value.__cause__ is error

    def test_engine_errors_from_async_strategy_are_reclassified(self, two_group_files):
        async def raising(vectors, min_cluster_size, min_samples):
            raise InvalidInputError("inner")

        orchestrator = AutoClusterOrchestrator(CallableStrategy(fn=raising))
        with pytest.raises(PrimitiveFailureError):
            asyncio.run(orchestrator.run_async(two_group_files))


class TestObservability:
    """Test progress callbacks and verbose logging."""

    def test_callback_receives_each_iteration(self, two_group_files, fixed_labels):
        seen = []
        AutoClusterOrchestrator(fixed_labels([0] * 6 + [1] * 6)).run(
            two_group_files,
            ClusteringParameters(max_cluster_size=10),
            progress_callback=lambda *args: seen.append(args),
        )

        assert len(seen) == 1
        iteration, parameters, stats, score = seen[0]
        assert iteration == 1
        assert parameters.max_cluster_size == 10
        assert stats.total_files == 12
        assert 0.0 <= score <= 1.0

    def test_callback_errors_are_ignored(self, two_group_files, fixed_labels, caplog):
        def failing(*args):
            raise ValueError("display went away")

        result = AutoClusterOrchestrator(fixed_labels([0] * 6 + [1] * 6)).run(
            two_group_files, ClusteringParameters(max_cluster_size=10), progress_callback=failing
        )

        assert result.termination == TerminationReason.GOOD_ENOUGH
        assert "Progress callback failed" in caplog.text

    def test_verbose_logs_iterations_at_info(self, two_group_files, fixed_labels, caplog):
        caplog.set_level(logging.INFO, logger="filetriage")
        options = AutoClusteringOptions(enable_verbose=True)

        AutoClusterOrchestrator(fixed_labels([0] * 6 + [1] * 6), options).run(
            two_group_files, ClusteringParameters(max_cluster_size=10)
        )

        assert "Iteration 1/5" in caplog.text


class TestInitialAdjustments:
    """Test parameter adjustments made before the first iteration."""

    def test_min_cluster_size_percent(self, two_group_files, sequence_labels):
        strategy, calls = sequence_labels([0] * 6 + [1] * 6)
        options = AutoClusteringOptions(min_cluster_size_percent=0.25)

        result = AutoClusterOrchestrator(strategy, options).run(
            two_group_files, ClusteringParameters(max_cluster_size=10)
        )

        assert calls[0] == 3
        assert result.trace[0].parameters.min_cluster_size == 3
        assert any("min_cluster_size -> 3" in entry for entry in result.parameter_change_log)

    def test_ultra_strict_caps_max_cluster_size(self, identical_files, fixed_labels):
        options = AutoClusteringOptions.ultra_strict_options(max_iterations=1)
        result = AutoClusterOrchestrator(fixed_labels([0] * 100), options).run(identical_files)

        assert result.trace[0].parameters.max_cluster_size == 20
        assert all(c.size <= 20 for c in result.best_partition)


class TestOrdering:
    """Test the order of the returned partition."""

    def test_largest_first_noise_last(self, make_files, fixed_labels):
        np.random.seed(42)
        files = make_files(np.random.randn(6, 3))
        options = AutoClusteringOptions(max_iterations=1)

        result = AutoClusterOrchestrator(fixed_labels([0, 0, 1, 1, 1, -1]), options).run(files)

        assert [c.size for c in result.best_partition] == [3, 2, 1]
        assert [c.id for c in result.best_partition] == [0, 1, 2]
        assert result.best_partition[-1].is_noise
        assert result.best_stats.noise_files == 1


class TestAsync:
    """Test the coroutine entry point."""

    def test_run_async_with_coroutine_strategy(self, two_group_files):
        async def clusterer(vectors, min_cluster_size, min_samples):
            await asyncio.sleep(0)
            return np.array([0] * 6 + [1] * 6)

        orchestrator = AutoClusterOrchestrator(CallableStrategy(fn=clusterer))
        result = asyncio.run(
            orchestrator.run_async(two_group_files, ClusteringParameters(max_cluster_size=10))
        )

        assert result.termination == TerminationReason.GOOD_ENOUGH
        assert [c.size for c in result.best_partition] == [6, 6]

    def test_run_async_wraps_failures(self, two_group_files):
        async def broken(vectors, min_cluster_size, min_samples):
            raise OSError("remote clustering service down")

        orchestrator = AutoClusterOrchestrator(CallableStrategy(fn=broken))
        with pytest.raises(PrimitiveFailureError):
            asyncio.run(orchestrator.run_async(two_group_files))
