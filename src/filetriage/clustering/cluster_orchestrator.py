"""
Auto-tuning control loop.

Repeatedly clusters the same files, measures the partition and lets the
tuner adjust the parameters, keeping the best partition seen. The loop stops
when a partition is good enough, when the tuner has nothing left to change,
when the iteration budget runs out, or on external cancellation.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from .cluster_analyzer import ClusterAnalyzer
from .cluster_bounder import ClusterSizeBounder
from .cluster_config import (
    ULTRA_STRICT_MAX_CLUSTER_SIZE,
    AutoClusteringOptions,
    ScoringConfig,
    TuningConfig,
)
from .cluster_partition import build_partition, order_partition, single_cluster
from .cluster_scorer import QualityScorer
from .cluster_tuner import ParameterTuner
from .cluster_types import (
    Cluster,
    ClusteringParameters,
    FileVector,
    InvalidInputError,
    IterationRecord,
    PartitionStats,
    PrimitiveFailureError,
    TerminationReason,
    TuningCancelledError,
    TuningResult,
)
from .strategies import DensityClusterer, HDBSCANStrategy, validate_labels

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, ClusteringParameters, PartitionStats, float], None]


@dataclass
class _RunState:
    """Mutable bookkeeping for one tuning run."""

    files: List[FileVector]
    matrix: np.ndarray
    parameters: ClusteringParameters
    iteration: int = 0
    best_partition: Optional[List[Cluster]] = None
    best_stats: Optional[PartitionStats] = None
    best_score: float = 0.0
    change_log: List[str] = field(default_factory=list)
    trace: List[IterationRecord] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return len(self.files)


class AutoClusterOrchestrator:
    """
    Drive the cluster / bound / analyze / score / tune loop.

    Example:
        >>> orchestrator = AutoClusterOrchestrator(options=AutoClusteringOptions(max_iterations=3))
        >>> result = orchestrator.run(files, ClusteringParameters(max_cluster_size=20))
        >>> result.termination
        <TerminationReason.GOOD_ENOUGH: 'good_enough'>
    """

    def __init__(
        self,
        clusterer: Optional[DensityClusterer] = None,
        options: Optional[AutoClusteringOptions] = None,
        scoring_config: Optional[ScoringConfig] = None,
        tuning_config: Optional[TuningConfig] = None,
    ):
        """
        Initialize AutoClusterOrchestrator.

        Args:
            clusterer: Density clustering primitive (default: HDBSCANStrategy)
            options: Auto-tuning options
            scoring_config: Scoring weights and constants
            tuning_config: Tuning rule constants

        Raises:
            InvalidInputError: If any of the options or configs is invalid
        """
        self.clusterer = clusterer or HDBSCANStrategy()
        self.options = options or AutoClusteringOptions()
        if not self.options.validate():
            raise InvalidInputError(f"Invalid auto-clustering options: {self.options.to_dict()}")

        scoring_config = scoring_config or ScoringConfig()
        if self.options.ultra_strict:
            scoring_config = scoring_config.for_ultra_strict()
        if not scoring_config.validate():
            raise InvalidInputError("Invalid scoring configuration")

        self.tuning_config = tuning_config or TuningConfig()
        if not self.tuning_config.validate():
            raise InvalidInputError("Invalid tuning configuration")

        size_percent = self.options.effective_size_percent
        self.analyzer = ClusterAnalyzer(size_percent)
        self.scorer = QualityScorer(scoring_config, size_percent)
        self.tuner = ParameterTuner(self.tuning_config, size_percent)

    def run(
        self,
        files: Sequence[FileVector],
        parameters: Optional[ClusteringParameters] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TuningResult:
        """
        Run the tuning loop.

        Args:
            files: Files to cluster; all embeddings must share one dimension
            parameters: Initial parameters (default: ClusteringParameters())
            progress_callback: Called as ``(iteration, parameters, stats, score)``
                after every iteration
            cancel_event: Checked before each iteration

        Returns:
            TuningResult holding the best partition found

        Raises:
            InvalidInputError: On empty or inconsistent input, or bad parameters
            PrimitiveFailureError: If the density primitive fails
            TuningCancelledError: If cancelled before any iteration completed
        """
        state = self._start(files, parameters)

        while True:
            if self._cancelled(state, cancel_event):
                return self._finish(state, TerminationReason.CANCELLED)

            if state.total_files < state.parameters.min_cluster_size:
                return self._too_few_files(state, progress_callback)

            labels = self._cluster(state)
            termination = self._advance(state, labels, progress_callback)
            if termination is not None:
                return self._finish(state, termination)

    async def run_async(
        self,
        files: Sequence[FileVector],
        parameters: Optional[ClusteringParameters] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TuningResult:
        """Same as :meth:`run`, awaiting the density primitive so the event loop stays free."""
        state = self._start(files, parameters)

        while True:
            if self._cancelled(state, cancel_event):
                return self._finish(state, TerminationReason.CANCELLED)

            if state.total_files < state.parameters.min_cluster_size:
                return self._too_few_files(state, progress_callback)

            labels = await self._cluster_async(state)
            termination = self._advance(state, labels, progress_callback)
            if termination is not None:
                return self._finish(state, termination)

    def _start(
        self,
        files: Sequence[FileVector],
        parameters: Optional[ClusteringParameters],
    ) -> _RunState:
        """Validate the input and build the initial run state."""
        files = list(files)
        if not files:
            raise InvalidInputError("No files to cluster")

        dimensions = {file_vector.dimension for file_vector in files}
        if len(dimensions) != 1:
            raise InvalidInputError(
                f"All embeddings must share one dimension, got {sorted(dimensions)}"
            )
        if 0 in dimensions:
            raise InvalidInputError("Embeddings must not be empty")

        matrix = np.vstack([file_vector.embedding for file_vector in files])
        if not np.all(np.isfinite(matrix)):
            raise InvalidInputError("Embeddings contain NaN or infinite values")

        parameters = parameters or ClusteringParameters()
        parameters.validate()

        state = _RunState(files=files, matrix=matrix, parameters=parameters)

        if self.options.ultra_strict and parameters.max_cluster_size > ULTRA_STRICT_MAX_CLUSTER_SIZE:
            capped = max(parameters.min_cluster_size, ULTRA_STRICT_MAX_CLUSTER_SIZE)
            state.parameters = state.parameters.replace(max_cluster_size=capped)
            state.change_log.append(f"Ultra-strict mode: max_cluster_size -> {capped}")

        initial_min = self.options.initial_min_cluster_size(
            len(files), self.tuning_config.max_min_cluster_size
        )
        if initial_min > state.parameters.min_cluster_size:
            state.parameters = state.parameters.replace(
                min_cluster_size=initial_min,
                max_cluster_size=max(state.parameters.max_cluster_size, initial_min),
            )
            message = (
                f"min_cluster_size -> {initial_min} "
                f"({self.options.min_cluster_size_percent:.1%} of {len(files)} files)"
            )
            state.change_log.append(message)
            logger.info(f"Raised initial {message}")

        logger.info(
            f"Auto-clustering {len(files)} files with {self.clusterer.name} "
            f"(max {self.options.max_iterations} iterations): {state.parameters.describe()}"
        )
        return state

    def _cancelled(self, state: _RunState, cancel_event: Optional[threading.Event]) -> bool:
        if cancel_event is None or not cancel_event.is_set():
            return False
        if state.iteration == 0:
            raise TuningCancelledError("Auto-clustering cancelled before the first iteration")
        logger.info(f"Auto-clustering cancelled after {state.iteration} iterations")
        return True

    def _cluster(self, state: _RunState) -> np.ndarray:
        params = state.parameters
        try:
            labels = self.clusterer.cluster(
                state.matrix,
                params.min_cluster_size,
                params.min_samples,
                params.similarity_threshold,
            )
        except Exception as e:
            raise PrimitiveFailureError(f"{self.clusterer.name} clustering failed") from e
        return validate_labels(labels, state.total_files)

    async def _cluster_async(self, state: _RunState) -> np.ndarray:
        params = state.parameters
        try:
            labels = await self.clusterer.cluster_async(
                state.matrix,
                params.min_cluster_size,
                params.min_samples,
                params.similarity_threshold,
            )
        except Exception as e:
            raise PrimitiveFailureError(f"{self.clusterer.name} clustering failed") from e
        return validate_labels(labels, state.total_files)

    def _advance(
        self,
        state: _RunState,
        labels: np.ndarray,
        progress_callback: Optional[ProgressCallback],
    ) -> Optional[TerminationReason]:
        """Finish one iteration from its labels; return a termination reason or None."""
        params = state.parameters
        bounder = ClusterSizeBounder(params.max_cluster_size)
        partition = bounder.bound(build_partition(state.files, labels))
        score = self._record(state, partition, progress_callback)

        if score > self.options.good_enough_score:
            return TerminationReason.GOOD_ENOUGH
        if state.iteration >= self.options.max_iterations:
            return TerminationReason.BUDGET_EXHAUSTED

        proposed, changes = self.tuner.propose_with_log(
            params,
            state.trace[-1].stats,
            state.total_files,
            self.options.target_cluster_count,
        )
        if proposed == params:
            return TerminationReason.CONVERGED

        state.change_log.extend(f"Iteration {state.iteration}: {change}" for change in changes)
        state.parameters = proposed
        return None

    def _too_few_files(
        self,
        state: _RunState,
        progress_callback: Optional[ProgressCallback],
    ) -> TuningResult:
        logger.info(
            f"Only {state.total_files} files for min_cluster_size "
            f"{state.parameters.min_cluster_size}; returning a single cluster"
        )
        self._record(state, single_cluster(state.files), progress_callback)
        return self._finish(state, TerminationReason.TOO_FEW_FILES)

    def _record(
        self,
        state: _RunState,
        partition: List[Cluster],
        progress_callback: Optional[ProgressCallback],
    ) -> float:
        """Analyze and score a partition, updating the best result and the trace."""
        state.iteration += 1
        params = state.parameters
        stats = self.analyzer.analyze(partition)
        score = self.scorer.score(stats, state.total_files, self.options.target_cluster_count)

        if state.best_partition is None or score > state.best_score:
            state.best_partition = partition
            state.best_stats = stats
            state.best_score = score

        state.trace.append(
            IterationRecord(
                iteration=state.iteration,
                parameters=params,
                stats=stats,
                score=score,
                best_so_far=state.best_score,
            )
        )

        level = logging.INFO if self.options.enable_verbose else logging.DEBUG
        logger.log(
            level,
            f"Iteration {state.iteration}/{self.options.max_iterations}: "
            f"{stats.total_clusters} clusters, largest {stats.largest_cluster_size}, "
            f"score {score:.3f} (best {state.best_score:.3f}) [{params.describe()}]",
        )

        if progress_callback is not None:
            try:
                progress_callback(state.iteration, params, stats, score)
            except Exception as e:
                logger.warning(f"Progress callback failed on iteration {state.iteration}: {e}")

        return score

    def _finish(self, state: _RunState, termination: TerminationReason) -> TuningResult:
        logger.info(
            f"Auto-clustering finished ({termination.value}) after {state.iteration} iterations "
            f"with best score {state.best_score:.3f}"
        )
        return TuningResult(
            best_partition=tuple(order_partition(state.best_partition or [])),
            iterations_run=state.iteration,
            final_parameters=state.parameters,
            parameter_change_log=tuple(state.change_log),
            best_score=state.best_score,
            best_stats=state.best_stats,
            termination=termination,
            trace=tuple(state.trace),
        )
