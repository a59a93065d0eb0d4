"""
High-level clustering entry points.

ClusterManager wires a density strategy, the size bounder and the tuning
loop together from a TriageConfig. It offers one-shot clustering with fixed
parameters and auto-tuned clustering.
"""

import logging
import threading
from typing import List, Optional, Sequence

from ..config.schema import TriageConfig
from .cluster_analyzer import ClusterAnalyzer
from .cluster_config import AutoClusteringOptions
from .cluster_orchestrator import AutoClusterOrchestrator, ProgressCallback
from .cluster_types import (
    Cluster,
    ClusteringParameters,
    FileVector,
    InvalidInputError,
    PartitionStats,
    TuningResult,
)
from .strategies import DensityClusterer, get_strategy

logger = logging.getLogger(__name__)


class ClusterManager:
    """
    Facade over the clustering engine.

    Example:
        >>> manager = ClusterManager()
        >>> clusters = manager.cluster_files(files)
        >>> result = manager.auto_cluster_files(files, ultra_strict=True)
    """

    def __init__(
        self,
        config: Optional[TriageConfig] = None,
        clusterer: Optional[DensityClusterer] = None,
    ):
        """
        Initialize ClusterManager.

        Args:
            config: Full configuration (default: TriageConfig())
            clusterer: Density strategy; built from ``config.clustering`` when omitted

        Raises:
            InvalidInputError: If the clustering section is invalid
        """
        self.config = config or TriageConfig()
        if not self.config.clustering.validate():
            raise InvalidInputError(
                f"Invalid clustering configuration: {self.config.clustering.to_dict()}"
            )

        if clusterer is None:
            clusterer = get_strategy(
                self.config.clustering.strategy, **self.config.clustering.strategy_params
            )
        self.clusterer = clusterer

    def default_parameters(self) -> ClusteringParameters:
        """Initial parameters from the clustering section of the config."""
        return self.config.clustering.to_parameters()

    def cluster_files(
        self,
        files: Sequence[FileVector],
        parameters: Optional[ClusteringParameters] = None,
        ultra_strict: bool = False,
    ) -> List[Cluster]:
        """
        Cluster files once with fixed parameters.

        The partition is built exactly as in auto-tuning (noise cluster,
        size bound, largest-first ordering) but no parameters are adjusted.

        Args:
            files: Files to cluster
            parameters: Parameters to use (default: from config)
            ultra_strict: Cap clusters at 20 files

        Returns:
            Clusters sorted largest first, noise last
        """
        options = self._options(ultra_strict).to_dict()
        options["max_iterations"] = 1
        result = self._orchestrator(AutoClusteringOptions.from_dict(options)).run(
            files, parameters or self.default_parameters()
        )
        logger.info(f"Created {len(result.best_partition)} clusters from {len(files)} files")
        return list(result.best_partition)

    def auto_cluster_files(
        self,
        files: Sequence[FileVector],
        parameters: Optional[ClusteringParameters] = None,
        options: Optional[AutoClusteringOptions] = None,
        ultra_strict: Optional[bool] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TuningResult:
        """
        Cluster files with automatic parameter tuning.

        Args:
            files: Files to cluster
            parameters: Initial parameters (default: from config)
            options: Tuning options (default: ``config.auto``)
            ultra_strict: Overrides ``options.ultra_strict`` when given
            progress_callback: Per-iteration observer
            cancel_event: External cancellation signal

        Returns:
            TuningResult with the best partition found
        """
        orchestrator = self._orchestrator(self._options(ultra_strict, options))
        return orchestrator.run(
            files,
            parameters or self.default_parameters(),
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )

    async def auto_cluster_files_async(
        self,
        files: Sequence[FileVector],
        parameters: Optional[ClusteringParameters] = None,
        options: Optional[AutoClusteringOptions] = None,
        ultra_strict: Optional[bool] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TuningResult:
        """Coroutine form of :meth:`auto_cluster_files`."""
        orchestrator = self._orchestrator(self._options(ultra_strict, options))
        return await orchestrator.run_async(
            files,
            parameters or self.default_parameters(),
            progress_callback=progress_callback,
            cancel_event=cancel_event,
        )

    def analyze(self, clusters: Sequence[Cluster]) -> PartitionStats:
        """Statistics and suggestions for an existing partition."""
        return ClusterAnalyzer(self.config.auto.effective_size_percent).analyze(clusters)

    def _options(
        self,
        ultra_strict: Optional[bool],
        options: Optional[AutoClusteringOptions] = None,
    ) -> AutoClusteringOptions:
        options = options or self.config.auto
        if ultra_strict is None or ultra_strict == options.ultra_strict:
            return options
        if ultra_strict:
            preset = ("ultra_strict", "max_cluster_size_percent")
            return AutoClusteringOptions.ultra_strict_options(
                **{k: v for k, v in options.to_dict().items() if k not in preset}
            )
        data = options.to_dict()
        data["ultra_strict"] = False
        return AutoClusteringOptions.from_dict(data)

    def _orchestrator(self, options: AutoClusteringOptions) -> AutoClusterOrchestrator:
        return AutoClusterOrchestrator(
            clusterer=self.clusterer,
            options=options,
            scoring_config=self.config.scoring,
            tuning_config=self.config.tuning,
        )
