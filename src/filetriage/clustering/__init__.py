"""
filetriage Clustering Module

Groups file embeddings into coherent, size-bounded clusters and retunes its
own parameters until the partition is good enough.

Key Features:
- Pluggable density clustering primitives (HDBSCAN, DBSCAN, any callable)
- Deterministic splitting of oversized clusters by cosine similarity
- Partition statistics with human-readable suggestions
- A single quality score combining balance, size bounds and target count
- Rule-based parameter tuning inside a bounded, cancellable loop

Example Usage:
    from filetriage.clustering import (
        AutoClusterOrchestrator,
        AutoClusteringOptions,
        ClusteringParameters,
    )

    orchestrator = AutoClusterOrchestrator(
        options=AutoClusteringOptions(target_cluster_count=12, max_iterations=5)
    )
    result = orchestrator.run(files, ClusteringParameters(max_cluster_size=30))
    for cluster in result.best_partition:
        print(cluster.id, cluster.size)
"""

from .cluster_analyzer import BUCKET_LABELS, SIZE_BUCKETS, ClusterAnalyzer, bucket_for_size
from .cluster_bounder import ClusterSizeBounder
from .cluster_config import (
    ULTRA_STRICT_MAX_CLUSTER_SIZE,
    AutoClusteringOptions,
    ClusteringConfig,
    ScoringConfig,
    TuningConfig,
)
from .cluster_manager import ClusterManager
from .cluster_orchestrator import AutoClusterOrchestrator, ProgressCallback
from .cluster_partition import build_partition, order_partition
from .cluster_report import (
    describe_cluster,
    format_date,
    format_file_size,
    render_analysis,
    render_tuning_result,
)
from .cluster_scorer import QualityScorer
from .cluster_tuner import ParameterTuner
from .cluster_types import (
    NOISE_LABEL,
    Cluster,
    ClusteringError,
    ClusteringParameters,
    ErrorKind,
    FileVector,
    InvalidInputError,
    IterationRecord,
    PartitionStats,
    PrimitiveFailureError,
    TerminationReason,
    TuningCancelledError,
    TuningResult,
)
from .strategies import (
    STRATEGIES,
    CallableStrategy,
    DBSCANStrategy,
    DensityClusterer,
    HDBSCANStrategy,
    get_strategy,
)

__all__ = [
    # Entry points
    "ClusterManager",
    "AutoClusterOrchestrator",
    "ProgressCallback",
    # Pipeline stages
    "ClusterSizeBounder",
    "ClusterAnalyzer",
    "QualityScorer",
    "ParameterTuner",
    "build_partition",
    "order_partition",
    "SIZE_BUCKETS",
    "BUCKET_LABELS",
    "bucket_for_size",
    # Configuration
    "ClusteringConfig",
    "AutoClusteringOptions",
    "ScoringConfig",
    "TuningConfig",
    "ULTRA_STRICT_MAX_CLUSTER_SIZE",
    # Data types
    "FileVector",
    "Cluster",
    "ClusteringParameters",
    "PartitionStats",
    "IterationRecord",
    "TuningResult",
    "TerminationReason",
    "NOISE_LABEL",
    # Errors
    "ErrorKind",
    "ClusteringError",
    "InvalidInputError",
    "PrimitiveFailureError",
    "TuningCancelledError",
    # Strategies
    "DensityClusterer",
    "HDBSCANStrategy",
    "DBSCANStrategy",
    "CallableStrategy",
    "STRATEGIES",
    "get_strategy",
    # Reporting
    "format_file_size",
    "format_date",
    "describe_cluster",
    "render_analysis",
    "render_tuning_result",
]
