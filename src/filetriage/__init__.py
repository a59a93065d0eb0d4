"""
filetriage: adaptive clustering of file embeddings for triage
"""

__version__ = "1.0.0"

from filetriage.clustering import (
    AutoClusteringOptions,
    AutoClusterOrchestrator,
    Cluster,
    ClusteringError,
    ClusteringParameters,
    ClusterManager,
    FileVector,
    InvalidInputError,
    PrimitiveFailureError,
    TerminationReason,
    TuningCancelledError,
    TuningResult,
)
from filetriage.config import (
    TriageConfig,
    configure_logging,
    get_default_config,
    load_config,
    validate_config,
)

__all__ = [
    # Core
    "FileVector",
    "Cluster",
    "ClusteringParameters",
    "AutoClusteringOptions",
    "TuningResult",
    "TerminationReason",
    # Engine
    "ClusterManager",
    "AutoClusterOrchestrator",
    # Errors
    "ClusteringError",
    "InvalidInputError",
    "PrimitiveFailureError",
    "TuningCancelledError",
    # Configuration
    "TriageConfig",
    "load_config",
    "get_default_config",
    "validate_config",
    "configure_logging",
]
