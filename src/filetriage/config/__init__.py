"""Configuration system for filetriage.

Configuration Sources (Priority Order):
1. Programmatic (highest) - Direct API calls
2. Environment Variables - FILETRIAGE_* prefixed variables
3. Project Config - filetriage.toml in the triaged directory
4. User Config - ~/.config/filetriage/config.toml (global)
5. Defaults (lowest) - Built-in defaults

Example Usage:
    from filetriage.config import load_config

    config = load_config(project_path=Path("./downloads"))
    print(config.clustering.max_cluster_size)  # 50
    print(config.auto.max_iterations)          # 5

Environment Variables:
    All settings can be overridden with FILETRIAGE_ prefixed variables:
    - FILETRIAGE_CLUSTERING_MAX_CLUSTER_SIZE=20
    - FILETRIAGE_AUTO_ULTRA_STRICT=true
    - FILETRIAGE_LOGGING_LEVEL=DEBUG
"""

from ..clustering.cluster_config import (
    AutoClusteringOptions,
    ClusteringConfig,
    ScoringConfig,
    TuningConfig,
)
from .loader import (
    ConfigLoader,
    configure_logging,
    get_default_config,
    load_config,
)
from .schema import (
    LoggingConfig,
    LogLevel,
    TriageConfig,
)
from .validation import (
    ConfigValidationError,
    ValidationError,
    ValidationResult,
    ensure_valid,
    validate_config,
    validate_value,
)

__all__ = [
    # Main config class
    "TriageConfig",
    # Section configs
    "ClusteringConfig",
    "AutoClusteringOptions",
    "ScoringConfig",
    "TuningConfig",
    "LoggingConfig",
    # Enums
    "LogLevel",
    # Loader
    "ConfigLoader",
    "load_config",
    "get_default_config",
    "configure_logging",
    # Validation
    "validate_config",
    "validate_value",
    "ensure_valid",
    "ValidationError",
    "ValidationResult",
    "ConfigValidationError",
]
