"""Configuration schema dataclasses for filetriage.

The clustering sections reuse the dataclasses from
``filetriage.clustering.cluster_config`` so the engine and the config files
share a single source of truth for default values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..clustering.cluster_config import (
    AutoClusteringOptions,
    ClusteringConfig,
    ScoringConfig,
    TuningConfig,
)

DEFAULT_LOG_FORMAT = "%(levelname)s - %(name)s - %(message)s"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT
    file: Optional[str] = None
    console: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.level.upper() not in {level.value for level in LogLevel}:
            raise ValueError(f"level must be one of {[level.value for level in LogLevel]}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "format": self.format,
            "file": self.file,
            "console": self.console,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingConfig:
        """Create from dictionary."""
        return cls(
            level=data.get("level", "INFO"),
            format=data.get("format", DEFAULT_LOG_FORMAT),
            file=data.get("file"),
            console=data.get("console", True),
        )


@dataclass
class TriageConfig:
    """Main configuration container for filetriage.

    Configuration is loaded from multiple sources with the following priority:
    1. Programmatic (highest) - Direct API calls
    2. Environment Variables - FILETRIAGE_* prefixed
    3. Project Config - filetriage.toml in the scanned directory
    4. User Config - ~/.config/filetriage/config.toml
    5. Defaults (lowest) - Built-in defaults
    """

    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    auto: AutoClusteringOptions = field(default_factory=AutoClusteringOptions)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    tuning: TuningConfig = field(default_factory=TuningConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "clustering": self.clustering.to_dict(),
            "auto": self.auto.to_dict(),
            "scoring": self.scoring.to_dict(),
            "tuning": self.tuning.to_dict(),
            "logging": self.logging.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TriageConfig:
        """Create configuration from dictionary."""
        return cls(
            clustering=ClusteringConfig.from_dict(data.get("clustering", {})),
            auto=AutoClusteringOptions.from_dict(data.get("auto", {})),
            scoring=ScoringConfig.from_dict(data.get("scoring", {})),
            tuning=TuningConfig.from_dict(data.get("tuning", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    def get_nested(self, key: str, default: Any = None) -> Any:
        """Get a nested configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., "clustering.max_cluster_size")
            default: Default value if key not found

        Returns:
            The configuration value or default
        """
        obj: Any = self
        for part in key.split("."):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            elif isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def set_nested(self, key: str, value: Any) -> None:
        """Set a nested configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., "auto.max_iterations")
            value: Value to set

        Raises:
            KeyError: If the key does not name an existing setting
        """
        parts = key.split(".")
        obj: Any = self
        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise KeyError(f"Invalid configuration key: {key}")
        if not hasattr(obj, parts[-1]):
            raise KeyError(f"Invalid configuration key: {key}")
        setattr(obj, parts[-1], value)
