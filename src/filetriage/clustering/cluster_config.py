"""Configuration classes for adaptive embedding clustering."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .cluster_types import ClusteringParameters

# Ultra-strict mode caps
ULTRA_STRICT_MAX_CLUSTER_SIZE = 20
ULTRA_STRICT_SIZE_PERCENT = 0.05
ULTRA_STRICT_PENALTY_MULTIPLIER = 10.0


@dataclass
class ClusteringConfig:
    """Initial clustering parameters and density strategy selection."""

    strategy: str = "hdbscan"  # Registered strategy name
    min_cluster_size: int = 2  # Minimum files per cluster
    min_samples: Optional[int] = None  # None = min(min_cluster_size, 3)
    similarity_threshold: float = 0.95  # Merge permissiveness in (0, 1]
    max_cluster_size: int = 50  # Maximum files per cluster
    strategy_params: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> bool:
        """Validate configuration parameters."""
        if self.min_cluster_size < 1:
            return False
        if self.min_samples is not None and self.min_samples < 1:
            return False
        if not (0.0 < self.similarity_threshold <= 1.0):
            return False
        if self.max_cluster_size < self.min_cluster_size:
            return False
        return True

    def to_parameters(self) -> ClusteringParameters:
        """Build the initial ClusteringParameters for a run."""
        return ClusteringParameters(
            min_cluster_size=self.min_cluster_size,
            min_samples=self.min_samples,
            similarity_threshold=self.similarity_threshold,
            max_cluster_size=self.max_cluster_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "strategy": self.strategy,
            "min_cluster_size": self.min_cluster_size,
            "min_samples": self.min_samples,
            "similarity_threshold": self.similarity_threshold,
            "max_cluster_size": self.max_cluster_size,
            "strategy_params": dict(self.strategy_params),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusteringConfig":
        """Create from dictionary."""
        return cls(
            strategy=data.get("strategy", "hdbscan"),
            min_cluster_size=data.get("min_cluster_size", 2),
            min_samples=data.get("min_samples"),
            similarity_threshold=data.get("similarity_threshold", 0.95),
            max_cluster_size=data.get("max_cluster_size", 50),
            strategy_params=data.get("strategy_params", {}),
        )


@dataclass
class AutoClusteringOptions:
    """Options for the auto-tuning loop."""

    max_iterations: int = 5  # Iteration budget
    target_cluster_count: Optional[int] = None  # Desired number of clusters
    max_cluster_size_percent: float = 0.1  # Largest acceptable share of files in one cluster
    min_cluster_size_percent: float = 0.0  # Floor for min_cluster_size as share of files (0 = off)
    enable_verbose: bool = False  # Log each iteration at INFO instead of DEBUG
    good_enough_score: float = 0.8  # Stop once a score exceeds this
    ultra_strict: bool = False  # Enforce small clusters (5% share, at most 20 files)

    @classmethod
    def ultra_strict_options(cls, **overrides: Any) -> "AutoClusteringOptions":
        """Options preset for ultra-strict clustering."""
        values: Dict[str, Any] = {
            "ultra_strict": True,
            "max_cluster_size_percent": ULTRA_STRICT_SIZE_PERCENT,
        }
        values.update(overrides)
        return cls(**values)

    @property
    def effective_size_percent(self) -> float:
        """Largest acceptable cluster share after applying ultra-strict mode."""
        if self.ultra_strict:
            return min(self.max_cluster_size_percent, ULTRA_STRICT_SIZE_PERCENT)
        return self.max_cluster_size_percent

    def validate(self) -> bool:
        """Validate option values."""
        if self.max_iterations < 1:
            return False
        if self.target_cluster_count is not None and self.target_cluster_count < 1:
            return False
        if not (0.0 < self.max_cluster_size_percent <= 1.0):
            return False
        if not (0.0 <= self.min_cluster_size_percent <= 1.0):
            return False
        if not (0.0 <= self.good_enough_score <= 1.0):
            return False
        return True

    def initial_min_cluster_size(self, total_files: int, cap: int) -> int:
        """Minimum cluster size implied by min_cluster_size_percent (0 when disabled)."""
        if self.min_cluster_size_percent <= 0:
            return 0
        return min(cap, math.ceil(self.min_cluster_size_percent * total_files))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "max_iterations": self.max_iterations,
            "target_cluster_count": self.target_cluster_count,
            "max_cluster_size_percent": self.max_cluster_size_percent,
            "min_cluster_size_percent": self.min_cluster_size_percent,
            "enable_verbose": self.enable_verbose,
            "good_enough_score": self.good_enough_score,
            "ultra_strict": self.ultra_strict,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutoClusteringOptions":
        """Create from dictionary."""
        return cls(
            max_iterations=data.get("max_iterations", 5),
            target_cluster_count=data.get("target_cluster_count"),
            max_cluster_size_percent=data.get("max_cluster_size_percent", 0.1),
            min_cluster_size_percent=data.get("min_cluster_size_percent", 0.0),
            enable_verbose=data.get("enable_verbose", False),
            good_enough_score=data.get("good_enough_score", 0.8),
            ultra_strict=data.get("ultra_strict", False),
        )


@dataclass
class ScoringConfig:
    """Weights and constants for partition quality scoring."""

    # Sub-score weights (sum to 1.0 when every term is active)
    balance_weight: float = 0.35
    extreme_weight: float = 0.25
    target_weight: float = 0.25
    count_balance_weight: float = 0.15

    # Ideal share of clusters per size bucket (1-5, 6-10, 11-25, 26-50, 51-100, 100+)
    ideal_distribution: Tuple[float, ...] = (0.15, 0.35, 0.30, 0.15, 0.05, 0.0)

    # Extreme-size penalty
    penalty_multiplier: float = 5.0
    extreme_size_floor: int = 10  # Clusters this small are never extreme

    # Count balance: acceptable clusters-per-file ratio band
    count_ratio_band: Tuple[float, float] = (0.01, 0.05)
    count_balance_min_files: int = 100  # Below this the ratio band is not meaningful

    def validate(self) -> bool:
        """Validate scoring configuration."""
        weights = (
            self.balance_weight,
            self.extreme_weight,
            self.target_weight,
            self.count_balance_weight,
        )
        if any(w < 0.0 or w > 1.0 for w in weights):
            return False
        if abs(sum(weights) - 1.0) > 1e-6:
            return False

        if any(share < 0.0 for share in self.ideal_distribution):
            return False
        if abs(sum(self.ideal_distribution) - 1.0) > 1e-6:
            return False

        if self.penalty_multiplier < 0:
            return False
        if self.extreme_size_floor < 0:
            return False

        low, high = self.count_ratio_band
        if not (0.0 < low < high <= 1.0):
            return False
        if self.count_balance_min_files < 0:
            return False
        return True

    def for_ultra_strict(self) -> "ScoringConfig":
        """Copy with the stricter extreme-size penalty."""
        data = self.to_dict()
        data["penalty_multiplier"] = max(self.penalty_multiplier, ULTRA_STRICT_PENALTY_MULTIPLIER)
        return ScoringConfig.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "balance_weight": self.balance_weight,
            "extreme_weight": self.extreme_weight,
            "target_weight": self.target_weight,
            "count_balance_weight": self.count_balance_weight,
            "ideal_distribution": list(self.ideal_distribution),
            "penalty_multiplier": self.penalty_multiplier,
            "extreme_size_floor": self.extreme_size_floor,
            "count_ratio_band": list(self.count_ratio_band),
            "count_balance_min_files": self.count_balance_min_files,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringConfig":
        """Create from dictionary."""
        return cls(
            balance_weight=data.get("balance_weight", 0.35),
            extreme_weight=data.get("extreme_weight", 0.25),
            target_weight=data.get("target_weight", 0.25),
            count_balance_weight=data.get("count_balance_weight", 0.15),
            ideal_distribution=tuple(
                data.get("ideal_distribution", (0.15, 0.35, 0.30, 0.15, 0.05, 0.0))
            ),
            penalty_multiplier=data.get("penalty_multiplier", 5.0),
            extreme_size_floor=data.get("extreme_size_floor", 10),
            count_ratio_band=tuple(data.get("count_ratio_band", (0.01, 0.05))),
            count_balance_min_files=data.get("count_balance_min_files", 100),
        )


@dataclass
class TuningConfig:
    """Constants for the parameter tuning rule table."""

    # Similarity threshold bounds
    threshold_floor: float = 0.7
    threshold_ceiling: float = 0.99

    # Clusters this small never trigger the giant or emergency rules
    extreme_size_floor: int = 10

    # Giant-cluster rule
    giant_threshold_step: float = 0.05  # Largest threshold drop per call
    giant_step_per_overshoot: float = 0.02
    severe_reduction: float = 0.5  # Overshoot ratio > 3
    strong_reduction: float = 0.7  # Overshoot ratio > 2
    mild_reduction: float = 0.85

    # Small-cluster glut rule
    small_bucket_share: float = 0.7
    small_glut_min_clusters: int = 10
    max_min_cluster_size: int = 10

    # Target-ratio rule
    target_tolerance: float = 0.2
    target_threshold_step: float = 0.02

    # Large-cluster glut rule
    large_bucket_share: float = 0.3

    # Emergency rule
    emergency_fraction: float = 0.2
    emergency_threshold_drop: float = 0.15

    def validate(self) -> bool:
        """Validate tuning configuration."""
        if not (0.0 < self.threshold_floor < self.threshold_ceiling <= 1.0):
            return False
        for factor in (self.severe_reduction, self.strong_reduction, self.mild_reduction):
            if not (0.0 < factor < 1.0):
                return False
        if not (0.0 < self.small_bucket_share <= 1.0):
            return False
        if not (0.0 < self.large_bucket_share <= 1.0):
            return False
        if self.max_min_cluster_size < 1:
            return False
        if not (0.0 < self.emergency_fraction <= 1.0):
            return False
        if self.target_tolerance < 0:
            return False
        if self.extreme_size_floor < 0:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "threshold_floor": self.threshold_floor,
            "threshold_ceiling": self.threshold_ceiling,
            "extreme_size_floor": self.extreme_size_floor,
            "giant_threshold_step": self.giant_threshold_step,
            "giant_step_per_overshoot": self.giant_step_per_overshoot,
            "severe_reduction": self.severe_reduction,
            "strong_reduction": self.strong_reduction,
            "mild_reduction": self.mild_reduction,
            "small_bucket_share": self.small_bucket_share,
            "small_glut_min_clusters": self.small_glut_min_clusters,
            "max_min_cluster_size": self.max_min_cluster_size,
            "target_tolerance": self.target_tolerance,
            "target_threshold_step": self.target_threshold_step,
            "large_bucket_share": self.large_bucket_share,
            "emergency_fraction": self.emergency_fraction,
            "emergency_threshold_drop": self.emergency_threshold_drop,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TuningConfig":
        """Create from dictionary."""
        defaults = cls()
        return cls(**{key: data.get(key, value) for key, value in defaults.to_dict().items()})
