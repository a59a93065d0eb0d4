"""Configuration validation for filetriage.

This module provides validation utilities for configuration values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .schema import LogLevel, TriageConfig


@dataclass
class ValidationError:
    """Represents a configuration validation error."""

    key: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.key}: {self.message} (got: {self.value!r})"
        return f"{self.key}: {self.message}"


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    valid: bool
    errors: list[ValidationError]
    warnings: list[ValidationError]

    def __bool__(self) -> bool:
        return self.valid


class ConfigValidationError(Exception):
    """Raised when a configuration fails validation.

    Attributes:
        errors: List of ValidationError objects describing what failed
        warnings: List of ValidationError objects for non-fatal issues
    """

    def __init__(
        self,
        message: str,
        errors: list[ValidationError],
        warnings: Optional[list[ValidationError]] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors
        self.warnings = warnings or []

    def __str__(self) -> str:
        lines = [super().__str__()]
        if self.errors:
            lines.append("Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")
        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")
        return "\n".join(lines)


def validate_config(config: TriageConfig) -> ValidationResult:
    """Validate a configuration instance.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with errors and warnings
    """
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []

    _validate_clustering(config, errors, warnings)
    _validate_auto(config, errors, warnings)
    _validate_scoring(config, errors, warnings)
    _validate_tuning(config, errors, warnings)
    _validate_logging(config, errors, warnings)

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def ensure_valid(config: TriageConfig) -> TriageConfig:
    """Return the config unchanged, raising ConfigValidationError if it is invalid."""
    result = validate_config(config)
    if not result:
        raise ConfigValidationError(
            "Invalid filetriage configuration", result.errors, result.warnings
        )
    return config


def _validate_clustering(
    config: TriageConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate initial clustering parameters."""
    # Import at runtime to avoid circular imports
    from ..clustering.strategies import STRATEGIES

    clustering = config.clustering

    if clustering.strategy not in STRATEGIES:
        errors.append(
            ValidationError(
                "clustering.strategy",
                f"must be one of {sorted(STRATEGIES)}",
                clustering.strategy,
            )
        )
    elif clustering.strategy == "callable":
        errors.append(
            ValidationError(
                "clustering.strategy",
                "'callable' needs a function and cannot be selected from configuration",
                clustering.strategy,
            )
        )

    if clustering.min_cluster_size < 1:
        errors.append(
            ValidationError(
                "clustering.min_cluster_size",
                "must be at least 1",
                clustering.min_cluster_size,
            )
        )

    if clustering.min_samples is not None and clustering.min_samples < 1:
        errors.append(
            ValidationError(
                "clustering.min_samples",
                "must be at least 1",
                clustering.min_samples,
            )
        )

    if not 0.0 < clustering.similarity_threshold <= 1.0:
        errors.append(
            ValidationError(
                "clustering.similarity_threshold",
                "must be in (0.0, 1.0]",
                clustering.similarity_threshold,
            )
        )
    elif clustering.similarity_threshold < 0.7:
        warnings.append(
            ValidationError(
                "clustering.similarity_threshold",
                "the tuner never lowers the threshold below 0.7",
                clustering.similarity_threshold,
            )
        )

    if clustering.max_cluster_size < clustering.min_cluster_size:
        errors.append(
            ValidationError(
                "clustering.max_cluster_size",
                "must be at least min_cluster_size",
                clustering.max_cluster_size,
            )
        )


def _validate_auto(
    config: TriageConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate auto-tuning options."""
    auto = config.auto

    if auto.max_iterations < 1:
        errors.append(
            ValidationError("auto.max_iterations", "must be at least 1", auto.max_iterations)
        )
    elif auto.max_iterations > 20:
        warnings.append(
            ValidationError(
                "auto.max_iterations",
                "large iteration budgets rerun density clustering many times",
                auto.max_iterations,
            )
        )

    if auto.target_cluster_count is not None and auto.target_cluster_count < 1:
        errors.append(
            ValidationError(
                "auto.target_cluster_count",
                "must be at least 1",
                auto.target_cluster_count,
            )
        )

    if not 0.0 < auto.max_cluster_size_percent <= 1.0:
        errors.append(
            ValidationError(
                "auto.max_cluster_size_percent",
                "must be in (0.0, 1.0]",
                auto.max_cluster_size_percent,
            )
        )

    if not 0.0 <= auto.min_cluster_size_percent <= 1.0:
        errors.append(
            ValidationError(
                "auto.min_cluster_size_percent",
                "must be between 0.0 and 1.0",
                auto.min_cluster_size_percent,
            )
        )

    if not 0.0 <= auto.good_enough_score <= 1.0:
        errors.append(
            ValidationError(
                "auto.good_enough_score",
                "must be between 0.0 and 1.0",
                auto.good_enough_score,
            )
        )


def _validate_scoring(
    config: TriageConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate scoring weights and constants."""
    scoring = config.scoring

    weights = {
        "scoring.balance_weight": scoring.balance_weight,
        "scoring.extreme_weight": scoring.extreme_weight,
        "scoring.target_weight": scoring.target_weight,
        "scoring.count_balance_weight": scoring.count_balance_weight,
    }
    for key, weight in weights.items():
        if not 0.0 <= weight <= 1.0:
            errors.append(ValidationError(key, "must be between 0.0 and 1.0", weight))
    if abs(sum(weights.values()) - 1.0) > 1e-6:
        errors.append(
            ValidationError(
                "scoring",
                "sub-score weights must sum to 1.0",
                round(sum(weights.values()), 6),
            )
        )

    if len(scoring.ideal_distribution) != 6:
        errors.append(
            ValidationError(
                "scoring.ideal_distribution",
                "must have one share per size bucket (6 values)",
                list(scoring.ideal_distribution),
            )
        )
    elif abs(sum(scoring.ideal_distribution) - 1.0) > 1e-6:
        errors.append(
            ValidationError(
                "scoring.ideal_distribution",
                "shares must sum to 1.0",
                list(scoring.ideal_distribution),
            )
        )

    low, high = scoring.count_ratio_band
    if not 0.0 < low < high <= 1.0:
        errors.append(
            ValidationError(
                "scoring.count_ratio_band",
                "must satisfy 0 < low < high <= 1",
                list(scoring.count_ratio_band),
            )
        )

    if scoring.penalty_multiplier < 0:
        errors.append(
            ValidationError(
                "scoring.penalty_multiplier",
                "must be non-negative",
                scoring.penalty_multiplier,
            )
        )


def _validate_tuning(
    config: TriageConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate tuning rule constants."""
    tuning = config.tuning

    if not 0.0 < tuning.threshold_floor < tuning.threshold_ceiling <= 1.0:
        errors.append(
            ValidationError(
                "tuning.threshold_floor",
                "must satisfy 0 < threshold_floor < threshold_ceiling <= 1",
                (tuning.threshold_floor, tuning.threshold_ceiling),
            )
        )

    for key in ("severe_reduction", "strong_reduction", "mild_reduction"):
        factor = getattr(tuning, key)
        if not 0.0 < factor < 1.0:
            errors.append(ValidationError(f"tuning.{key}", "must be in (0.0, 1.0)", factor))

    if tuning.max_min_cluster_size < 1:
        errors.append(
            ValidationError(
                "tuning.max_min_cluster_size",
                "must be at least 1",
                tuning.max_min_cluster_size,
            )
        )

    if not 0.0 < tuning.emergency_fraction <= 1.0:
        errors.append(
            ValidationError(
                "tuning.emergency_fraction",
                "must be in (0.0, 1.0]",
                tuning.emergency_fraction,
            )
        )
    elif tuning.emergency_fraction < config.auto.max_cluster_size_percent:
        warnings.append(
            ValidationError(
                "tuning.emergency_fraction",
                "below auto.max_cluster_size_percent, so the emergency rule fires "
                "before the giant-cluster rule",
                tuning.emergency_fraction,
            )
        )


def _validate_logging(
    config: TriageConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate logging configuration."""
    logging_cfg = config.logging

    valid_levels = {level.value for level in LogLevel}
    if logging_cfg.level.upper() not in valid_levels:
        errors.append(
            ValidationError(
                "logging.level",
                f"must be one of {sorted(valid_levels)}",
                logging_cfg.level,
            )
        )


def validate_value(key: str, value: Any) -> Optional[ValidationError]:
    """Validate a single configuration value.

    Args:
        key: Configuration key (dot notation)
        value: Value to validate

    Returns:
        ValidationError if invalid, None if valid
    """
    validators = {
        "clustering.min_cluster_size": lambda v: (
            None if v >= 1 else ValidationError(key, "must be at least 1", v)
        ),
        "clustering.similarity_threshold": lambda v: (
            None if 0.0 < v <= 1.0 else ValidationError(key, "must be in (0.0, 1.0]", v)
        ),
        "clustering.max_cluster_size": lambda v: (
            None if v >= 1 else ValidationError(key, "must be at least 1", v)
        ),
        "auto.max_iterations": lambda v: (
            None if v >= 1 else ValidationError(key, "must be at least 1", v)
        ),
        "auto.max_cluster_size_percent": lambda v: (
            None if 0.0 < v <= 1.0 else ValidationError(key, "must be in (0.0, 1.0]", v)
        ),
        "auto.good_enough_score": lambda v: (
            None
            if 0.0 <= v <= 1.0
            else ValidationError(key, "must be between 0.0 and 1.0", v)
        ),
        "logging.level": lambda v: (
            None
            if v.upper() in {level.value for level in LogLevel}
            else ValidationError(key, "must be a valid log level", v)
        ),
    }

    if key in validators:
        return validators[key](value)

    return None
