"""Configuration loader for filetriage.

This module handles loading configuration from multiple sources:
1. Default values (lowest priority)
2. User config file (~/.config/filetriage/config.toml)
3. Project config file (<directory>/filetriage.toml)
4. Environment variables (FILETRIAGE_* prefix)
5. Programmatic overrides (highest priority)
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from .schema import LoggingConfig, TriageConfig

# Use tomllib (3.11+) or tomli for older Python versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

# Default paths
USER_CONFIG_DIR = Path.home() / ".config" / "filetriage"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.toml"
PROJECT_CONFIG_NAME = "filetriage.toml"
ENV_PREFIX = "FILETRIAGE_"
PACKAGE_LOGGER = "filetriage"

# Known section names (first level)
SECTIONS = {"clustering", "auto", "scoring", "tuning", "logging"}


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to appropriate Python type."""
    # Handle booleans
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    # Handle None
    if value.lower() in ("none", "null", ""):
        return None

    # Try numeric types
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    # Return as string
    return value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """Load configuration from multiple sources with priority handling."""

    def __init__(
        self,
        project_path: Optional[Path] = None,
        user_config_path: Optional[Path] = None,
    ):
        """Initialize the configuration loader.

        Args:
            project_path: Directory being triaged (may contain filetriage.toml)
            user_config_path: Optional override for user config path
        """
        self.project_path = Path(project_path) if project_path else None
        self.user_config_path = Path(user_config_path) if user_config_path else USER_CONFIG_PATH

    def load(self, overrides: Optional[dict[str, Any]] = None) -> TriageConfig:
        """Load configuration from all sources with priority handling.

        Args:
            overrides: Nested dictionary applied last, e.g.
                ``{"auto": {"max_iterations": 3}}``

        Returns:
            Merged TriageConfig instance
        """
        # Start with defaults
        config_dict: dict[str, Any] = {}

        # Load user config
        if self.user_config_path.exists():
            user_data = self._load_toml(self.user_config_path)
            if user_data:
                config_dict = _deep_merge(config_dict, user_data)
                logger.debug(f"Loaded user config from {self.user_config_path}")

        # Load project config
        if self.project_path:
            project_config_path = self.project_path / PROJECT_CONFIG_NAME
            if project_config_path.exists():
                project_data = self._load_toml(project_config_path)
                if project_data:
                    config_dict = _deep_merge(config_dict, project_data)
                    logger.debug(f"Loaded project config from {project_config_path}")

        # Apply environment variable overrides
        env_overrides = self._load_env_vars()
        if env_overrides:
            config_dict = _deep_merge(config_dict, env_overrides)
            logger.debug("Applied environment variable overrides")

        if overrides:
            config_dict = _deep_merge(config_dict, overrides)

        return TriageConfig.from_dict(config_dict)

    def _load_toml(self, path: Path) -> Optional[dict[str, Any]]:
        """Load a TOML configuration file.

        Args:
            path: Path to the TOML file

        Returns:
            Parsed configuration dict or None if the file is unreadable
        """
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(f"Failed to load TOML config from {path}: {e}")
            return None

    def _load_env_vars(self) -> dict[str, Any]:
        """Load configuration from environment variables.

        Environment variables are prefixed with FILETRIAGE_ and use
        underscores to separate the section from the key. For example:
        - FILETRIAGE_CLUSTERING_MAX_CLUSTER_SIZE -> clustering.max_cluster_size
        - FILETRIAGE_AUTO_ULTRA_STRICT -> auto.ultra_strict

        Returns:
            Configuration dictionary from environment variables
        """
        result: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            parts = key[len(ENV_PREFIX) :].lower().split("_")
            nested = self._build_nested_dict(parts, _parse_env_value(value))
            if nested:
                result = _deep_merge(result, nested)

        return result

    def _build_nested_dict(self, parts: list[str], value: Any) -> dict[str, Any]:
        """Build a nested dictionary from key parts.

        The first part must name a known section; the remaining parts are
        joined back with underscores to form the key. Variables that do not
        name a section are ignored.

        Args:
            parts: List of key parts from splitting on underscores
            value: Value to set

        Returns:
            Nested dictionary, empty for unknown sections
        """
        if len(parts) < 2 or parts[0] not in SECTIONS:
            return {}
        return {parts[0]: {"_".join(parts[1:]): value}}


def load_config(
    project_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> TriageConfig:
    """Load filetriage configuration from all sources.

    This is the main entry point for loading configuration.

    Args:
        project_path: Optional directory containing filetriage.toml
        user_config_path: Optional override for user config path
        overrides: Optional programmatic overrides (highest priority)

    Returns:
        Merged TriageConfig instance
    """
    loader = ConfigLoader(project_path, user_config_path)
    return loader.load(overrides)


def get_default_config() -> TriageConfig:
    """Get a TriageConfig with all default values.

    Returns:
        TriageConfig with defaults
    """
    return TriageConfig()


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Apply a LoggingConfig to the ``filetriage`` logger hierarchy.

    The root logger is left alone; handlers installed by an earlier call are
    replaced.

    Args:
        config: Logging settings (default: LoggingConfig())

    Returns:
        The configured package logger
    """
    config = config or LoggingConfig()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(config.level.upper())

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = []
    if config.console:
        handlers.append(logging.StreamHandler())
    if config.file:
        handlers.append(logging.FileHandler(Path(config.file).expanduser()))

    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    return package_logger
