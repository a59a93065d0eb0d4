"""Density clustering strategies for embedding clustering."""

from .base import DensityClusterer, validate_labels
from .function import CallableStrategy
from .dbscan import DBSCANStrategy
from .hdbscan_strategy import HDBSCANStrategy

__all__ = [
    'DensityClusterer',
    'validate_labels',
    'HDBSCANStrategy',
    'DBSCANStrategy',
    'CallableStrategy',
]

# Strategy registry for easy lookup
STRATEGIES = {
    'hdbscan': HDBSCANStrategy,
    'dbscan': DBSCANStrategy,
    'callable': CallableStrategy,
}


def get_strategy(name: str, **params) -> DensityClusterer:
    """
    Get a clustering strategy by name.

    Args:
        name: Strategy name ('hdbscan', 'dbscan', 'callable')
        **params: Parameters to pass to the strategy

    Returns:
        Initialized clustering strategy

    Raises:
        ValueError: If strategy name is not recognized
    """
    if name not in STRATEGIES:
        raise ValueError(f"Unknown clustering strategy: {name}. "
                        f"Available strategies: {list(STRATEGIES.keys())}")

    strategy_class = STRATEGIES[name]
    return strategy_class(**params)
