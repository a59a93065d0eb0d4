"""Strategy adapter for plain clustering functions."""

import inspect
from typing import Any, Optional

import numpy as np

from .base import DensityClusterer


class CallableStrategy(DensityClusterer):
    """
    Wrap a function ``fn(vectors, min_cluster_size, min_samples) -> labels``.

    Lets any third-party density clustering library, or a fixed stub in
    tests, be used as a strategy. Coroutine functions are supported through
    :meth:`cluster_async` only.

    Parameters:
        fn: The clustering function
        name: Optional name reported by the strategy (default: function name)

    Example:
        >>> strategy = CallableStrategy(fn=lambda x, mcs, ms: np.zeros(len(x), dtype=int))
    """

    @property
    def name(self) -> str:
        """Strategy name."""
        return self.params["name"]

    def validate_params(self) -> None:
        """Validate strategy parameters."""
        fn = self.params.get("fn")
        if fn is None or not callable(fn):
            raise ValueError("fn must be a callable")
        self.params.setdefault("name", getattr(fn, "__name__", "callable"))

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.params["fn"])

    def _fit_labels(
        self,
        data: np.ndarray,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float],
    ) -> np.ndarray:
        if self.is_coroutine:
            raise TypeError(f"{self.name} is a coroutine function; use cluster_async()")
        return self.params["fn"](data, min_cluster_size, min_samples)

    async def cluster_async(
        self,
        vectors: Any,
        min_cluster_size: int,
        min_samples: int,
        similarity_threshold: Optional[float] = None,
    ) -> np.ndarray:
        """Await coroutine functions directly, otherwise defer to the executor."""
        if self.is_coroutine:
            data = np.asarray(vectors, dtype=np.float64)
            return await self.params["fn"](data, min_cluster_size, min_samples)
        return await super().cluster_async(
            vectors, min_cluster_size, min_samples, similarity_threshold
        )
