"""Core data structures, enums and errors for embedding clustering."""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.similarity import centroid as mean_vector

logger = logging.getLogger(__name__)

NOISE_LABEL = -1  # Label the density primitive uses for unclustered points


def _readonly(array: Any) -> np.ndarray:
    """Return a read-only float64 view, copying only when conversion is needed."""
    data = np.asarray(array, dtype=np.float64).ravel().view()
    data.setflags(write=False)
    return data


class ErrorKind(Enum):
    """Classification of fatal clustering errors."""

    INVALID_INPUT = "invalid_input"
    PRIMITIVE_FAILURE = "primitive_failure"
    CANCELLED = "cancelled"


class ClusteringError(Exception):
    """Base class for errors raised by the clustering engine.

    Attributes:
        kind: Classified error kind, the only detail surfaced to callers
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class InvalidInputError(ClusteringError):
    """Raised when vectors, parameters or options are unusable."""

    kind = ErrorKind.INVALID_INPUT


class PrimitiveFailureError(ClusteringError):
    """Raised when the density clustering primitive fails or returns bad labels."""

    kind = ErrorKind.PRIMITIVE_FAILURE


class TuningCancelledError(ClusteringError):
    """Raised when a tuning run is cancelled before any iteration completed."""

    kind = ErrorKind.CANCELLED


class TerminationReason(Enum):
    """Terminal states of the auto-tuning loop."""

    GOOD_ENOUGH = "good_enough"  # Score exceeded the quality bar
    CONVERGED = "converged"  # Tuner proposed no change
    BUDGET_EXHAUSTED = "budget_exhausted"  # Hit max_iterations
    TOO_FEW_FILES = "too_few_files"  # Fewer files than min_cluster_size
    CANCELLED = "cancelled"  # External cancellation signal


@dataclass(frozen=True, eq=False)
class FileVector:
    """Embedding of a single file, as produced by the embedding collaborator."""

    id: str  # Opaque identifier, usually the file path
    embedding: np.ndarray  # Fixed-length embedding
    size: int = 0  # File size in bytes
    last_modified: Optional[datetime] = None

    def __post_init__(self) -> None:
        if np.ndim(self.embedding) != 1:
            raise InvalidInputError(
                f"Embedding of {self.id!r} must be one-dimensional, "
                f"got shape {np.shape(self.embedding)}"
            )
        object.__setattr__(self, "embedding", _readonly(self.embedding))

    @property
    def dimension(self) -> int:
        return int(self.embedding.shape[0])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "size": self.size,
            "last_modified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
        }


@dataclass(frozen=True, eq=False)
class Cluster:
    """A group of files; instances are snapshots and never change membership."""

    id: int
    members: Tuple[FileVector, ...]
    centroid: Optional[np.ndarray] = None
    is_noise: bool = False  # Built from points the density primitive left unclustered

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", tuple(self.members))
        if self.centroid is not None:
            object.__setattr__(self, "centroid", _readonly(self.centroid))

    @classmethod
    def from_members(
        cls,
        cluster_id: int,
        members: Iterable[FileVector],
        is_noise: bool = False,
    ) -> "Cluster":
        """Create a cluster and compute its centroid from the member embeddings."""
        members = tuple(members)
        center = mean_vector([m.embedding for m in members]) if members else None
        return cls(id=cluster_id, members=members, centroid=center, is_noise=is_noise)

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def total_bytes(self) -> int:
        return sum(m.size for m in self.members)

    @property
    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def with_id(self, cluster_id: int) -> "Cluster":
        """Return the same cluster under a different id."""
        return dataclasses.replace(self, id=cluster_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "size": self.size,
            "is_noise": self.is_noise,
            "members": self.member_ids,
            "total_bytes": self.total_bytes,
        }


@dataclass(frozen=True)
class ClusteringParameters:
    """Parameters for one clustering attempt. Each tuning step creates a new instance."""

    min_cluster_size: int = 2
    min_samples: Optional[int] = None  # Defaults to min(min_cluster_size, 3)
    similarity_threshold: float = 0.95
    max_cluster_size: int = 50

    def __post_init__(self) -> None:
        if self.min_samples is None and isinstance(self.min_cluster_size, (int, np.integer)):
            object.__setattr__(self, "min_samples", min(self.min_cluster_size, 3))

    def validate(self) -> None:
        """Raise InvalidInputError if any parameter is out of range."""
        if not isinstance(self.min_cluster_size, (int, np.integer)) or self.min_cluster_size < 1:
            raise InvalidInputError(
                f"min_cluster_size must be an integer >= 1, got {self.min_cluster_size!r}"
            )
        if not isinstance(self.min_samples, (int, np.integer)) or self.min_samples < 1:
            raise InvalidInputError(
                f"min_samples must be an integer >= 1, got {self.min_samples!r}"
            )
        if isinstance(self.similarity_threshold, bool) or not isinstance(
            self.similarity_threshold, (int, float, np.integer, np.floating)
        ):
            raise InvalidInputError(
                f"similarity_threshold must be a number, got {self.similarity_threshold!r}"
            )
        if not (0.0 < self.similarity_threshold <= 1.0):
            raise InvalidInputError(
                f"similarity_threshold must be in (0, 1], got {self.similarity_threshold!r}"
            )
        if not isinstance(self.max_cluster_size, (int, np.integer)) or self.max_cluster_size < 1:
            raise InvalidInputError(
                f"max_cluster_size must be an integer >= 1, got {self.max_cluster_size!r}"
            )
        if self.max_cluster_size < self.min_cluster_size:
            raise InvalidInputError(
                f"max_cluster_size ({self.max_cluster_size}) must be >= "
                f"min_cluster_size ({self.min_cluster_size})"
            )

    def replace(self, **changes: Any) -> "ClusteringParameters":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def describe(self) -> str:
        return (
            f"min_cluster_size={self.min_cluster_size}, min_samples={self.min_samples}, "
            f"similarity_threshold={self.similarity_threshold:.3f}, "
            f"max_cluster_size={self.max_cluster_size}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "min_cluster_size": self.min_cluster_size,
            "min_samples": self.min_samples,
            "similarity_threshold": self.similarity_threshold,
            "max_cluster_size": self.max_cluster_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusteringParameters":
        """Create from dictionary."""
        return cls(
            min_cluster_size=data.get("min_cluster_size", 2),
            min_samples=data.get("min_samples"),
            similarity_threshold=data.get("similarity_threshold", 0.95),
            max_cluster_size=data.get("max_cluster_size", 50),
        )


@dataclass(frozen=True)
class PartitionStats:
    """Descriptive statistics of one partition."""

    total_clusters: int
    total_files: int
    size_histogram: Dict[str, int]  # Bucket label -> cluster count, in bucket order
    cluster_sizes_descending: Tuple[int, ...]
    noise_files: int = 0
    suggestions: Tuple[str, ...] = ()

    @property
    def largest_cluster_size(self) -> int:
        return self.cluster_sizes_descending[0] if self.cluster_sizes_descending else 0

    @property
    def largest_cluster_share(self) -> float:
        """Fraction of all files held by the largest cluster."""
        if self.total_files == 0:
            return 0.0
        return self.largest_cluster_size / self.total_files

    @property
    def bucket_distribution(self) -> Tuple[float, ...]:
        """Fraction of clusters falling in each bucket, in bucket order."""
        if self.total_clusters == 0:
            return tuple(0.0 for _ in self.size_histogram)
        return tuple(count / self.total_clusters for count in self.size_histogram.values())

    def bucket_share(self, labels: Sequence[str]) -> float:
        """Fraction of clusters falling in any of the given buckets."""
        if self.total_clusters == 0:
            return 0.0
        count = sum(self.size_histogram.get(label, 0) for label in labels)
        return count / self.total_clusters

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total_clusters": self.total_clusters,
            "total_files": self.total_files,
            "size_histogram": dict(self.size_histogram),
            "cluster_sizes_descending": list(self.cluster_sizes_descending),
            "noise_files": self.noise_files,
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class IterationRecord:
    """Outcome of one tuning iteration."""

    iteration: int
    parameters: ClusteringParameters
    stats: PartitionStats
    score: float
    best_so_far: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "parameters": self.parameters.to_dict(),
            "stats": self.stats.to_dict(),
            "score": self.score,
            "best_so_far": self.best_so_far,
        }


@dataclass(frozen=True)
class TuningResult:
    """Final outcome of an auto-tuning run."""

    best_partition: Tuple[Cluster, ...]
    iterations_run: int
    final_parameters: ClusteringParameters
    parameter_change_log: Tuple[str, ...]
    best_score: float
    best_stats: PartitionStats
    termination: TerminationReason
    trace: Tuple[IterationRecord, ...] = field(default_factory=tuple)

    @property
    def clusters(self) -> Tuple[Cluster, ...]:
        return self.best_partition

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "best_partition": [cluster.to_dict() for cluster in self.best_partition],
            "iterations_run": self.iterations_run,
            "final_parameters": self.final_parameters.to_dict(),
            "parameter_change_log": list(self.parameter_change_log),
            "best_score": self.best_score,
            "best_stats": self.best_stats.to_dict(),
            "termination": self.termination.value,
            "trace": [record.to_dict() for record in self.trace],
        }
