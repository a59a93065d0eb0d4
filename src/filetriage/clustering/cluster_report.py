"""Plain-text rendering of clusters, partition analysis and tuning results."""

import os
from datetime import datetime
from typing import List, Optional

from .cluster_analyzer import BUCKET_LABELS
from .cluster_types import Cluster, PartitionStats, TuningResult

SIZE_UNITS = ("B", "KB", "MB", "GB")
MIN_NAME_WIDTH = 20
MIN_SIZE_WIDTH = 8


def format_file_size(num_bytes: int) -> str:
    """Format a byte count with one decimal, e.g. ``1.5KB``; GB is the largest unit."""
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.1f}{SIZE_UNITS[unit_index]}"


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return "unknown"
    return value.strftime("%Y-%m-%d %H:%M:%S")


def describe_cluster(cluster: Cluster) -> str:
    """
    Render a cluster as a header line followed by one aligned row per file.

    Rows show the file name, its size and its modification time.
    """
    label = "Unclustered files" if cluster.is_noise else f"Cluster {cluster.id}"
    lines = [f"{label} ({cluster.size} files, {format_file_size(cluster.total_bytes)})"]

    names = [os.path.basename(member.id) or member.id for member in cluster.members]
    sizes = [format_file_size(member.size) for member in cluster.members]
    name_width = max([len(name) for name in names] + [MIN_NAME_WIDTH])
    size_width = max([len(size) for size in sizes] + [MIN_SIZE_WIDTH])

    for member, name, size in zip(cluster.members, names, sizes):
        lines.append(
            f"  {name.ljust(name_width)}  {size.rjust(size_width)}  "
            f"{format_date(member.last_modified)}"
        )
    return "\n".join(lines)


def render_analysis(stats: PartitionStats) -> str:
    """Render the clustering analysis block, including suggestions when present."""
    lines = [
        "Clustering Analysis:",
        f"Total files: {stats.total_files}",
        f"Total clusters: {stats.total_clusters}",
        "Size distribution:",
    ]
    for label in BUCKET_LABELS:
        count = stats.size_histogram.get(label, 0)
        if count > 0:
            lines.append(f"  {label}: {count} clusters")
    if stats.noise_files:
        lines.append(f"Unclustered files: {stats.noise_files}")

    if stats.suggestions:
        lines.append("")
        lines.append("Suggestions for better clustering:")
        lines.extend(f"  - {suggestion}" for suggestion in stats.suggestions)
    return "\n".join(lines)


def render_tuning_result(result: TuningResult) -> str:
    """Render a tuning summary: iterations, final parameters, adjustments and analysis."""
    lines: List[str] = [
        f"Auto-clustering completed in {result.iterations_run} iteration(s) "
        f"({result.termination.value}, score {result.best_score:.3f})",
        f"Final parameters: {result.final_parameters.describe()}",
    ]
    if result.parameter_change_log:
        lines.append("")
        lines.append("Parameter adjustments made:")
        lines.extend(f"  - {change}" for change in result.parameter_change_log)

    lines.append("")
    lines.append(render_analysis(result.best_stats))
    return "\n".join(lines)
