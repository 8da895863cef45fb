"""Cluster colors shared by the charts and tables."""

from __future__ import annotations

from collections.abc import Iterable

_CLUSTER_COLORS = [
    "#4363d8",  # blue
    "#e6194b",  # red
    "#3cb44b",  # green
    "#f58231",  # orange
    "#911eb4",  # purple
    "#42d4f4",  # cyan
    "#f032e6",  # magenta
    "#9a6324",  # brown
    "#469990",  # teal
    "#808000",  # olive
]

# Stations without a cluster label
UNASSIGNED_COLOR = "#999999"


def cluster_color(cluster: int | None) -> str:
    """Color for a 1-based cluster label; colors repeat past the palette."""
    if cluster is None:
        return UNASSIGNED_COLOR
    return _CLUSTER_COLORS[(cluster - 1) % len(_CLUSTER_COLORS)]


def build_cluster_palette(clusters: Iterable[int]) -> dict[int, str]:
    """Map each distinct cluster label to its color."""
    return {c: cluster_color(c) for c in sorted(set(clusters))}
