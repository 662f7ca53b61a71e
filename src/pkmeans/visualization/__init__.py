"""Visualization utilities for clustering results."""

from .plot_clusters import (
    cluster_colors,
    plot_clusters_2d,
    plot_cluster_boundaries,
    plot_cluster_centers,
    plot_search_grid
)

__all__ = [
    'cluster_colors',
    'plot_clusters_2d',
    'plot_cluster_boundaries',
    'plot_cluster_centers',
    'plot_search_grid'
]
