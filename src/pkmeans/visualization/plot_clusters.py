"""
Cluster visualization utilities.

Provides functions for plotting clustering results in 2D, the sparsity pattern
of a penalized center matrix, and the stability landscape of a hyperparameter
search.
"""

from typing import Optional, Union, List, Sequence, Any, Tuple
import torch
from torch import Tensor
import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap
import numpy as np


def _as_numpy(x) -> np.ndarray:
    if isinstance(x, Tensor):
        return x.detach().cpu().numpy()
    return np.asarray(x)


def cluster_colors(labels: Union[Tensor, Sequence],
                   order: Optional[Sequence] = None,
                   color_scale: Union[str, Sequence[str]] = 'viridis') -> np.ndarray:
    """Map each label to a color.

    Args:
        labels: (n,) cluster labels
        order: Distinct label values in the order they should run along the
            color scale. Defaults to order of first appearance.
        color_scale: Matplotlib colormap name, or a list of colors to
            interpolate between

    Returns:
        (n, 4) RGBA array
    """
    labels_np = _as_numpy(labels).reshape(-1)
    if order is None:
        _, first = np.unique(labels_np, return_index=True)
        order = labels_np[np.sort(first)]
    order = list(order)

    if isinstance(color_scale, str):
        cmap = plt.get_cmap(color_scale)
    else:
        cmap = LinearSegmentedColormap.from_list('custom', list(color_scale))

    n_colors = len(order)
    positions = np.linspace(0, 1, n_colors) if n_colors > 1 else np.zeros(1)
    palette = cmap(positions)

    colors = np.zeros((len(labels_np), 4))
    for i, value in enumerate(order):
        colors[labels_np == value] = palette[i]
    return colors


def plot_clusters_2d(X: Tensor,
                     labels: Tensor,
                     centers: Optional[Tensor] = None,
                     ax: Optional[plt.Axes] = None,
                     colors: Optional[List[Any]] = None,
                     alpha: float = 0.7,
                     center_marker: str = 'X',
                     center_size: int = 200,
                     point_size: int = 50,
                     show_inactive: bool = False,
                     show_legend: bool = True,
                     title: Optional[str] = None) -> plt.Axes:
    """Plot 2D clustering results.

    Args:
        X: (n, 2) data points
        labels: (n,) cluster labels
        centers: Optional (k, 2) cluster centers
        ax: Matplotlib axes (created if None)
        colors: List of colors for clusters
        alpha: Point transparency
        center_marker: Marker for centers
        center_size: Size of center markers
        point_size: Size of data points
        show_inactive: Also draw centers that collapsed to zero
        show_legend: Whether to show legend
        title: Plot title

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    X_np = _as_numpy(X)
    labels_np = _as_numpy(labels)
    if X_np.ndim != 2 or X_np.shape[1] != 2:
        raise ValueError(f"plot_clusters_2d needs (n, 2) data, got shape {X_np.shape}")

    unique_labels = np.unique(labels_np)
    n_clusters = len(unique_labels)

    if colors is None:
        cmap = plt.get_cmap('tab10' if n_clusters <= 10 else 'tab20')
        colors = [cmap(i / max(n_clusters, 1)) for i in range(n_clusters)]

    for i, label in enumerate(unique_labels):
        mask = labels_np == label
        ax.scatter(X_np[mask, 0], X_np[mask, 1],
                   c=[colors[i % len(colors)]],
                   s=point_size,
                   alpha=alpha,
                   edgecolors='black',
                   linewidth=0.5,
                   label=f'Cluster {label}')

    if centers is not None:
        centers_np = _as_numpy(centers)
        if not show_inactive:
            centers_np = centers_np[(centers_np != 0).any(axis=1)]
        ax.scatter(centers_np[:, 0], centers_np[:, 1],
                   c='black',
                   marker=center_marker,
                   s=center_size,
                   edgecolors='white',
                   linewidth=2,
                   label='Centers',
                   zorder=10)

    ax.set_xlabel('Feature 1')
    ax.set_ylabel('Feature 2')

    if title:
        ax.set_title(title)

    if show_legend:
        ax.legend()

    return ax


def plot_cluster_boundaries(X: Tensor,
                            model: Any,
                            ax: Optional[plt.Axes] = None,
                            resolution: int = 100,
                            alpha: float = 0.3,
                            show_data: bool = True,
                            title: Optional[str] = None) -> plt.Axes:
    """Plot the allocation regions of a fitted 2D model.

    Args:
        X: (n, 2) data points
        model: Fitted model with ``predict`` and ``cluster_centers_``
        ax: Matplotlib axes
        resolution: Grid resolution
        alpha: Region transparency
        show_data: Whether to show data points
        title: Plot title

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))

    X_np = _as_numpy(X)

    x_min, x_max = X_np[:, 0].min() - 0.5, X_np[:, 0].max() + 0.5
    y_min, y_max = X_np[:, 1].min() - 0.5, X_np[:, 1].max() + 0.5
    xx, yy = np.meshgrid(np.linspace(x_min, x_max, resolution),
                         np.linspace(y_min, y_max, resolution))

    mesh_points = torch.tensor(np.c_[xx.ravel(), yy.ravel()], dtype=torch.float32)
    Z = _as_numpy(model.predict(mesh_points)).reshape(xx.shape)
    ax.contourf(xx, yy, Z, alpha=alpha, cmap='viridis')

    if show_data:
        labels = model.predict(X)
        plot_clusters_2d(X, labels, centers=model.cluster_centers_, ax=ax,
                         show_legend=False)

    ax.set_xlabel('Feature 1')
    ax.set_ylabel('Feature 2')
    ax.set_title(title or 'Cluster Allocation Regions')
    return ax


def plot_cluster_centers(centers: Tensor,
                         ax: Optional[plt.Axes] = None,
                         feature_names: Optional[Sequence[str]] = None,
                         drop_inactive: bool = True,
                         cmap: str = 'RdBu_r',
                         title: Optional[str] = None) -> plt.Axes:
    """Heatmap of a center matrix; penalized (zero) entries show as neutral.

    Args:
        centers: (k, d) center matrix
        ax: Matplotlib axes
        feature_names: Column labels
        drop_inactive: Leave out centers that are entirely zero
        cmap: Diverging colormap centered on zero
        title: Plot title

    Returns:
        Matplotlib axes
    """
    centers_np = _as_numpy(centers)
    row_ids = np.arange(centers_np.shape[0])
    if drop_inactive:
        keep = (centers_np != 0).any(axis=1)
        centers_np = centers_np[keep]
        row_ids = row_ids[keep]

    if ax is None:
        fig, ax = plt.subplots(figsize=(max(4, 0.5 * centers_np.shape[1] + 2),
                                        max(3, 0.4 * centers_np.shape[0] + 1)))

    limit = float(np.abs(centers_np).max()) if centers_np.size else 1.0
    limit = limit or 1.0
    image = ax.imshow(centers_np, aspect='auto', cmap=cmap, vmin=-limit, vmax=limit)
    ax.figure.colorbar(image, ax=ax)

    ax.set_yticks(range(len(row_ids)))
    ax.set_yticklabels([str(i) for i in row_ids])
    if feature_names is not None:
        ax.set_xticks(range(len(feature_names)))
        ax.set_xticklabels(feature_names, rotation=90)

    ax.set_xlabel('Feature')
    ax.set_ylabel('Cluster')
    ax.set_title(title or 'Cluster Centers')
    return ax


def plot_search_grid(grid: Any,
                     axes: Optional[Tuple[plt.Axes, plt.Axes]] = None,
                     title: Optional[str] = None) -> Tuple[plt.Axes, plt.Axes]:
    """Stability and cluster-count heatmaps of a SearchGrid.

    Args:
        grid: SearchGrid from a hyperparameter search
        axes: Pair of axes (created if None)
        title: Figure title

    Returns:
        The two axes
    """
    if axes is None:
        fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    ax_stability, ax_clusters = axes

    reg_labels = [f'{r:.3g}' for r in grid.reg_values]
    k_labels = [str(k) for k in grid.k_values]

    panels = [
        (ax_stability, _as_numpy(grid.stability), 'Stability', 'viridis'),
        (ax_clusters, _as_numpy(grid.n_clusters), 'Mean number of clusters', 'magma'),
    ]
    for ax, values, label, cmap in panels:
        image = ax.imshow(values, aspect='auto', origin='lower', cmap=cmap)
        ax.figure.colorbar(image, ax=ax, label=label)
        ax.set_xticks(range(len(reg_labels)))
        ax.set_xticklabels(reg_labels, rotation=45)
        ax.set_yticks(range(len(k_labels)))
        ax.set_yticklabels(k_labels)
        ax.set_xlabel('reg')
        ax.set_ylabel('k')
        ax.set_title(label)

    if title:
        ax_stability.figure.suptitle(title)

    return ax_stability, ax_clusters
