# tests/test_visualization.py
"""
Plotting smoke tests (Agg backend)

Covers:
- cluster_colors maps labels to consistent RGBA colors
- 2D scatter, allocation regions, center heatmap and search-grid heatmaps
  render without errors
"""

from __future__ import annotations

import numpy as np
import pytest

try:
    import torch
except ImportError:  # pragma: no cover
    torch = None  # type: ignore

matplotlib = pytest.importorskip("matplotlib")
import matplotlib.pyplot as plt  # noqa: E402

from pkmeans.visualization import (  # noqa: E402
    cluster_colors,
    plot_clusters_2d,
    plot_cluster_boundaries,
    plot_cluster_centers,
    plot_search_grid,
)
from pkmeans.algorithms.penalized_kmeans import PenalizedKMeans  # noqa: E402
from pkmeans.algorithms.search import SearchGrid  # noqa: E402
from data_gen import make_blobs  # noqa: E402


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


@pytest.fixture(scope="module")
def fitted():
    X, _, _ = make_blobs(n_per=20, seed=0)
    model = PenalizedKMeans(n_clusters=3, random_state=0, device="cpu").fit(X)
    return torch.as_tensor(X), model


def test_cluster_colors_consistent():
    labels = [2, 0, 2, 1]
    colors = cluster_colors(labels)
    assert colors.shape == (4, 4)
    np.testing.assert_array_equal(colors[0], colors[2])
    assert not np.array_equal(colors[0], colors[1])


def test_cluster_colors_custom_scale_and_order():
    labels = torch.tensor([0, 1, 1])
    colors = cluster_colors(labels, order=[1, 0], color_scale=["#FF0000", "#0000FF"])
    np.testing.assert_allclose(colors[1], [1.0, 0.0, 0.0, 1.0])
    np.testing.assert_allclose(colors[0], [0.0, 0.0, 1.0, 1.0])


def test_plot_clusters_2d(fitted):
    X, model = fitted
    ax = plot_clusters_2d(X, model.labels_, centers=model.cluster_centers_, title="blobs")
    assert isinstance(ax, plt.Axes)
    assert ax.get_title() == "blobs"


def test_plot_clusters_2d_rejects_other_dimensions():
    with pytest.raises(ValueError):
        plot_clusters_2d(torch.zeros(4, 3), torch.zeros(4, dtype=torch.long))


def test_plot_cluster_boundaries(fitted):
    X, model = fitted
    ax = plot_cluster_boundaries(X, model, resolution=20)
    assert isinstance(ax, plt.Axes)


def test_plot_cluster_centers_drops_zero_rows():
    centers = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 2.0], [0.0, 3.0, 0.0]])
    ax = plot_cluster_centers(centers, feature_names=["a", "b", "c"])
    assert [t.get_text() for t in ax.get_yticklabels()] == ["1", "2"]


def test_plot_search_grid():
    stability = torch.tensor([[0.2, 0.8], [0.5, 0.9]], dtype=torch.float64)
    grid = SearchGrid(
        k_values=[5, 10], reg_values=[1.0, 2.0],
        stability=stability, stability_trimmed=stability,
        n_clusters=torch.tensor([[4.0, 3.0], [6.0, 4.5]], dtype=torch.float64),
        iterations=1, bootstrap_size=10,
    )
    ax_stability, ax_clusters = plot_search_grid(grid, title="search")
    assert ax_stability.get_title() == "Stability"
    assert ax_clusters.get_title() == "Mean number of clusters"
