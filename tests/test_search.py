# tests/test_search.py
"""
Bootstrap hyperparameter search

Covers:
- grid shapes, value ranges and averaging
- reproducibility with a fixed random_state
- recorded per-trial centers
- parameter selection (tolerance, tie-breaking, border warnings)
- HyperparameterSearch refit / predict
- configuration validation
"""

from __future__ import annotations

import warnings

import pytest

try:
    import torch
except ImportError:  # pragma: no cover
    torch = None  # type: ignore

from pkmeans.algorithms.search import (
    DEFAULT_REG_GRID,
    DEFAULT_K,
    HyperparameterSearch,
    SearchGrid,
    optimize_parameters,
    select_parameters,
)
from pkmeans.algorithms.penalized_kmeans import PenalizedKMeans
from data_gen import make_blobs


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


@pytest.fixture(scope="module")
def small_blobs():
    X, y, _ = make_blobs(n_per=40, seed=3)
    return X, y


@pytest.fixture(scope="module")
def small_grid(small_blobs):
    X, _ = small_blobs
    return optimize_parameters(
        X, k_grid=[2, 3], reg_grid=[0.0, 1.0], iterations=2,
        bootstrap_size=60, n_pairs=2000, random_state=0, device="cpu",
    )


def test_defaults():
    assert len(DEFAULT_REG_GRID) == 11
    assert DEFAULT_REG_GRID[0] == 1.0
    assert DEFAULT_REG_GRID[-1] == pytest.approx(32.0)
    assert DEFAULT_REG_GRID[1] == pytest.approx(2 ** 0.5)
    assert DEFAULT_K == 30


def test_grid_shapes_and_ranges(small_grid):
    grid = small_grid
    assert grid.shape == (2, 2)
    assert grid.stability.shape == (2, 2)
    assert grid.stability_trimmed.shape == (2, 2)
    assert grid.n_clusters.shape == (2, 2)
    assert grid.iterations == 2
    assert grid.bootstrap_size == 60
    assert grid.centers is None

    for row, k in enumerate(grid.k_values):
        counts = grid.n_clusters[row]
        assert bool((counts >= 1).all()) and bool((counts <= k).all())


def test_true_k_is_stable(small_grid):
    # k=3, reg=0 on three separated blobs: every bootstrap fit finds the blobs
    assert small_grid.stability[1, 0].item() > 0.75
    assert small_grid.n_clusters[1, 0].item() == pytest.approx(3.0)


def test_reproducible(small_blobs, small_grid):
    X, _ = small_blobs
    again = optimize_parameters(
        X, k_grid=[2, 3], reg_grid=[0.0, 1.0], iterations=2,
        bootstrap_size=60, n_pairs=2000, random_state=0, device="cpu",
    )
    assert torch.equal(again.stability, small_grid.stability)
    assert torch.equal(again.stability_trimmed, small_grid.stability_trimmed)
    assert torch.equal(again.n_clusters, small_grid.n_clusters)


def test_record_centers(small_blobs):
    X, _ = small_blobs
    grid = optimize_parameters(
        X, k_grid=[2, 4], reg_grid=[0.5], iterations=2, bootstrap_size=30,
        n_pairs=200, record_centers=True, random_state=1, device="cpu",
    )
    assert len(grid.centers) == 2 * 2 * 1
    for trial in grid.centers:
        assert trial["centers1"].shape == (trial["k"], 2)
        assert trial["centers2"].shape == (trial["k"], 2)

    out = grid.to_dict()
    assert out["stability"].shape == (2, 1)
    assert len(out["centers"]) == 4


def test_default_bootstrap_size(small_blobs):
    X, _ = small_blobs
    grid = optimize_parameters(X, k_grid=2, reg_grid=[0.0], iterations=1,
                               n_pairs=100, random_state=0, device="cpu")
    assert grid.bootstrap_size == X.shape[0]


def _manual_grid(k_values, reg_values, stability):
    stability = torch.tensor(stability, dtype=torch.float64)
    return SearchGrid(
        k_values=k_values, reg_values=reg_values,
        stability=stability, stability_trimmed=stability.clone(),
        n_clusters=torch.ones_like(stability), iterations=1, bootstrap_size=10,
    )


def test_select_prefers_smallest_reg_within_tolerance():
    grid = _manual_grid([10, 20], [1.0, 2.0, 4.0],
                        [[0.50, 0.90, 0.95],
                         [0.60, 0.96, 0.70]])
    with pytest.warns(UserWarning, match="border"):
        chosen = select_parameters(grid, tolerance=0.01)

    assert chosen["k"] == 20
    assert chosen["reg"] == 2.0
    assert chosen["stability"] == pytest.approx(0.96)
    assert grid.best() == (20, 2.0)


def test_select_ties_break_on_smallest_k():
    grid = _manual_grid([10, 20, 30], [1.0, 2.0, 4.0],
                        [[0.1, 0.5, 0.1],
                         [0.1, 0.9, 0.1],
                         [0.1, 0.9, 0.1]])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        chosen = select_parameters(grid, tolerance=0.0)
    assert (chosen["k"], chosen["reg"]) == (20, 2.0)


def test_select_single_value_axes_do_not_warn():
    grid = _manual_grid([5], [1.0], [[0.8]])
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        chosen = select_parameters(grid)
    assert (chosen["k"], chosen["reg"]) == (5, 1.0)


def test_select_rejects_negative_tolerance():
    with pytest.raises(ValueError):
        select_parameters(_manual_grid([5], [1.0], [[0.8]]), tolerance=-0.1)


def test_search_estimator_refit(small_blobs):
    X, _ = small_blobs
    search = HyperparameterSearch(
        k_grid=[3], reg_grid=[0.0, 0.5], iterations=1, bootstrap_size=60,
        n_pairs=500, refit=True, random_state=0, device="cpu",
    )
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        search.fit(X)

    assert isinstance(search.grid_, SearchGrid)
    assert search.best_params_["k"] == 3
    assert search.best_params_["reg"] in (0.0, 0.5)
    assert isinstance(search.best_estimator_, PenalizedKMeans)
    assert search.best_estimator_.trimmed
    assert search.predict(X).shape == (X.shape[0],)
    assert search.get_params()["refit"] is True


def test_search_without_refit_cannot_predict(small_blobs):
    X, _ = small_blobs
    search = HyperparameterSearch(
        k_grid=[2], reg_grid=[0.0], iterations=1, bootstrap_size=30,
        n_pairs=100, random_state=0, device="cpu",
    ).fit(X)
    assert search.best_estimator_ is None
    with pytest.raises(RuntimeError):
        search.predict(X)


@pytest.mark.parametrize("kwargs, error", [
    ({"k_grid": []}, ValueError),
    ({"k_grid": [0]}, ValueError),
    ({"reg_grid": []}, ValueError),
    ({"reg_grid": [-1.0]}, ValueError),
    ({"iterations": 0}, ValueError),
    ({"bootstrap_size": 0}, ValueError),
    ({"k_grid": [50], "bootstrap_size": 20}, ValueError),
    ({"n_pairs": 0}, ValueError),
    ({"anneal_iter": -1}, ValueError),
    ({"max_iter": 0}, ValueError),
])
def test_invalid_configuration(small_blobs, kwargs, error):
    X, _ = small_blobs
    params = {"k_grid": [2], "reg_grid": [0.0], "iterations": 1,
              "bootstrap_size": 30, "random_state": 0, "device": "cpu"}
    params.update(kwargs)
    with pytest.raises(error):
        optimize_parameters(X, **params)


@pytest.mark.parametrize("kwargs, error", [
    ({"tolerance": -0.5}, ValueError),
    ({"tolerance": float("nan")}, ValueError),
    ({"n_pairs": 0}, ValueError),
    ({"anneal_iter": -1}, ValueError),
    ({"anneal_iter": 2.5}, TypeError),
    ({"max_iter": 0}, ValueError),
])
def test_search_rejects_configuration_on_construction(kwargs, error):
    with pytest.raises(error):
        HyperparameterSearch(k_grid=[2], reg_grid=[0.0], iterations=1, **kwargs)


def test_bad_tolerance_fails_before_any_fit(small_blobs, capsys):
    X, _ = small_blobs
    search = HyperparameterSearch(
        k_grid=[2], reg_grid=[0.0], iterations=2, bootstrap_size=30,
        random_state=0, device="cpu", verbose=1,
    )
    search.tolerance = -0.5
    with pytest.raises(ValueError):
        search.fit(X)
    assert "Search iteration" not in capsys.readouterr().out
    assert search.grid_ is None
