# tests/test_seeding.py
"""
K-means++ seeding

Covers:
- seeds are distinct rows of the data
- duplicate-heavy data still seeds (uniform fallback)
- reproducibility under a fixed sampler
- custom initial centers
"""

from __future__ import annotations

import numpy as np
import pytest

try:
    import torch
except ImportError:  # pragma: no cover
    torch = None  # type: ignore

from pkmeans.initialization.kmeans_plusplus import KMeansPlusPlusInit
from pkmeans.initialization.from_previous import FromPreviousInit
from pkmeans.base.data_structures import ClusterState
from pkmeans.utils.sampling import RandomSampler
from utils import rows_in


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


def test_seeds_are_distinct_data_rows(rng):
    X = torch.tensor(rng.normal(size=(50, 3)), dtype=torch.float32)
    centers = KMeansPlusPlusInit().initialize(X, 10, sampler=RandomSampler(0))

    assert centers.shape == (10, 3)
    assert rows_in(centers, X)
    assert len({tuple(row) for row in centers.tolist()}) == 10


def test_duplicate_rows_fall_back_to_uniform():
    X = torch.tensor([[1.0, 1.0]] * 5 + [[5.0, 5.0]] * 5)
    centers = KMeansPlusPlusInit().initialize(X, 4, sampler=RandomSampler(0))

    assert centers.shape == (4, 2)
    assert rows_in(centers, X)
    # Both distinct rows are found before the fallback kicks in
    assert {tuple(row) for row in centers.tolist()} == {(1.0, 1.0), (5.0, 5.0)}


def test_seeding_is_reproducible(rng):
    X = torch.tensor(rng.normal(size=(40, 2)), dtype=torch.float32)
    a = KMeansPlusPlusInit().initialize(X, 5, sampler=RandomSampler(123))
    b = KMeansPlusPlusInit().initialize(X, 5, sampler=RandomSampler(123))
    assert torch.equal(a, b)


def test_too_many_clusters():
    with pytest.raises(ValueError):
        KMeansPlusPlusInit().initialize(torch.ones(3, 2), 4, sampler=RandomSampler(0))


def test_from_previous_clones_centers():
    X = torch.zeros(5, 2)
    init = torch.tensor([[1.0, 2.0], [3.0, 4.0]])
    centers = FromPreviousInit(init).initialize(X, 2)

    assert torch.equal(centers, init)
    centers[0, 0] = 100.0
    assert init[0, 0].item() == 1.0


def test_from_previous_accepts_cluster_state():
    state = ClusterState(means=torch.ones(3, 2), n_clusters=3, dimension=2)
    centers = FromPreviousInit(state).initialize(torch.zeros(4, 2), 3)
    assert torch.equal(centers, torch.ones(3, 2))


@pytest.mark.parametrize("k, shape", [(3, (2, 2)), (2, (2, 3))])
def test_from_previous_shape_mismatch(k, shape):
    with pytest.raises(ValueError):
        FromPreviousInit(torch.ones(*shape)).initialize(torch.zeros(4, 2), k)


def test_from_previous_type_error():
    with pytest.raises(TypeError):
        FromPreviousInit(np.ones((2, 2))).initialize(torch.zeros(4, 2), 2)
