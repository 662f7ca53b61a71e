"""
Clustering evaluation metrics.

The central metric is the stability score: a Monte Carlo estimate of the
pairwise agreement between two labelings of the same observations, corrected
for chance so that random agreement scores 0 and perfect agreement scores 1.
Exact pair-counting scores are provided alongside for diagnostics.
"""

from typing import Optional, Union
import torch
from torch import Tensor

from .sampling import RandomSampler, check_random_state
from .validation import validate_labels


DEFAULT_N_PAIRS = 10000


def co_clustering_rate(labels: Tensor, n_clusters: int) -> float:
    """Probability that two distinct, randomly drawn observations share a label.

    Computed analytically from the cluster sizes c_j of n observations as
    sum_j c_j (c_j - 1) / (n (n - 1)).
    """
    n = len(labels)
    counts = torch.bincount(labels, minlength=n_clusters).to(torch.float64)
    return float((counts * (counts - 1)).sum().item() / (n * (n - 1)))


def expected_agreement(labels1: Tensor, labels2: Tensor, n_clusters: int) -> float:
    """Pairwise agreement expected by chance between two independent labelings.

    A pair agrees when both labelings put it together or both keep it apart.
    """
    same1 = co_clustering_rate(labels1, n_clusters)
    same2 = co_clustering_rate(labels2, n_clusters)
    return same1 * same2 + (1.0 - same1) * (1.0 - same2)


def stability_score(labels1: Union[Tensor, list], labels2: Union[Tensor, list],
                    n_clusters: int, n_pairs: int = DEFAULT_N_PAIRS,
                    random_state: Optional[Union[int, RandomSampler]] = None) -> float:
    """Chance-corrected pairwise agreement between two labelings.

    ``n_pairs`` pairs of distinct observations are drawn at random. The raw
    score is the fraction of pairs on which the labelings agree about
    co-membership; it is then adjusted as (raw - expected) / (1 - expected)
    with the expected agreement computed from the cluster sizes.

    Without a ``random_state`` the estimate varies from call to call.

    Args:
        labels1: (n,) first labeling, values in [0, n_clusters)
        labels2: (n,) second labeling over the same observations
        n_clusters: Size of the label space of both labelings
        n_pairs: Number of sampled pairs
        random_state: Seed or sampler for pair selection

    Returns:
        Score in [-1, 1]; 1 for identical partitions, about 0 for random ones
    """
    if isinstance(n_clusters, bool) or not isinstance(n_clusters, int) or n_clusters < 1:
        raise ValueError(f"n_clusters must be a positive integer, got {n_clusters}")
    if isinstance(n_pairs, bool) or not isinstance(n_pairs, int) or n_pairs < 1:
        raise ValueError(f"n_pairs must be a positive integer, got {n_pairs}")

    labels1 = validate_labels(labels1, n_clusters=n_clusters).cpu()
    labels2 = validate_labels(labels2, n_samples=len(labels1), n_clusters=n_clusters).cpu()
    n = len(labels1)
    if n < 2:
        raise ValueError(f"Need at least 2 observations to compare labelings, got {n}")

    sampler = check_random_state(random_state)
    first, second = sampler.distinct_pairs(n, n_pairs)

    together1 = labels1[first] == labels1[second]
    together2 = labels2[first] == labels2[second]
    raw = (together1 == together2).to(torch.float64).mean().item()

    expected = expected_agreement(labels1, labels2, n_clusters)
    if 1.0 - expected == 0:
        return 1.0

    return (raw - expected) / (1.0 - expected)


def contingency_matrix(labels_true: Tensor, labels_pred: Tensor) -> Tensor:
    """Compute contingency matrix.

    Returns:
        Contingency matrix C where C[i,j] is the number of samples
        with true label i and predicted label j
    """
    n_true = int(labels_true.max().item()) + 1
    n_pred = int(labels_pred.max().item()) + 1

    flat = labels_true.long() * n_pred + labels_pred.long()
    counts = torch.bincount(flat, minlength=n_true * n_pred)
    return counts.reshape(n_true, n_pred)


def adjusted_rand_score(labels_true: Union[Tensor, list],
                        labels_pred: Union[Tensor, list]) -> float:
    """Exact Adjusted Rand Index over all pairs.

    ARI is 1.0 for perfect match, about 0.0 for random labeling.
    """
    labels_true = validate_labels(labels_true)
    labels_pred = validate_labels(labels_pred, n_samples=len(labels_true))

    contingency = contingency_matrix(labels_true, labels_pred).to(torch.float64)
    n = contingency.sum()

    row_sum = contingency.sum(dim=1)
    col_sum = contingency.sum(dim=0)

    sum_comb = torch.sum(contingency * (contingency - 1)) / 2
    sum_comb_rows = torch.sum(row_sum * (row_sum - 1)) / 2
    sum_comb_cols = torch.sum(col_sum * (col_sum - 1)) / 2

    expected_index = sum_comb_rows * sum_comb_cols / (n * (n - 1) / 2)
    max_index = (sum_comb_rows + sum_comb_cols) / 2

    if max_index - expected_index == 0:
        return 1.0

    return ((sum_comb - expected_index) / (max_index - expected_index)).item()


def n_used_clusters(labels: Tensor, n_clusters: int) -> int:
    """Number of distinct clusters that received at least one point."""
    counts = torch.bincount(labels.long(), minlength=n_clusters)
    return int((counts > 0).sum().item())


def inertia(X: Tensor, labels: Tensor, centers: Tensor) -> float:
    """Within-cluster sum of squared distances to the assigned centers."""
    diff = X - centers[labels.long()]
    return torch.sum(diff * diff).item()


def center_penalty(centers: Tensor, reg: float) -> float:
    """Regularization term: ``reg`` times the sum of all center coordinates."""
    return reg * centers.sum().item()
