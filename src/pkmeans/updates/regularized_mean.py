"""
Regularized mean update for penalized K-means.

Each center is the arithmetic mean of its assigned points passed through the
proximal operator of the L1 penalty: every coordinate is moved towards zero
by up to ``reg / 2`` and coordinates within ``reg / 2`` of zero become exactly
zero. A center whose coordinates all vanish is deactivated in trimmed mode.
"""

from typing import Optional
import torch
from torch import Tensor

from ..base.interfaces import ParameterUpdater


def shrink_towards_zero(means: Tensor, reg: float) -> Tensor:
    """Element-wise ``min(m + reg/2, max(m - reg/2, 0))``."""
    half = reg / 2.0
    return torch.minimum(means + half, torch.clamp(means - half, min=0.0))


def regularized_centers(X: Tensor, assignments: Tensor, n_clusters: int,
                        reg: float) -> Tensor:
    """Recompute all centers from the current assignments.

    Args:
        X: (n, d) data
        assignments: (n,) labels in [0, n_clusters)
        n_clusters: Number of centers K
        reg: Regularization strength (non-negative)

    Returns:
        (K, d) center matrix. Labels without members get the zero vector.
    """
    assignments = assignments.to(X.device).long()
    sums = torch.zeros(n_clusters, X.shape[1], dtype=X.dtype, device=X.device)
    sums.index_add_(0, assignments, X)
    counts = torch.bincount(assignments, minlength=n_clusters)

    means = torch.zeros_like(sums)
    members = counts > 0
    means[members] = sums[members] / counts[members].unsqueeze(1).to(X.dtype)

    return shrink_towards_zero(means, reg)


class RegularizedMeanUpdater(ParameterUpdater):
    """Updates every center as the shrunken mean of its assigned points.

    After each call, ``last_empty_clusters_`` holds the indices of labels
    that received no points and were therefore set to zero.
    """

    def __init__(self):
        self.last_empty_clusters_: Optional[Tensor] = None

    def update(self, points: Tensor, assignments: Tensor, n_clusters: int,
               reg: float = 0.0, **kwargs) -> Tensor:
        """Compute the new center matrix.

        Args:
            points: (n, d) all data points
            assignments: (n,) hard assignments
            n_clusters: Number of centers K
            reg: Regularization strength for this iteration

        Returns:
            (K, d) center matrix
        """
        counts = torch.bincount(assignments.long(), minlength=n_clusters)
        self.last_empty_clusters_ = torch.where(counts == 0)[0]
        return regularized_centers(points, assignments, n_clusters, reg)


class RegularizationSchedule:
    """Linear warm-up of the regularization strength.

    The strength ramps from 0 at iteration 0 to the full ``reg`` at
    iteration ``anneal_iter`` and stays there, so centers do not collapse
    to zero before a coarse partition has formed.

    Args:
        reg: Target regularization strength
        anneal_iter: Iteration at which the full strength is reached
            (0 disables the warm-up)
    """

    def __init__(self, reg: float, anneal_iter: int = 20):
        if anneal_iter < 0:
            raise ValueError(f"anneal_iter must be non-negative, got {anneal_iter}")
        self.reg = reg
        self.anneal_iter = anneal_iter

    def value(self, iteration: int) -> float:
        """Regularization strength to use at ``iteration``."""
        if self.anneal_iter == 0:
            return self.reg
        return min(self.reg, self.reg * iteration / self.anneal_iter)

    def __call__(self, iteration: int) -> float:
        return self.value(iteration)
