"""
Core data structures for penalized K-means.

This module provides containers for the center matrix, the assignment
vector, per-iteration algorithm state and the final clustering result.
"""

from typing import Dict, Any
import torch
from torch import Tensor
from dataclasses import dataclass

from ..utils.validation import to_numpy


def active_centers(centers: Tensor) -> Tensor:
    """Boolean mask of centers whose row is not exactly the zero vector.

    Args:
        centers: (k, d) center matrix

    Returns:
        (k,) boolean tensor
    """
    return (centers != 0).any(dim=1)


@dataclass
class ClusterState:
    """Center matrix of all clusters at a given iteration."""

    means: Tensor  # (K, d) cluster centers
    n_clusters: int
    dimension: int

    def __post_init__(self):
        """Validate dimensions."""
        assert self.means.shape == (self.n_clusters, self.dimension)

    @property
    def active_mask(self) -> Tensor:
        """(K,) mask of centers that are not collapsed to zero."""
        return active_centers(self.means)


class AssignmentMatrix:
    """Hard cluster assignments with counting helpers."""

    def __init__(self, assignments: Tensor, n_clusters: int):
        """
        Args:
            assignments: (n,) hard assignments
            n_clusters: Number of clusters K
        """
        self.n_clusters = n_clusters
        assert assignments.dim() == 1
        if len(assignments) > 0:
            assert assignments.max() < n_clusters
            assert assignments.min() >= 0
        self._hard_assignments = assignments.long()

    def get_hard(self) -> Tensor:
        """(n,) hard assignments."""
        return self._hard_assignments

    def count_per_cluster(self) -> Tensor:
        """Count points per cluster."""
        return torch.bincount(self._hard_assignments, minlength=self.n_clusters)

    def n_used_clusters(self) -> int:
        """Number of clusters that received at least one point."""
        return int((self.count_per_cluster() > 0).sum().item())


@dataclass
class AlgorithmState:
    """State of the fixed-point loop at a given iteration.

    Used for convergence checking and debugging.
    """
    iteration: int
    cluster_state: ClusterState
    assignments: AssignmentMatrix
    reg: float
    n_empty: int = 0
    converged: bool = False


@dataclass(frozen=True)
class ClusteringResult:
    """Fixed-point output of one penalized K-means run.

    Attributes:
        labels: (n,) assignment vector
        centers: (k, d) non-negative center matrix
        objective: Within-cluster sum of squares plus ``reg`` times the
            total center mass
        n_iter: Number of iterations run
        converged: Whether assignments stabilised before the iteration cap
    """
    labels: Tensor
    centers: Tensor
    objective: float
    n_iter: int = 0
    converged: bool = False

    @property
    def n_clusters(self) -> int:
        return self.centers.shape[0]

    @property
    def active_mask(self) -> Tensor:
        return active_centers(self.centers)

    def n_used_clusters(self) -> int:
        """Number of clusters that received at least one point."""
        return AssignmentMatrix(self.labels, self.n_clusters).n_used_clusters()

    def to_numpy(self) -> Dict[str, Any]:
        """Labels and centers as numpy arrays, scalars as Python numbers."""
        return {
            'labels': to_numpy(self.labels),
            'centers': to_numpy(self.centers),
            'objective': float(self.objective),
            'n_iter': int(self.n_iter),
            'converged': bool(self.converged),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Plain Python containers (lists and floats)."""
        return {
            'labels': self.labels.tolist(),
            'centers': self.centers.tolist(),
            'objective': float(self.objective),
            'n_iter': int(self.n_iter),
            'converged': bool(self.converged),
        }
