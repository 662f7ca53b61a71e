"""
Core interfaces for penalized K-means.

This module defines the abstract base classes for the pluggable pieces of the
alternating optimization: how centers are seeded, how points are allocated,
how centers are re-estimated, when iteration stops and what is scored.

All components exchange a (k, d) center matrix rather than per-cluster
objects, since every cluster is represented by its centroid alone.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, TYPE_CHECKING
from torch import Tensor

if TYPE_CHECKING:
    from ..utils.sampling import RandomSampler


class DistanceMetric(ABC):
    """Abstract base class for point-to-center distances."""

    @abstractmethod
    def compute(self, points: Tensor, centers: Tensor, **kwargs) -> Tensor:
        """Compute distances from points to centers.

        Args:
            points: (n, d) tensor of points
            centers: (k, d) center matrix
            **kwargs: Metric-specific parameters

        Returns:
            (n, k) tensor of distances
        """
        pass


class AssignmentStrategy(ABC):
    """Abstract base class for point-to-cluster assignment strategies."""

    @abstractmethod
    def compute_assignments(self, points: Tensor, centers: Tensor,
                            **kwargs) -> Tensor:
        """Compute cluster assignments for points.

        Args:
            points: (n, d) tensor of data points
            centers: (k, d) center matrix
            **kwargs: Strategy-specific parameters

        Returns:
            (n,) tensor of cluster indices in [0, k)
        """
        pass


class ParameterUpdater(ABC):
    """Abstract base class for center update strategies."""

    @abstractmethod
    def update(self, points: Tensor, assignments: Tensor, n_clusters: int,
               **kwargs) -> Tensor:
        """Recompute every center from the current assignments.

        Args:
            points: (n, d) tensor of all data points
            assignments: (n,) hard assignments
            n_clusters: Number of centers K
            **kwargs: Update-specific parameters

        Returns:
            (K, d) new center matrix
        """
        pass


class InitializationStrategy(ABC):
    """Abstract base class for center seeding strategies."""

    @abstractmethod
    def initialize(self, points: Tensor, n_clusters: int,
                   sampler: Optional['RandomSampler'] = None,
                   **kwargs) -> Tensor:
        """Choose initial centers.

        Args:
            points: (n, d) tensor of data points
            n_clusters: Number of clusters to initialize
            sampler: Source of randomness
            **kwargs: Strategy-specific parameters

        Returns:
            (n_clusters, d) initial center matrix
        """
        pass


class ConvergenceCriterion(ABC):
    """Abstract base class for convergence checking."""

    def __init__(self):
        self.history = []

    @abstractmethod
    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if algorithm has converged.

        Args:
            current_state: Dictionary containing current algorithm state

        Returns:
            True if converged, False otherwise
        """
        pass

    def reset(self):
        """Reset convergence history."""
        self.history = []


class ClusteringObjective(ABC):
    """Abstract base class for clustering objective functions."""

    @abstractmethod
    def compute(self, points: Tensor, centers: Tensor,
                assignments: Tensor, **kwargs) -> Tensor:
        """Compute objective function value.

        Args:
            points: (n, d) tensor of data points
            centers: (k, d) center matrix
            assignments: (n,) hard assignments

        Returns:
            Scalar objective value
        """
        pass

    @property
    @abstractmethod
    def minimize(self) -> bool:
        """Whether to minimize (True) or maximize (False) this objective."""
        pass
