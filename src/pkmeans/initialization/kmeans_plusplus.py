"""
K-means++ seeding strategy.

Selects initial cluster centers among the data rows, favouring rows that are
far from the centers chosen so far.
"""

from typing import Optional
import torch
from torch import Tensor

from ..base.interfaces import InitializationStrategy
from ..distances.euclidean import EuclideanDistance
from ..utils.sampling import RandomSampler, check_random_state


class KMeansPlusPlusInit(InitializationStrategy):
    """K-means++ initialization.

    Algorithm:
    1. Choose the first center uniformly at random among the rows
    2. For each remaining center:
       - Keep, for every row, the squared distance to its nearest chosen center
       - Pick the next center with probability proportional to that distance

    Rows already chosen have zero weight and are never picked again. If every
    row coincides with a chosen center (fewer distinct rows than clusters), the
    next center is drawn uniformly instead.
    """

    def __init__(self):
        self.metric = EuclideanDistance()

    def initialize(self, points: Tensor, n_clusters: int,
                   sampler: Optional[RandomSampler] = None,
                   **kwargs) -> Tensor:
        """Initialize cluster centers using K-means++.

        Args:
            points: (n, d) data points
            n_clusters: Number of clusters
            sampler: Source of randomness (a fresh unseeded one if None)

        Returns:
            (n_clusters, d) center matrix
        """
        n_points, dimension = points.shape

        if n_clusters > n_points:
            raise ValueError(f"Cannot create {n_clusters} clusters from {n_points} points")

        sampler = check_random_state(sampler)
        centers = torch.zeros(n_clusters, dimension, dtype=points.dtype, device=points.device)

        first_idx = int(sampler.randint(n_points, (1,)).item())
        centers[0] = points[first_idx]

        distances = self.metric.compute(points, centers[0])

        for c in range(1, n_clusters):
            if (distances > 0).any():
                idx = sampler.weighted_pick(distances)
            else:
                idx = int(sampler.randint(n_points, (1,)).item())
            centers[c] = points[idx]

            # Running minimum over the centers chosen so far
            new_distances = self.metric.compute(points, centers[c])
            distances = torch.minimum(distances, new_distances)

        return centers
