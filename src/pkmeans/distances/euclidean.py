"""
Euclidean distance metric for penalized K-means.

Distances are always measured between data rows and rows of a center matrix.
"""

import torch
from torch import Tensor

from ..base.interfaces import DistanceMetric


class EuclideanDistance(DistanceMetric):
    """Squared Euclidean distance metric.

    Computes ||x - c||² for every point x and every center c.
    """

    def compute(self, points: Tensor, centers: Tensor, **kwargs) -> Tensor:
        """Compute distances from points to each center.

        Args:
            points: (n, d) tensor of points
            centers: (k, d) center matrix, or a single (d,) center

        Returns:
            (n, k) tensor of distances, or (n,) for a single center
        """
        single = centers.dim() == 1
        if single:
            centers = centers.unsqueeze(0)

        if points.shape[1] != centers.shape[1]:
            raise ValueError(f"Dimension mismatch: points have {points.shape[1]} "
                             f"features, centers have {centers.shape[1]}")

        # (n, k) without an (n, k, d) intermediate
        distances = torch.empty(points.shape[0], centers.shape[0],
                                dtype=points.dtype, device=points.device)
        for k in range(centers.shape[0]):
            diff = points - centers[k].unsqueeze(0)
            distances[:, k] = torch.sum(diff * diff, dim=1)

        return distances[:, 0] if single else distances
