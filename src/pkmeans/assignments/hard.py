"""
Hard assignment strategy for penalized K-means.

Assigns each point to its nearest center. In trimmed mode, centers that have
collapsed to the zero vector are excluded from the candidate set and can no
longer receive points.
"""

from typing import Optional, Dict, Any
import torch
from torch import Tensor

from ..base.interfaces import AssignmentStrategy
from ..base.data_structures import active_centers
from ..distances.euclidean import EuclideanDistance
from ..utils.validation import validate_data


class HardAssignment(AssignmentStrategy):
    """Hard (discrete) assignment to the nearest center.

    Ties resolve to the lowest-indexed candidate. When fewer than two
    candidate centers remain, every point is assigned to label 0.

    Args:
        restrict_to_active: Only allocate to centers that are not exactly zero
    """

    def __init__(self, restrict_to_active: bool = False):
        super().__init__()
        self.restrict_to_active = restrict_to_active
        self.metric = EuclideanDistance()

    def compute_assignments(self, points: Tensor, centers: Tensor,
                            restrict_to_active: Optional[bool] = None,
                            **kwargs) -> Tensor:
        """Assign each point to its nearest candidate center.

        Args:
            points: (n, d) data points
            centers: (k, d) center matrix
            restrict_to_active: Overrides the strategy's own setting

        Returns:
            (n,) tensor of center indices
        """
        if restrict_to_active is None:
            restrict_to_active = self.restrict_to_active

        n_points = points.shape[0]
        if restrict_to_active:
            candidates = torch.nonzero(active_centers(centers), as_tuple=True)[0]
        else:
            candidates = torch.arange(centers.shape[0], device=centers.device)

        if len(candidates) < 2:
            return torch.zeros(n_points, dtype=torch.long, device=points.device)

        distances = self.metric.compute(points, centers[candidates])

        # argmin returns the first minimum, so ties go to the lower index
        nearest = torch.argmin(distances, dim=1)
        return candidates.to(points.device)[nearest]


def allocate_points(X, centers, trimmed: bool = False) -> Dict[str, Any]:
    """Allocate data to a given center matrix.

    Args:
        X: (n, d) data (tensor, array or list)
        centers: (k, d) center matrix
        trimmed: Exclude centers that are exactly zero

    Returns:
        Dictionary with ``'labels'`` and, when trimming, ``'active'``
        (boolean mask of the centers that could receive points)
    """
    X = validate_data(X)
    centers = validate_data(centers, device=X.device)
    if centers.shape[1] != X.shape[1]:
        raise ValueError(f"centers have {centers.shape[1]} features, data has {X.shape[1]}")

    labels = HardAssignment(restrict_to_active=trimmed).compute_assignments(X, centers)
    result = {'labels': labels}
    if trimmed:
        result['active'] = active_centers(centers)
    return result


def allocate_reduced(X, centers, one_based: bool = False) -> Tensor:
    """Allocate data to the informative part of a sparse center matrix.

    Center rows that are entirely zero and feature columns that are zero in
    every center are dropped first; the data is restricted to the kept
    columns and then allocated with trimming. Returned labels index the kept
    center rows, in their original order.

    Args:
        X: (n, d) data
        centers: (k, d) center matrix, typically from a trimmed fit
        one_based: Return labels starting at 1 instead of 0

    Returns:
        (n,) tensor of labels
    """
    X = validate_data(X)
    centers = validate_data(centers, device=X.device)
    if centers.shape[1] != X.shape[1]:
        raise ValueError(f"centers have {centers.shape[1]} features, data has {X.shape[1]}")

    kept_rows = active_centers(centers)
    kept_cols = (centers != 0).any(dim=0)
    if not kept_cols.any():
        labels = torch.zeros(X.shape[0], dtype=torch.long, device=X.device)
    else:
        reduced_centers = centers[kept_rows][:, kept_cols]
        labels = HardAssignment(restrict_to_active=True).compute_assignments(
            X[:, kept_cols], reduced_centers
        )

    if one_based:
        labels = labels + 1
    return labels
