"""Assignment strategies for clustering algorithms."""

from .hard import HardAssignment, allocate_points, allocate_reduced

__all__ = [
    'HardAssignment',
    'allocate_points',
    'allocate_reduced'
]
