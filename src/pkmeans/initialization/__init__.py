"""Initialization strategies for clustering algorithms."""

from .kmeans_plusplus import KMeansPlusPlusInit
from .from_previous import FromPreviousInit

__all__ = [
    'KMeansPlusPlusInit',
    'FromPreviousInit'
]
