"""Clustering algorithm implementations."""

from .penalized_kmeans import PenalizedKMeans, PenalizedKMeansObjective, fit_penalized_kmeans
from .search import (
    HyperparameterSearch,
    SearchGrid,
    optimize_parameters,
    select_parameters,
    DEFAULT_REG_GRID,
    DEFAULT_K
)

__all__ = [
    'PenalizedKMeans',
    'PenalizedKMeansObjective',
    'fit_penalized_kmeans',
    'HyperparameterSearch',
    'SearchGrid',
    'optimize_parameters',
    'select_parameters',
    'DEFAULT_REG_GRID',
    'DEFAULT_K'
]
