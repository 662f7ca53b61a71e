"""
pkmeans: penalized K-means with bootstrap hyperparameter search.

Penalized K-means shrinks every cluster center towards zero, so coordinates
that do not separate a cluster from the rest are set to exactly zero and
superfluous clusters collapse onto the origin. The hyperparameter search picks
the cluster count and penalty that give the most reproducible clustering
across bootstrap samples.

Example usage:
    >>> import torch
    >>> from pkmeans import PenalizedKMeans, HyperparameterSearch
    >>>
    >>> X = torch.randn(1000, 10)
    >>>
    >>> # Fit with a fixed penalty
    >>> model = PenalizedKMeans(n_clusters=30, reg=4.0, trimmed=True,
    ...                         random_state=0).fit(X)
    >>> labels = model.labels_
    >>>
    >>> # Or search for the penalty first
    >>> search = HyperparameterSearch(k_grid=[30], iterations=5, refit=True,
    ...                               random_state=0).fit(X)
    >>> search.best_params_
"""

__version__ = '0.1.0'

# base must be imported before utils (utils.convergence needs base.interfaces)
from .base import (
    ClusterState,
    AssignmentMatrix,
    ClusteringResult
)

# Import main algorithms
from .algorithms.penalized_kmeans import PenalizedKMeans, fit_penalized_kmeans
from .algorithms.search import (
    HyperparameterSearch,
    SearchGrid,
    optimize_parameters,
    select_parameters,
    DEFAULT_REG_GRID,
    DEFAULT_K
)

from .assignments.hard import allocate_points, allocate_reduced
from .utils.metrics import stability_score, adjusted_rand_score
from .utils.sampling import RandomSampler
from .utils.preprocessing import preprocess, apply_preprocessing

# Import visualization
from .visualization import (
    cluster_colors,
    plot_clusters_2d,
    plot_cluster_centers,
    plot_search_grid
)

__all__ = [
    # Algorithms
    'PenalizedKMeans',
    'fit_penalized_kmeans',
    'HyperparameterSearch',
    'SearchGrid',
    'optimize_parameters',
    'select_parameters',
    'DEFAULT_REG_GRID',
    'DEFAULT_K',

    # Allocation
    'allocate_points',
    'allocate_reduced',

    # Metrics and sampling
    'stability_score',
    'adjusted_rand_score',
    'RandomSampler',

    # Preprocessing
    'preprocess',
    'apply_preprocessing',

    # Visualization
    'cluster_colors',
    'plot_clusters_2d',
    'plot_cluster_centers',
    'plot_search_grid',

    # Core data structures
    'ClusterState',
    'AssignmentMatrix',
    'ClusteringResult',

    # Version
    '__version__'
]
