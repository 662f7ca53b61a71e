"""Utility functions for penalized K-means."""

from .convergence import (
    ChangeInAssignments
)

from .metrics import (
    stability_score,
    expected_agreement,
    co_clustering_rate,
    contingency_matrix,
    adjusted_rand_score,
    n_used_clusters,
    inertia,
    center_penalty,
    DEFAULT_N_PAIRS
)

from .sampling import (
    RandomSampler,
    check_random_state
)

from .validation import (
    validate_data,
    validate_labels,
    check_n_clusters,
    check_positive_int,
    check_non_negative_int,
    check_tolerance,
    check_reg,
    check_k_grid,
    check_reg_grid,
    to_numpy
)

from .preprocessing import (
    PreprocessingInfo,
    preprocess,
    apply_preprocessing,
    restore_centers,
    kurtosis,
    log2_transform,
    peak_center
)

__all__ = [
    # Convergence criteria
    'ChangeInAssignments',

    # Metrics
    'stability_score',
    'expected_agreement',
    'co_clustering_rate',
    'contingency_matrix',
    'adjusted_rand_score',
    'n_used_clusters',
    'inertia',
    'center_penalty',
    'DEFAULT_N_PAIRS',

    # Sampling
    'RandomSampler',
    'check_random_state',

    # Validation
    'validate_data',
    'validate_labels',
    'check_n_clusters',
    'check_positive_int',
    'check_non_negative_int',
    'check_tolerance',
    'check_reg',
    'check_k_grid',
    'check_reg_grid',
    'to_numpy',

    # Preprocessing
    'PreprocessingInfo',
    'preprocess',
    'apply_preprocessing',
    'restore_centers',
    'kurtosis',
    'log2_transform',
    'peak_center'
]
