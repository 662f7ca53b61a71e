"""Base classes and interfaces for penalized K-means."""

from .interfaces import (
    AssignmentStrategy,
    ParameterUpdater,
    DistanceMetric,
    InitializationStrategy,
    ConvergenceCriterion,
    ClusteringObjective
)

from .data_structures import (
    ClusterState,
    AssignmentMatrix,
    AlgorithmState,
    ClusteringResult,
    active_centers
)

from .clustering_base import BaseClusteringAlgorithm

__all__ = [
    # Interfaces
    'AssignmentStrategy',
    'ParameterUpdater',
    'DistanceMetric',
    'InitializationStrategy',
    'ConvergenceCriterion',
    'ClusteringObjective',

    # Data structures
    'ClusterState',
    'AssignmentMatrix',
    'AlgorithmState',
    'ClusteringResult',
    'active_centers',

    # Base algorithm
    'BaseClusteringAlgorithm'
]
