"""
Base class for centroid clustering algorithms with a fixed-point loop.

Provides the common algorithmic skeleton: seed the centers, then alternate
between allocating points and re-estimating centers until the assignments
stop changing or the iteration cap is reached, and finally score the result.
"""

from abc import abstractmethod
from typing import Optional, Dict, Any, List, Union
import torch
from torch import Tensor
import time
import warnings

from .interfaces import (
    AssignmentStrategy, ParameterUpdater, InitializationStrategy,
    ConvergenceCriterion, ClusteringObjective
)
from .data_structures import (
    ClusterState, AssignmentMatrix, AlgorithmState, ClusteringResult
)
from ..utils.sampling import RandomSampler, check_random_state
from ..utils.validation import validate_data, check_n_clusters, check_positive_int


class BaseClusteringAlgorithm:
    """Base class implementing the allocate/update fixed-point loop.

    Subclasses need to specify:
    - Assignment strategy
    - Center update strategy
    - Initialization strategy
    - Convergence criterion
    - Objective function
    """

    def __init__(self,
                 n_clusters: int,
                 max_iter: int = 1000,
                 verbose: int = 0,
                 random_state: Optional[Union[int, torch.Generator, RandomSampler]] = None,
                 device: Optional[torch.device] = None,
                 keep_history: bool = True):
        """
        Args:
            n_clusters: Number of clusters K
            max_iter: Maximum iterations
            verbose: Verbosity level (0=silent, 1=progress, 2=detailed)
            random_state: Seed, generator or shared RandomSampler. None gives
                run-to-run variation in seeding.
            device: Torch device (None for auto-detect)
            keep_history: Store an AlgorithmState for every iteration
        """
        self.n_clusters = check_n_clusters(n_clusters)
        self.max_iter = check_positive_int(max_iter, "max_iter")
        self.verbose = verbose
        self.random_state = random_state
        self.keep_history = keep_history

        if device is None:
            self.device = torch.device('cuda' if torch.cuda.is_available() else 'cpu')
        else:
            self.device = torch.device(device)

        # These will be set by subclasses
        self.assignment_strategy: Optional[AssignmentStrategy] = None
        self.update_strategy: Optional[ParameterUpdater] = None
        self.initialization_strategy: Optional[InitializationStrategy] = None
        self.convergence_criterion: Optional[ConvergenceCriterion] = None
        self.objective: Optional[ClusteringObjective] = None

        # Algorithm state
        self.fitted_ = False
        self.n_iter_ = 0
        self.converged_ = False
        self.history_: List[AlgorithmState] = []

    @abstractmethod
    def _create_components(self) -> None:
        """Create algorithm-specific components.

        Subclasses must implement this to instantiate:
        - self.assignment_strategy
        - self.update_strategy
        - self.initialization_strategy
        - self.convergence_criterion
        - self.objective
        """
        pass

    def _update_kwargs(self, iteration: int) -> Dict[str, Any]:
        """Extra keyword arguments for the update step at ``iteration``."""
        return {}

    def _objective_kwargs(self) -> Dict[str, Any]:
        """Extra keyword arguments for the final objective."""
        return {}

    def fit(self, X, y=None) -> 'BaseClusteringAlgorithm':
        """Fit the clustering model.

        Args:
            X: (n, d) data (tensor, array or list)
            y: Ignored (for sklearn compatibility)

        Returns:
            Self
        """
        return self._fit(X)

    def fit_predict(self, X, y=None) -> Tensor:
        """Fit and return cluster assignments of the training data."""
        self._fit(X)
        return self.labels_

    def predict(self, X) -> Tensor:
        """Allocate new data to the fitted centers.

        Args:
            X: (n, d) data

        Returns:
            (n,) tensor of cluster assignments
        """
        if not self.fitted_:
            raise RuntimeError("Model must be fitted before calling predict")

        X = self._validate_data(X)
        if X.shape[1] != self.cluster_state_.dimension:
            raise ValueError(f"Expected {self.cluster_state_.dimension} features, "
                             f"got {X.shape[1]}")

        return self.assignment_strategy.compute_assignments(X, self.cluster_state_.means)

    def _fit(self, X) -> 'BaseClusteringAlgorithm':
        """Internal fit method implementing the fixed-point loop."""
        X = self._validate_data(X)
        n_points, dimension = X.shape
        check_n_clusters(self.n_clusters, n_points)
        check_positive_int(self.max_iter, "max_iter")

        self._create_components()
        sampler = check_random_state(self.random_state)

        # Seeding
        if self.verbose:
            print(f"Initializing {self.n_clusters} clusters...")

        start_time = time.time()
        centers = self.initialization_strategy.initialize(
            X, self.n_clusters, sampler=sampler
        )

        self.n_iter_ = 0
        self.history_ = []
        self.convergence_criterion.reset()
        converged = False
        assignments = None

        # Iterating
        for iteration in range(self.max_iter):
            iter_start_time = time.time()
            self.n_iter_ = iteration + 1

            assignments = self.assignment_strategy.compute_assignments(X, centers)

            converged = self.convergence_criterion.check({
                'iteration': iteration,
                'assignments': assignments,
            })
            if converged:
                if self.verbose:
                    print(f"Converged at iteration {iteration}")
                break

            update_kwargs = self._update_kwargs(iteration)
            centers = self.update_strategy.update(
                X, assignments, self.n_clusters, **update_kwargs
            )

            empty = getattr(self.update_strategy, 'last_empty_clusters_', None)
            n_empty = 0 if empty is None else len(empty)

            if self.keep_history:
                self.history_.append(AlgorithmState(
                    iteration=iteration,
                    cluster_state=ClusterState(centers, self.n_clusters, dimension),
                    assignments=AssignmentMatrix(assignments, self.n_clusters),
                    reg=float(update_kwargs.get('reg', 0.0)),
                    n_empty=n_empty,
                ))

            iter_time = time.time() - iter_start_time
            if self.verbose >= 2:
                print(f"Iteration {iteration:4d}: {n_empty} empty clusters, "
                      f"{update_kwargs} ({iter_time:.3f}s)")
            elif self.verbose >= 1 and iteration % 100 == 0:
                print(f"Iteration {iteration:4d} ({iter_time:.3f}s)")

        # Scoring
        objective_value = self.objective.compute(
            X, centers, assignments, **self._objective_kwargs()
        )

        self.converged_ = converged
        self.cluster_state_ = ClusterState(centers, self.n_clusters, dimension)
        self.labels_ = assignments
        self.objective_ = float(objective_value)
        self.result_ = ClusteringResult(
            labels=assignments,
            centers=centers,
            objective=self.objective_,
            n_iter=self.n_iter_,
            converged=converged,
        )

        if self.keep_history and self.history_:
            self.history_[-1].converged = converged

        total_time = time.time() - start_time
        if self.verbose:
            if not converged:
                warnings.warn(f"Failed to converge after {self.max_iter} iterations")
            print(f"Total fitting time: {total_time:.3f}s, "
                  f"objective = {self.objective_:.6f}")

        self.fitted_ = True
        return self

    def _validate_data(self, X) -> Tensor:
        """Validate and prepare input data."""
        return validate_data(X, device=self.device)

    @property
    def cluster_centers_(self) -> Tensor:
        """Get cluster centers."""
        if not self.fitted_:
            raise RuntimeError("Model must be fitted first")
        return self.cluster_state_.means

    @property
    def inertia_(self) -> float:
        """Get final objective value."""
        if not self.fitted_:
            raise RuntimeError("Model must be fitted first")
        return self.objective_

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        """Get parameters (sklearn compatibility)."""
        return {
            'n_clusters': self.n_clusters,
            'max_iter': self.max_iter,
            'verbose': self.verbose,
            'random_state': self.random_state,
            'device': self.device
        }

    def set_params(self, **params) -> 'BaseClusteringAlgorithm':
        """Set parameters (sklearn compatibility)."""
        valid = self.get_params()
        for key, value in params.items():
            if key not in valid:
                raise ValueError(f"Invalid parameter {key} for {type(self).__name__}")
            setattr(self, key, value)
        return self
