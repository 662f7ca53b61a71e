"""
Penalized K-means clustering algorithm.

K-means with an L1-type penalty on the cluster centers. Each center update
shrinks the cluster mean towards zero, so uninformative coordinates vanish and
whole clusters can collapse onto the origin. In trimmed mode such collapsed
clusters stop receiving points, which lets the effective number of clusters
fall below the requested ``n_clusters``.
"""

from typing import Optional, Union, Dict, Any
import torch
from torch import Tensor

from ..base.clustering_base import BaseClusteringAlgorithm
from ..base.interfaces import ClusteringObjective
from ..assignments.hard import HardAssignment
from ..initialization.kmeans_plusplus import KMeansPlusPlusInit
from ..initialization.from_previous import FromPreviousInit
from ..updates.regularized_mean import RegularizedMeanUpdater, RegularizationSchedule
from ..utils.convergence import ChangeInAssignments
from ..utils.metrics import inertia, center_penalty
from ..utils.sampling import RandomSampler
from ..utils.validation import check_reg, check_non_negative_int


DEFAULT_ANNEAL_ITER = 20


class PenalizedKMeansObjective(ClusteringObjective):
    """Within-cluster sum of squares plus ``reg`` times the total center mass."""

    def compute(self, points: Tensor, centers: Tensor, assignments: Tensor,
                reg: float = 0.0, **kwargs) -> Tensor:
        total = inertia(points, assignments, centers) + center_penalty(centers, reg)
        return torch.tensor(total, dtype=torch.float64)

    @property
    def minimize(self) -> bool:
        return True


class PenalizedKMeans(BaseClusteringAlgorithm):
    """Penalized (sparse) K-means clustering.

    Parameters
    ----------
    n_clusters : int
        Number of centers. In trimmed mode this is an upper bound on the
        number of clusters that end up populated.
    reg : float, default=0.0
        Regularization strength. 0 gives ordinary K-means.
    trimmed : bool, default=False
        Exclude centers that have collapsed to the zero vector from
        allocation, both while iterating and when predicting.
    init : str or array-like, default='k-means++'
        'k-means++' or an array of shape (n_clusters, n_features) used as
        initial centers
    max_iter : int, default=1000
        Iteration cap. Reaching it is not an error.
    anneal_iter : int, default=20
        The regularization ramps linearly from 0 to ``reg`` over this many
        iterations, and convergence is only checked after it.
    verbose : int, default=0
        Verbosity level
    random_state : int, Generator or RandomSampler, optional
        Seed for reproducible seeding. None varies from run to run.
    device : torch.device, optional
        Device for computation (CPU/GPU)

    Attributes
    ----------
    cluster_centers_ : Tensor of shape (n_clusters, n_features)
    labels_ : Tensor of shape (n_samples,)
    objective_ : float
        Sum of squared distances plus ``reg`` times the sum of all centers
    n_iter_ : int
    converged_ : bool
    result_ : ClusteringResult
    """

    def __init__(self,
                 n_clusters: int,
                 reg: float = 0.0,
                 trimmed: bool = False,
                 init: Union[str, Tensor] = 'k-means++',
                 max_iter: int = 1000,
                 anneal_iter: int = DEFAULT_ANNEAL_ITER,
                 verbose: int = 0,
                 random_state: Optional[Union[int, torch.Generator, RandomSampler]] = None,
                 device: Optional[torch.device] = None,
                 keep_history: bool = True):
        super().__init__(
            n_clusters=n_clusters,
            max_iter=max_iter,
            verbose=verbose,
            random_state=random_state,
            device=device,
            keep_history=keep_history
        )
        self.reg = check_reg(reg)
        self.trimmed = bool(trimmed)
        self.init = init
        self.anneal_iter = check_non_negative_int(anneal_iter, "anneal_iter")

        self.labels_ = None

    def _create_components(self) -> None:
        """Create penalized K-means components."""
        check_reg(self.reg)

        self.assignment_strategy = HardAssignment(restrict_to_active=self.trimmed)
        self.update_strategy = RegularizedMeanUpdater()
        self.schedule = RegularizationSchedule(self.reg, self.anneal_iter)

        if isinstance(self.init, str):
            if self.init == 'k-means++':
                self.initialization_strategy = KMeansPlusPlusInit()
            else:
                raise ValueError(f"Unknown init method: {self.init}")
        else:
            initial_centers = torch.as_tensor(self.init, dtype=torch.float32, device=self.device)
            self.initialization_strategy = FromPreviousInit(initial_centers)

        self.convergence_criterion = ChangeInAssignments(tol=0.0, min_iter=self.anneal_iter)
        self.objective = PenalizedKMeansObjective()

    def _update_kwargs(self, iteration: int) -> Dict[str, Any]:
        return {'reg': self.schedule(iteration)}

    def _objective_kwargs(self) -> Dict[str, Any]:
        return {'reg': self.reg}

    def fit(self, X, y=None) -> 'PenalizedKMeans':
        """Fit penalized K-means.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
            Training data
        y : Ignored

        Returns
        -------
        self : PenalizedKMeans
        """
        return super().fit(X, y)

    @property
    def active_mask_(self) -> Tensor:
        """(n_clusters,) mask of fitted centers that are not zero."""
        if not self.fitted_:
            raise RuntimeError("Model must be fitted first")
        return self.cluster_state_.active_mask

    @property
    def n_used_clusters_(self) -> int:
        """Number of clusters that received points in the final allocation."""
        if not self.fitted_:
            raise RuntimeError("Model must be fitted first")
        return self.result_.n_used_clusters()

    def score(self, X, y=None) -> float:
        """Negative penalized objective of X under the fitted centers."""
        X = self._validate_data(X)
        labels = self.predict(X)
        centers = self.cluster_state_.means
        return -(inertia(X, labels, centers) + center_penalty(centers, self.reg))

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        params = super().get_params(deep)
        params.update({
            'reg': self.reg,
            'trimmed': self.trimmed,
            'init': self.init,
            'anneal_iter': self.anneal_iter,
        })
        return params


def fit_penalized_kmeans(X, n_clusters: int, reg: float = 0.0, trimmed: bool = False,
                         **kwargs):
    """Functional form of ``PenalizedKMeans(...).fit(X).result_``."""
    model = PenalizedKMeans(n_clusters=n_clusters, reg=reg, trimmed=trimmed, **kwargs)
    return model.fit(X).result_
