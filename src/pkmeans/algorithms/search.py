"""
Bootstrap hyperparameter search for penalized K-means.

For every combination of cluster count and regularization strength, two
bootstrap samples are clustered independently and the full data set is
allocated to both center matrices. The agreement between the two allocations
(the stability score) measures how reproducible the clustering is at that
setting; the average number of populated clusters is recorded alongside.
"""

from dataclasses import dataclass
from typing import Optional, Union, List, Dict, Any, Sequence, Tuple
import time
import warnings
import torch
from torch import Tensor

from .penalized_kmeans import PenalizedKMeans, DEFAULT_ANNEAL_ITER
from ..assignments.hard import HardAssignment
from ..utils.metrics import stability_score, n_used_clusters, DEFAULT_N_PAIRS
from ..utils.sampling import RandomSampler, check_random_state
from ..utils.validation import (
    validate_data, check_k_grid, check_reg_grid, check_positive_int,
    check_non_negative_int, check_tolerance, to_numpy
)


# 2^0, 2^0.5, ..., 2^5
DEFAULT_REG_GRID = tuple(2.0 ** (i / 2) for i in range(11))
DEFAULT_K = 30
DEFAULT_ITERATIONS = 10
MAX_DEFAULT_BOOTSTRAP_SIZE = 10000


@dataclass
class SearchGrid:
    """Averaged results of a hyperparameter search.

    Rows of every matrix follow ``k_values``, columns follow ``reg_values``.

    Attributes:
        k_values: Cluster counts searched
        reg_values: Regularization strengths searched
        stability: Mean stability of the untrimmed allocations of the full data
        stability_trimmed: Mean stability of the trimmed allocations
        n_clusters: Mean number of populated clusters per bootstrap fit
        iterations: Number of repetitions per cell
        bootstrap_size: Rows per bootstrap sample
        centers: Per-trial center matrices when recorded, else None
    """
    k_values: List[int]
    reg_values: List[float]
    stability: Tensor
    stability_trimmed: Tensor
    n_clusters: Tensor
    iterations: int
    bootstrap_size: int
    centers: Optional[List[Dict[str, Any]]] = None

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.k_values), len(self.reg_values)

    def best(self) -> Tuple[int, float]:
        """(k, reg) of the cell with the highest stability (first in row-major order)."""
        flat = int(torch.argmax(self.stability).item())
        row, col = divmod(flat, len(self.reg_values))
        return self.k_values[row], self.reg_values[col]

    def to_dict(self) -> Dict[str, Any]:
        """Plain Python/NumPy view of the grid."""
        out = {
            'k_values': list(self.k_values),
            'reg_values': list(self.reg_values),
            'stability': to_numpy(self.stability),
            'stability_trimmed': to_numpy(self.stability_trimmed),
            'n_clusters': to_numpy(self.n_clusters),
            'iterations': self.iterations,
            'bootstrap_size': self.bootstrap_size,
        }
        if self.centers is not None:
            out['centers'] = [
                {key: to_numpy(value) for key, value in trial.items()}
                for trial in self.centers
            ]
        return out


def optimize_parameters(X,
                        k_grid: Union[int, Sequence[int]] = DEFAULT_K,
                        reg_grid: Sequence[float] = DEFAULT_REG_GRID,
                        iterations: int = DEFAULT_ITERATIONS,
                        bootstrap_size: Optional[int] = None,
                        n_pairs: int = DEFAULT_N_PAIRS,
                        anneal_iter: int = DEFAULT_ANNEAL_ITER,
                        max_iter: int = 1000,
                        record_centers: bool = False,
                        verbose: int = 0,
                        random_state: Optional[Union[int, torch.Generator, RandomSampler]] = None,
                        device: Optional[torch.device] = None) -> SearchGrid:
    """Evaluate clustering stability over a grid of (k, reg).

    Each of ``iterations`` repetitions visits every cell: two bootstrap
    samples of ``bootstrap_size`` rows are drawn, a trimmed PenalizedKMeans is
    fitted to each, and the original data is allocated against both center
    matrices. All randomness comes from one sampler, so results are
    reproducible for an integer ``random_state`` and vary between runs when
    it is None.

    Args:
        X: (n, d) data
        k_grid: Cluster counts to try
        reg_grid: Regularization strengths to try
        iterations: Repetitions per cell
        bootstrap_size: Rows per bootstrap sample. Defaults to
            ``min(n, 10000)``; larger than n is allowed.
        n_pairs: Pairs sampled per stability estimate
        anneal_iter: Regularization warm-up passed to each fit
        max_iter: Iteration cap of each fit
        record_centers: Keep the two center matrices of every trial
        verbose: Verbosity level
        random_state: Seed, generator or sampler shared by all trials
        device: Torch device for the fits

    Returns:
        SearchGrid with averaged stabilities and cluster counts
    """
    k_values = check_k_grid(k_grid)
    reg_values = check_reg_grid(reg_grid)
    iterations = check_positive_int(iterations, "iterations")
    n_pairs = check_positive_int(n_pairs, "n_pairs")
    anneal_iter = check_non_negative_int(anneal_iter, "anneal_iter")
    max_iter = check_positive_int(max_iter, "max_iter")

    if device is None:
        device = torch.device('cuda' if torch.cuda.is_available() else 'cpu')
    X = validate_data(X, device=device, ensure_min_samples=2)
    n_points = X.shape[0]

    if bootstrap_size is None:
        bootstrap_size = min(n_points, MAX_DEFAULT_BOOTSTRAP_SIZE)
    bootstrap_size = check_positive_int(bootstrap_size, "bootstrap_size")

    for k in k_values:
        if k > bootstrap_size:
            raise ValueError(f"k ({k}) cannot be larger than bootstrap_size ({bootstrap_size})")

    sampler = check_random_state(random_state)
    shape = (len(k_values), len(reg_values))
    stability = torch.zeros(shape, dtype=torch.float64)
    stability_trimmed = torch.zeros(shape, dtype=torch.float64)
    found_clusters = torch.zeros(shape, dtype=torch.float64)
    recorded = [] if record_centers else None

    untrimmed = HardAssignment(restrict_to_active=False)
    trimmed = HardAssignment(restrict_to_active=True)

    start_time = time.time()
    for iteration in range(iterations):
        if verbose:
            print(f"Search iteration {iteration + 1}/{iterations}")

        for row, k in enumerate(k_values):
            for col, reg in enumerate(reg_values):
                sample1 = sampler.resample_rows(X, bootstrap_size)
                sample2 = sampler.resample_rows(X, bootstrap_size)

                fits = []
                for sample in (sample1, sample2):
                    model = PenalizedKMeans(
                        n_clusters=k, reg=reg, trimmed=True,
                        max_iter=max_iter, anneal_iter=anneal_iter,
                        random_state=sampler, device=device, keep_history=False
                    )
                    fits.append(model.fit(sample))
                centers1 = fits[0].cluster_centers_
                centers2 = fits[1].cluster_centers_

                labels1 = untrimmed.compute_assignments(X, centers1)
                labels2 = untrimmed.compute_assignments(X, centers2)
                stability[row, col] += stability_score(
                    labels1, labels2, k, n_pairs=n_pairs, random_state=sampler
                )

                labels1 = trimmed.compute_assignments(X, centers1)
                labels2 = trimmed.compute_assignments(X, centers2)
                stability_trimmed[row, col] += stability_score(
                    labels1, labels2, k, n_pairs=n_pairs, random_state=sampler
                )

                for model in fits:
                    found_clusters[row, col] += n_used_clusters(model.labels_, k)

                if record_centers:
                    recorded.append({
                        'iteration': iteration,
                        'k': k,
                        'reg': reg,
                        'centers1': centers1.cpu(),
                        'centers2': centers2.cpu(),
                    })

                if verbose >= 2:
                    print(f"  k={k:3d} reg={reg:8.4f}: "
                          f"stability={stability[row, col].item() / (iteration + 1):.4f}")

    if verbose:
        print(f"Total search time: {time.time() - start_time:.3f}s")

    return SearchGrid(
        k_values=k_values,
        reg_values=reg_values,
        stability=stability / iterations,
        stability_trimmed=stability_trimmed / iterations,
        n_clusters=found_clusters / (2 * iterations),
        iterations=iterations,
        bootstrap_size=bootstrap_size,
        centers=recorded,
    )


def select_parameters(grid: SearchGrid, tolerance: float = 0.01) -> Dict[str, Any]:
    """Pick (k, reg) from a search grid.

    Every cell whose stability is within ``tolerance`` of the best one is a
    candidate. Among those the smallest ``reg`` wins, then the smallest ``k``.
    A warning is issued when a chosen value lies on the border of a grid axis
    that has more than one value, since a better setting may lie outside it.

    Returns:
        Dictionary with ``'k'``, ``'reg'``, ``'stability'`` and ``'n_clusters'``
    """
    tolerance = check_tolerance(tolerance)

    best_stability = grid.stability.max().item()
    candidates = torch.nonzero(grid.stability >= best_stability - tolerance)
    row, col = min(
        (tuple(index) for index in candidates.tolist()),
        key=lambda rc: (grid.reg_values[rc[1]], grid.k_values[rc[0]])
    )

    k = grid.k_values[row]
    reg = grid.reg_values[col]
    _warn_on_border(reg, grid.reg_values, "reg")
    _warn_on_border(k, grid.k_values, "k")

    return {
        'k': k,
        'reg': reg,
        'stability': grid.stability[row, col].item(),
        'n_clusters': grid.n_clusters[row, col].item(),
    }


def _warn_on_border(value, values: Sequence, name: str) -> None:
    if len(values) < 2:
        return
    if value == min(values) or value == max(values):
        warnings.warn(f"Selected {name}={value} is on the border of the searched "
                      f"range [{min(values)}, {max(values)}]; consider widening it")


class HyperparameterSearch:
    """Estimator wrapper around :func:`optimize_parameters`.

    Args:
        k_grid: Cluster counts to try
        reg_grid: Regularization strengths to try
        iterations: Repetitions per cell
        bootstrap_size: Rows per bootstrap sample (None for ``min(n, 10000)``)
        n_pairs: Pairs per stability estimate
        anneal_iter: Regularization warm-up of each fit
        max_iter: Iteration cap of each fit
        record_centers: Keep per-trial center matrices in ``grid_``
        refit: Fit a final trimmed PenalizedKMeans on the full data with the
            selected parameters
        tolerance: Stability tolerance used by :func:`select_parameters`
        verbose: Verbosity level
        random_state: Seed, generator or sampler. None is non-deterministic.
        device: Torch device

    Attributes:
        grid_: SearchGrid
        best_params_: Output of :func:`select_parameters`
        best_estimator_: Refitted PenalizedKMeans, or None
    """

    def __init__(self,
                 k_grid: Union[int, Sequence[int]] = DEFAULT_K,
                 reg_grid: Sequence[float] = DEFAULT_REG_GRID,
                 iterations: int = DEFAULT_ITERATIONS,
                 bootstrap_size: Optional[int] = None,
                 n_pairs: int = DEFAULT_N_PAIRS,
                 anneal_iter: int = DEFAULT_ANNEAL_ITER,
                 max_iter: int = 1000,
                 record_centers: bool = False,
                 refit: bool = False,
                 tolerance: float = 0.01,
                 verbose: int = 0,
                 random_state: Optional[Union[int, torch.Generator, RandomSampler]] = None,
                 device: Optional[torch.device] = None):
        self.k_grid = check_k_grid(k_grid)
        self.reg_grid = check_reg_grid(reg_grid)
        self.iterations = check_positive_int(iterations, "iterations")
        self.bootstrap_size = (None if bootstrap_size is None
                               else check_positive_int(bootstrap_size, "bootstrap_size"))
        self.n_pairs = check_positive_int(n_pairs, "n_pairs")
        self.anneal_iter = check_non_negative_int(anneal_iter, "anneal_iter")
        self.max_iter = check_positive_int(max_iter, "max_iter")
        self.record_centers = record_centers
        self.refit = refit
        self.tolerance = check_tolerance(tolerance)
        self.verbose = verbose
        self.random_state = random_state
        self.device = device

        self.grid_: Optional[SearchGrid] = None
        self.best_params_: Optional[Dict[str, Any]] = None
        self.best_estimator_: Optional[PenalizedKMeans] = None

    def fit(self, X, y=None) -> 'HyperparameterSearch':
        """Run the search on X and select the parameters."""
        check_tolerance(self.tolerance)
        sampler = check_random_state(self.random_state)

        self.grid_ = optimize_parameters(
            X,
            k_grid=self.k_grid,
            reg_grid=self.reg_grid,
            iterations=self.iterations,
            bootstrap_size=self.bootstrap_size,
            n_pairs=self.n_pairs,
            anneal_iter=self.anneal_iter,
            max_iter=self.max_iter,
            record_centers=self.record_centers,
            verbose=self.verbose,
            random_state=sampler,
            device=self.device,
        )
        self.best_params_ = select_parameters(self.grid_, self.tolerance)

        if self.verbose:
            print(f"Selected k={self.best_params_['k']}, reg={self.best_params_['reg']} "
                  f"(stability {self.best_params_['stability']:.4f})")

        self.best_estimator_ = None
        if self.refit:
            self.best_estimator_ = PenalizedKMeans(
                n_clusters=self.best_params_['k'],
                reg=self.best_params_['reg'],
                trimmed=True,
                max_iter=self.max_iter,
                anneal_iter=self.anneal_iter,
                verbose=max(0, self.verbose - 1),
                random_state=sampler,
                device=self.device,
            ).fit(X)

        return self

    def predict(self, X) -> Tensor:
        """Allocate X with the refitted estimator."""
        if self.best_estimator_ is None:
            raise RuntimeError("predict requires a search fitted with refit=True")
        return self.best_estimator_.predict(X)

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        return {
            'k_grid': self.k_grid,
            'reg_grid': self.reg_grid,
            'iterations': self.iterations,
            'bootstrap_size': self.bootstrap_size,
            'n_pairs': self.n_pairs,
            'anneal_iter': self.anneal_iter,
            'max_iter': self.max_iter,
            'record_centers': self.record_centers,
            'refit': self.refit,
            'tolerance': self.tolerance,
            'verbose': self.verbose,
            'random_state': self.random_state,
            'device': self.device,
        }
