"""
Input validation and conversion utilities.

Every public entry point validates its configuration here before any
computation starts, so bad input surfaces as a ValueError or TypeError
instead of undefined numerical behaviour deep inside an iteration.
"""

from typing import Optional, Union, Sequence, List
import math
import torch
from torch import Tensor
import numpy as np


ArrayLike = Union[Tensor, np.ndarray, list]


def validate_data(X: ArrayLike,
                  dtype: torch.dtype = torch.float32,
                  device: Optional[torch.device] = None,
                  ensure_finite: bool = True,
                  ensure_min_samples: int = 1,
                  copy: bool = False) -> Tensor:
    """Validate and convert input data to a 2D tensor.

    Args:
        X: Input data (tensor, numpy array, or nested list)
        dtype: Target data type
        device: Target device
        ensure_finite: Whether to check for inf/nan
        ensure_min_samples: Minimum number of rows required
        copy: Whether to force a copy (the caller's object is never modified)

    Returns:
        Validated (n, d) tensor

    Raises:
        TypeError: If X cannot be converted
        ValueError: If validation fails
    """
    if isinstance(X, Tensor):
        X = X.detach().to(dtype=dtype, device=device, copy=copy)
    elif isinstance(X, np.ndarray):
        X = torch.tensor(X, dtype=dtype, device=device)
    elif isinstance(X, list):
        X = torch.tensor(X, dtype=dtype, device=device)
    else:
        raise TypeError(f"Cannot convert {type(X)} to tensor")

    if X.dim() == 1:
        X = X.unsqueeze(1)
    elif X.dim() != 2:
        raise ValueError(f"Expected 2D array, got {X.dim()}D")

    n_samples, n_features = X.shape
    if n_samples < ensure_min_samples:
        raise ValueError(f"Found {n_samples} samples, but need at least "
                         f"{ensure_min_samples}")
    if n_features < 1:
        raise ValueError("Data has no features")

    if ensure_finite:
        if torch.isnan(X).any():
            raise ValueError("Input contains NaN values")
        if torch.isinf(X).any():
            raise ValueError("Input contains infinite values")

    return X


def validate_labels(labels: ArrayLike,
                    n_samples: Optional[int] = None,
                    n_clusters: Optional[int] = None) -> Tensor:
    """Validate an assignment vector.

    Args:
        labels: Cluster labels
        n_samples: Expected number of labels
        n_clusters: Labels must lie in ``[0, n_clusters)``

    Returns:
        Validated int64 label tensor
    """
    if isinstance(labels, Tensor):
        labels = labels.detach().long()
    elif isinstance(labels, np.ndarray):
        labels = torch.from_numpy(labels).long()
    elif isinstance(labels, (list, tuple)):
        labels = torch.tensor(labels, dtype=torch.long)
    else:
        raise TypeError(f"Cannot convert {type(labels)} to label tensor")

    if labels.dim() != 1:
        raise ValueError(f"Labels must be 1D, got {labels.dim()}D")

    if n_samples is not None and len(labels) != n_samples:
        raise ValueError(f"Expected {n_samples} labels, got {len(labels)}")

    if len(labels) > 0:
        if (labels < 0).any():
            raise ValueError("Labels must be non-negative")
        if n_clusters is not None and labels.max().item() >= n_clusters:
            raise ValueError(f"Label {labels.max().item()} out of range for "
                             f"{n_clusters} clusters")

    return labels


def check_positive_int(value: int, name: str) -> int:
    """Require a strictly positive integer."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be int, got {type(value)}")
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return int(value)


def check_non_negative_int(value: int, name: str) -> int:
    """Require an integer that is zero or larger."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise TypeError(f"{name} must be int, got {type(value)}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return int(value)


def check_tolerance(tolerance: float) -> float:
    """Validate a stability tolerance (finite and non-negative)."""
    if isinstance(tolerance, bool) or not isinstance(tolerance, (int, float, np.integer, np.floating)):
        raise TypeError(f"tolerance must be a real number, got {type(tolerance)}")
    tolerance = float(tolerance)
    if not math.isfinite(tolerance) or tolerance < 0:
        raise ValueError(f"tolerance must be finite and non-negative, got {tolerance}")
    return tolerance


def check_n_clusters(n_clusters: int, n_samples: Optional[int] = None) -> int:
    """Validate number of clusters.

    Raises:
        TypeError: If not an integer
        ValueError: If not positive or larger than the number of samples
    """
    n_clusters = check_positive_int(n_clusters, "n_clusters")
    if n_samples is not None and n_clusters > n_samples:
        raise ValueError(f"n_clusters ({n_clusters}) cannot be larger than "
                         f"n_samples ({n_samples})")
    return n_clusters


def check_reg(reg: float) -> float:
    """Validate a regularization strength (finite and non-negative)."""
    if isinstance(reg, bool) or not isinstance(reg, (int, float, np.integer, np.floating)):
        raise TypeError(f"reg must be a real number, got {type(reg)}")
    reg = float(reg)
    if not math.isfinite(reg):
        raise ValueError(f"reg must be finite, got {reg}")
    if reg < 0:
        raise ValueError(f"reg must be non-negative, got {reg}")
    return reg


def check_k_grid(k_grid: Sequence[int]) -> List[int]:
    """Validate the cluster-count axis of a search grid."""
    values = _as_list(k_grid, "k_grid")
    return [check_n_clusters(k) for k in values]


def check_reg_grid(reg_grid: Sequence[float]) -> List[float]:
    """Validate the regularization axis of a search grid."""
    values = _as_list(reg_grid, "reg_grid")
    return [check_reg(r) for r in values]


def _as_list(values, name: str) -> list:
    if isinstance(values, Tensor):
        values = values.tolist()
    elif isinstance(values, np.ndarray):
        values = values.tolist()
    elif isinstance(values, (int, float)):
        values = [values]
    else:
        values = list(values)
    if len(values) == 0:
        raise ValueError(f"{name} must contain at least one value")
    return values


def to_numpy(x: Union[Tensor, np.ndarray, float, int]) -> Union[np.ndarray, float, int]:
    """Convert a tensor to numpy for the caller; scalars pass through."""
    if isinstance(x, Tensor):
        if x.dim() == 0:
            return x.item()
        return x.detach().cpu().numpy()
    return x
