"""
Data preprocessing ahead of penalized K-means.

The penalty acts on absolute center coordinates, so the data should be
centered on a meaningful origin and put on a common scale before clustering.
Heavy-tailed data (kurtosis above 100) is log2-transformed first.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
import warnings
import torch
from torch import Tensor

from .validation import validate_data


KURTOSIS_THRESHOLD = 100.0
PEAK_CENTERING_MAX_FEATURES = 100
CENTER_METHODS = ('default', 'mean', 'peak')


@dataclass
class PreprocessingInfo:
    """Record of the transformations applied by :func:`preprocess`.

    Attributes:
        log2: Whether the log2 transform was applied
        log_shift: (d,) per-column shift added before the log, or None when
            the data had no negative values
        center: (d,) subtracted center, or None when not centered
        center_method: 'mean', 'peak' or None
        scale: Global standard deviation the data was divided by
        kurtosis_before: Kurtosis of the raw data
        kurtosis_after: Kurtosis after the log transform (equal to
            ``kurtosis_before`` when no transform was applied)
    """
    log2: bool
    log_shift: Optional[Tensor]
    center: Optional[Tensor]
    center_method: Optional[str]
    scale: float
    kurtosis_before: float
    kurtosis_after: float


def kurtosis(X: Tensor) -> float:
    """Pearson kurtosis (not excess) of all entries of X pooled together."""
    values = X.reshape(-1).to(torch.float64)
    deviations = values - values.mean()
    m2 = torch.mean(deviations ** 2)
    if m2 == 0:
        return float('nan')
    m4 = torch.mean(deviations ** 4)
    return (m4 / m2 ** 2).item()


def log2_transform(X: Tensor) -> Tuple[Tensor, Optional[Tensor]]:
    """log2(x + 1), shifting each column by its minimum if X has negatives.

    Returns:
        Transformed data and the per-column shift (None when unshifted)
    """
    if X.min() >= 0:
        return torch.log2(X + 1), None

    shift = -X.min(dim=0).values
    transformed = torch.log2(X + shift + 1)
    return torch.nan_to_num(transformed, nan=0.0), shift


def peak_center(X: Tensor, n_bins: int = 100) -> Tensor:
    """Per-column location of the highest histogram bin.

    Args:
        X: (n, d) data
        n_bins: Histogram resolution per column

    Returns:
        (d,) tensor of bin midpoints
    """
    peaks = torch.empty(X.shape[1], dtype=X.dtype, device=X.device)
    for j in range(X.shape[1]):
        column = X[:, j].float()
        low, high = column.min().item(), column.max().item()
        if low == high:
            peaks[j] = low
            continue
        counts = torch.histc(column, bins=n_bins, min=low, max=high)
        width = (high - low) / n_bins
        peaks[j] = low + (int(torch.argmax(counts).item()) + 0.5) * width
    return peaks


def resolve_center_method(center: Optional[str], n_features: int) -> Optional[str]:
    """Map a centering option onto 'mean', 'peak' or None.

    'default' gives peak centering below 100 features and mean centering
    from 100 features on.
    """
    if center is None or center is False:
        return None
    if center not in CENTER_METHODS:
        raise ValueError(f"center must be one of {CENTER_METHODS} or None, got {center!r}")
    if center == 'default':
        return 'peak' if n_features < PEAK_CENTERING_MAX_FEATURES else 'mean'
    return center


def preprocess(X,
               center: Optional[str] = 'default',
               log2_off: bool = False,
               kurtosis_threshold: float = KURTOSIS_THRESHOLD,
               n_bins: int = 100,
               verbose: int = 0) -> Tuple[Tensor, PreprocessingInfo]:
    """Log-transform (if heavy-tailed), center and globally scale X.

    Args:
        X: (n, d) data; the caller's object is not modified
        center: 'default', 'mean', 'peak' or None
        log2_off: Never apply the log2 transform
        kurtosis_threshold: Kurtosis above which the log2 transform is applied
        n_bins: Histogram resolution for peak centering
        verbose: Verbosity level

    Returns:
        Preprocessed data and the PreprocessingInfo needed to replay it
    """
    X = validate_data(X, dtype=torch.float32, ensure_min_samples=2, copy=True)
    method = resolve_center_method(center, X.shape[1])

    kurtosis_before = kurtosis(X)
    kurtosis_after = kurtosis_before
    applied_log = False
    log_shift = None
    if not log2_off and kurtosis_before > kurtosis_threshold:
        X, log_shift = log2_transform(X)
        applied_log = True
        kurtosis_after = kurtosis(X)
        warnings.warn(f"Data is heavily tailed (kurtosis {kurtosis_before:.1f}) and was "
                      f"log2-transformed (new kurtosis {kurtosis_after:.1f})")

    if method == 'mean':
        center_values = X.mean(dim=0)
    elif method == 'peak':
        center_values = peak_center(X, n_bins=n_bins)
    else:
        center_values = None

    if center_values is not None:
        X = X - center_values
    if verbose:
        print(f"Centering: {method or 'none'}")

    scale = torch.std(X).item()
    if scale == 0:
        warnings.warn("Data has zero variance; skipping scaling")
        scale = 1.0
    X = X / scale

    info = PreprocessingInfo(
        log2=applied_log,
        log_shift=log_shift,
        center=center_values,
        center_method=method,
        scale=scale,
        kurtosis_before=kurtosis_before,
        kurtosis_after=kurtosis_after,
    )
    return X, info


def apply_preprocessing(X, info: PreprocessingInfo) -> Tensor:
    """Apply a recorded preprocessing to new data with the same columns."""
    X = validate_data(X, dtype=torch.float32, copy=True)
    if info.center is not None and X.shape[1] != info.center.shape[0]:
        raise ValueError(f"Expected {info.center.shape[0]} features, got {X.shape[1]}")

    if info.log2:
        if info.log_shift is None:
            X = torch.log2(X + 1)
        else:
            X = torch.nan_to_num(torch.log2(X + info.log_shift.to(X.device) + 1), nan=0.0)
    if info.center is not None:
        X = X - info.center.to(X.device)
    return X / info.scale


def restore_centers(centers: Union[Tensor, list], info: PreprocessingInfo) -> Tensor:
    """Map cluster centers back to the centered-and-scaled-back space.

    Undoes the scaling and the centering, but not the log transform, so
    centers of log-transformed data stay on the log2 scale. Penalized
    coordinates (exact zeros) land on the data center.
    """
    centers = validate_data(centers, dtype=torch.float32, copy=True)
    centers = centers * info.scale
    if info.center is not None:
        centers = centers + info.center.to(centers.device)
    return centers
