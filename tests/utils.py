# tests/utils.py
"""
Small, reusable helpers used across the pkmeans test suite.

Functions:
- to_numpy_labels(labels): labels from a tensor, array or list as a 1D int numpy array.
- perm_invariant_accuracy(y_pred, y_true): best accuracy over relabelings (small k only).
- rows_in(sample, X): whether every row of ``sample`` occurs in ``X``.
- time_block(label, meta=None): context manager that prints wall-clock time with optional metadata.
- print_timing(label, seconds, **meta): convenience printer for timings (used by time_block).
"""

from __future__ import annotations

import json
import itertools
import time
from contextlib import contextmanager
from typing import Any, Dict, Union

import numpy as np

try:
    import torch
except ImportError:  # pragma: no cover
    torch = None  # type: ignore


def to_numpy_labels(labels: Any) -> np.ndarray:
    """Convert labels to a 1D int64 numpy array."""
    if torch is not None and isinstance(labels, torch.Tensor):
        labels = labels.detach().cpu().numpy()
    labels = np.asarray(labels).astype(np.int64)
    if labels.ndim != 1:
        raise ValueError(f"Expected 1D labels, got shape {labels.shape}")
    return labels


def perm_invariant_accuracy(y_pred: Any, y_true: Any) -> float:
    """
    Best fraction of matching labels over all relabelings of ``y_pred``.

    Brute force over permutations, so keep the number of clusters small.
    Predicted labels that do not map onto a true label count as wrong.

    Returns
    -------
    float in [0, 1]
    """
    y_pred = to_numpy_labels(y_pred)
    y_true = to_numpy_labels(y_true)
    if y_pred.shape != y_true.shape:
        raise ValueError(f"Shape mismatch: {y_pred.shape} vs {y_true.shape}")

    pred_values = np.unique(y_pred)
    true_values = np.unique(y_true)
    n = max(1, y_true.size)

    best = 0.0
    n_slots = max(len(pred_values), len(true_values))
    targets = list(true_values) + [None] * (n_slots - len(true_values))
    for perm in itertools.permutations(targets, len(pred_values)):
        hits = 0
        for value, target in zip(pred_values, perm):
            if target is not None:
                hits += int(np.sum((y_pred == value) & (y_true == target)))
        best = max(best, hits / n)
    return float(best)


def rows_in(sample: Any, X: Any) -> bool:
    """Whether every row of ``sample`` equals some row of ``X``."""
    if torch is not None and isinstance(sample, torch.Tensor):
        sample = sample.detach().cpu().numpy()
    if torch is not None and isinstance(X, torch.Tensor):
        X = X.detach().cpu().numpy()
    X_rows = {tuple(row) for row in np.asarray(X).tolist()}
    return all(tuple(row) in X_rows for row in np.asarray(sample).tolist())


@contextmanager
def time_block(label: str, meta: Dict[str, Any] | None = None):
    """
    Context manager to time a block and print a single-line summary.

    Example
    -------
    >>> with time_block("fit", {"n": 300, "d": 2, "K": 3}):
    ...     model.fit(X)

    Output
    ------
    [timing] fit {"n":300,"d":2,"K":3} 0.123s
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = time.perf_counter() - t0
        print_timing(label, dt, **(meta or {}))


def print_timing(label: str, seconds: float, **meta: Any) -> None:
    """Print timing in a compact, machine-readable single line."""
    meta_str = ""
    if meta:
        meta_str = " " + json.dumps(meta, separators=(",", ":"), default=str)
    print(f"[timing] {label}{meta_str} {seconds:.3f}s")
