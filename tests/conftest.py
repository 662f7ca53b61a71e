"""
Global pytest fixtures for the pkmeans tests.

- Seeds Python, NumPy and the global PyTorch stream once per session. The
  library itself never draws from the global stream; every estimator owns a
  RandomSampler, and tests that need reproducible runs pass ``random_state``.
- Forces single-threaded torch to stabilize timings and reduce flakiness.
- Pins all tests to CPU.
- Uses the non-interactive Agg backend for plotting tests.
"""

from __future__ import annotations

import os
import random
import sys
from typing import Generator
from pathlib import Path

import numpy as np
import pytest

try:
    import matplotlib
    matplotlib.use("Agg")
except ImportError:  # pragma: no cover
    matplotlib = None  # type: ignore

try:
    import torch
except ImportError:  # pragma: no cover
    torch = None  # type: ignore

# Add the project's src directory to the Python path so tests can import the code
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


def _get_seed() -> int:
    """Resolve the test seed from env or default."""
    env = os.getenv("TEST_RANDOM_SEED", "1337")
    try:
        return int(env)
    except ValueError:
        return 1337


@pytest.fixture(scope="session", autouse=True)
def seed_all() -> None:
    """
    Seed Python, NumPy, and PyTorch RNGs once per session.

    Seed value comes from TEST_RANDOM_SEED (default 1337).
    """
    seed = _get_seed()
    random.seed(seed)
    np.random.seed(seed)
    if torch is not None:
        torch.manual_seed(seed)


@pytest.fixture(scope="session", autouse=True)
def set_torch_threads() -> None:
    """Reduce PyTorch to a single thread for consistent timing."""
    if torch is not None:
        torch.set_num_threads(1)


@pytest.fixture(scope="function")
def rng(seed_all: None) -> Generator[np.random.Generator, None, None]:
    """
    Per-test NumPy Generator seeded from the session seed.

    Each test receives a fresh Generator (reproducible within a test).
    """
    yield np.random.default_rng(_get_seed())


@pytest.fixture(scope="function")
def sampler(seed_all: None):
    """Fresh RandomSampler seeded from the session seed."""
    from pkmeans.utils.sampling import RandomSampler
    return RandomSampler(_get_seed())


@pytest.fixture(scope="session")
def torch_device() -> "torch.device | None":
    """Standard device for tests: CPU."""
    if torch is None:
        return None
    return torch.device("cpu")


@pytest.fixture(autouse=True)
def close_figures():
    """Close any matplotlib figures a test left open."""
    yield
    if matplotlib is not None:
        import matplotlib.pyplot as plt
        plt.close("all")
