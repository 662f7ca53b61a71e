"""
Random sampling utilities for penalized K-means.

All randomness in the package (seeding, bootstrap resampling and the
Monte Carlo stability estimate) flows through a RandomSampler. Each sampler
owns a private torch.Generator, so independent estimators never share a
stream and runs are reproducible whenever an integer seed is given.
"""

import numbers
from typing import Optional, Tuple, Union
import torch
from torch import Tensor


_SEED_MODULUS = 2 ** 63


class RandomSampler:
    """Weighted and uniform index sampling on a private generator.

    Parameters
    ----------
    random_state : int, torch.Generator, RandomSampler or None
        Seed for the generator. ``None`` draws a fresh non-deterministic seed,
        so results vary from run to run. A generator, or the generator of
        another sampler, is shared rather than copied.
    seed_offset : int, default=0
        Added to the base seed. Two samplers with the same ``random_state``
        and different offsets give reproducible but distinct streams.
        With a shared generator a non-zero offset reseeds it from its initial
        seed; an offset of 0 leaves its current state alone.
    """

    def __init__(self, random_state: Optional[Union[int, torch.Generator, 'RandomSampler']] = None,
                 seed_offset: int = 0):
        self.seed_offset = 0
        if isinstance(random_state, RandomSampler):
            random_state = random_state.generator

        if isinstance(random_state, torch.Generator):
            # Shared generator: only a non-zero offset restarts its stream.
            self._generator = random_state
            self.base_seed = random_state.initial_seed()
            if seed_offset:
                self.reseed(seed_offset)
            return

        self._generator = torch.Generator()
        if random_state is None:
            self.base_seed = self._generator.seed()
        elif isinstance(random_state, numbers.Integral) and not isinstance(random_state, bool):
            self.base_seed = int(random_state)
        else:
            raise TypeError(f"random_state must be int, Generator, RandomSampler or None, "
                            f"got {type(random_state)}")
        self.reseed(seed_offset)

    @property
    def generator(self) -> torch.Generator:
        """The underlying torch.Generator."""
        return self._generator

    def reseed(self, seed_offset: int = 0) -> 'RandomSampler':
        """Restart the stream at ``base_seed + seed_offset``."""
        if not isinstance(seed_offset, numbers.Integral) or isinstance(seed_offset, bool):
            raise TypeError(f"seed_offset must be int, got {type(seed_offset)}")
        self.seed_offset = int(seed_offset)
        self._generator.manual_seed((self.base_seed + self.seed_offset) % _SEED_MODULUS)
        return self

    def randint(self, high: int, size: Tuple[int, ...]) -> Tensor:
        """Uniform integers in ``[0, high)``."""
        return torch.randint(high, size, generator=self._generator)

    def uniform(self, size: Tuple[int, ...] = (1,)) -> Tensor:
        """Uniform float64 values in ``[0, 1)``."""
        return torch.rand(size, generator=self._generator, dtype=torch.float64)

    def weighted_pick(self, weights: Tensor) -> int:
        """Pick an index with probability proportional to its weight.

        Entries with zero or negative weight are excluded and can never be
        returned. A cumulative sum is built over the positive weights, a draw
        ``u`` is taken uniformly from ``[0, total)`` and the first bucket whose
        cumulative sum is ``>= u`` wins.

        Args:
            weights: (n,) tensor of weights

        Returns:
            Selected index into ``weights``

        Raises:
            ValueError: If no weight is strictly positive
        """
        weights = torch.as_tensor(weights).detach().to('cpu', torch.float64).reshape(-1)
        candidates = torch.nonzero(weights > 0, as_tuple=True)[0]
        if len(candidates) == 0:
            raise ValueError("weighted_pick requires at least one positive weight")

        cumulative = torch.cumsum(weights[candidates], dim=0)
        total = cumulative[-1]
        draw = self.uniform((1,)) * total

        position = torch.searchsorted(cumulative, draw).clamp_(max=len(candidates) - 1)
        return int(candidates[position].item())

    def resample_rows(self, X: Tensor, sample_size: int) -> Tensor:
        """Bootstrap sample: ``sample_size`` rows drawn uniformly with replacement.

        Args:
            X: (n, d) data
            sample_size: Number of rows to draw (may exceed n)

        Returns:
            (sample_size, d) tensor of rows copied from X
        """
        if not isinstance(sample_size, int) or sample_size < 1:
            raise ValueError(f"sample_size must be a positive integer, got {sample_size}")
        n_rows = X.shape[0]
        if n_rows == 0:
            raise ValueError("Cannot resample from an empty matrix")
        indices = self.randint(n_rows, (sample_size,)).to(X.device)
        return X[indices]

    def distinct_pairs(self, n: int, n_pairs: int) -> Tuple[Tensor, Tensor]:
        """Draw ``n_pairs`` index pairs ``(i, j)`` with ``i != j``.

        Pairs whose indices collide are redrawn until they differ.
        """
        if n < 2:
            raise ValueError(f"Need at least 2 observations to draw pairs, got {n}")
        first = self.randint(n, (n_pairs,))
        second = self.randint(n, (n_pairs,))
        collisions = first == second
        while collisions.any():
            n_redraw = int(collisions.sum().item())
            first[collisions] = self.randint(n, (n_redraw,))
            second[collisions] = self.randint(n, (n_redraw,))
            collisions = first == second
        return first, second

    def __repr__(self) -> str:
        return f"RandomSampler(base_seed={self.base_seed}, seed_offset={self.seed_offset})"


def check_random_state(random_state: Optional[Union[int, torch.Generator, RandomSampler]],
                       seed_offset: int = 0) -> RandomSampler:
    """Turn a seed, generator or sampler into a RandomSampler.

    An existing RandomSampler is returned unchanged so that callers can share
    one stream across components.
    """
    if isinstance(random_state, RandomSampler):
        return random_state
    return RandomSampler(random_state, seed_offset=seed_offset)
