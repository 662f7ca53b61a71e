"""Center update strategies for clustering algorithms."""

from .regularized_mean import (
    RegularizedMeanUpdater,
    RegularizationSchedule,
    regularized_centers,
    shrink_towards_zero
)

__all__ = [
    'RegularizedMeanUpdater',
    'RegularizationSchedule',
    'regularized_centers',
    'shrink_towards_zero'
]
