"""
Convergence criteria for penalized K-means.

The fixed-point loop stops once the assignment vector no longer changes,
but only after the regularization warm-up has finished.
"""

from typing import Dict, Any
from torch import Tensor

from ..base.interfaces import ConvergenceCriterion


class ChangeInAssignments(ConvergenceCriterion):
    """Convergence based on the fraction of points that change clusters."""

    def __init__(self, tol: float = 0.0, min_iter: int = 0, patience: int = 1):
        """
        Args:
            tol: Largest fraction of changed assignments still counted as
                stable (0 requires identical assignments)
            min_iter: Convergence is only declared for iterations > min_iter
            patience: Number of stable iterations required
        """
        super().__init__()
        self.tol = tol
        self.min_iter = min_iter
        self.patience = patience
        self._prev_assignments = None
        self._stable_count = 0

    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if assignments have stabilized."""
        assignments = current_state['assignments']

        if isinstance(assignments, Tensor):
            current_assignments = assignments
        else:
            # AssignmentMatrix object
            current_assignments = assignments.get_hard()

        iteration = current_state.get('iteration', len(self.history))

        if self._prev_assignments is None:
            self._prev_assignments = current_assignments.clone()
            return False

        n_changed = (current_assignments != self._prev_assignments).sum().item()
        n_total = max(1, len(current_assignments))
        change_fraction = n_changed / n_total

        self.history.append({
            'iteration': iteration,
            'n_changed': n_changed,
            'change_fraction': change_fraction
        })

        if change_fraction <= self.tol:
            self._stable_count += 1
        else:
            self._stable_count = 0

        converged = iteration > self.min_iter and self._stable_count >= self.patience

        self._prev_assignments = current_assignments.clone()

        return converged

    def reset(self):
        """Forget previous assignments."""
        super().reset()
        self._prev_assignments = None
        self._stable_count = 0
