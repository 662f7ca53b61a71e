"""
Initialization from a previous solution or custom centers.

Useful for warm starts, or for re-running the fixed-point loop from known
centers.
"""

from typing import Union
from torch import Tensor

from ..base.interfaces import InitializationStrategy
from ..base.data_structures import ClusterState


class FromPreviousInit(InitializationStrategy):
    """Initialize from previous cluster centers.

    Accepts either:
    - A tensor of shape (n_clusters, dimension) with initial centers
    - A ClusterState object from a previous run
    """

    def __init__(self, initial_state: Union[Tensor, ClusterState]):
        """
        Args:
            initial_state: Previous solution to use for initialization
        """
        self.initial_state = initial_state

    def initialize(self, points: Tensor, n_clusters: int,
                   sampler=None, **kwargs) -> Tensor:
        """Initialize from previous state.

        Args:
            points: (n, d) data points (used for validation)
            n_clusters: Expected number of clusters
            sampler: Ignored

        Returns:
            (n_clusters, d) center matrix
        """
        dimension = points.shape[1]

        if isinstance(self.initial_state, ClusterState):
            centers = self.initial_state.means
        elif isinstance(self.initial_state, Tensor):
            centers = self.initial_state
        else:
            raise TypeError(f"Unknown initial_state type: {type(self.initial_state)}")

        centers = centers.to(device=points.device, dtype=points.dtype)

        if centers.shape[0] != n_clusters:
            raise ValueError(f"Initial centers has {centers.shape[0]} clusters, "
                             f"but n_clusters={n_clusters}")
        if centers.shape[1] != dimension:
            raise ValueError(f"Initial centers has dimension {centers.shape[1]}, "
                             f"but data has dimension {dimension}")

        return centers.clone()
