"""
Closed set of reduction functions, selected by name at startup.
"""

from enum import Enum

from .weighted_average import WeightedAverageReducer
from ..errors import ArgumentError
from ..tiling.aggregator import Reducer


class ReducerKind(Enum):
    """Available reduction functions."""
    WEIGHTED_AVERAGE = "weightedavg"

    @classmethod
    def from_name(cls, name: str) -> "ReducerKind":
        """
        Look up a reducer by its command-line name (case-insensitive).

        Raises:
            ArgumentError: If no reducer has that name
        """
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            available = ", ".join(kind.display_name for kind in cls)
            raise ArgumentError(f"Unknown function, {name}. Available: [{available}]") from None

    @property
    def display_name(self) -> str:
        """Name shown in help text."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    ReducerKind.WEIGHTED_AVERAGE: "WeightedAvg",
}


def create_reducer(kind: ReducerKind) -> Reducer:
    """
    Build the reducer for a kind.

    Args:
        kind: Selected reducer

    Returns:
        Callable (buffers, records, pixel_type) -> composite
    """
    if kind is ReducerKind.WEIGHTED_AVERAGE:
        return WeightedAverageReducer()
    raise ArgumentError(f"No reducer registered for {kind}")
