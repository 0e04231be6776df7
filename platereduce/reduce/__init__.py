"""
Reduction functions that composite stacked tile versions into one tile.
"""

from .kinds import ReducerKind, Reducer, create_reducer
from .weighted_average import WeightedAverageReducer

__all__ = [
    "ReducerKind",
    "Reducer",
    "create_reducer",
    "WeightedAverageReducer",
]
