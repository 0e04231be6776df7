"""
Job configuration.
"""

from .reduce_config import ReduceConfig

__all__ = ["ReduceConfig"]
