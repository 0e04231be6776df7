"""
Plate store contract and backends.
"""

from .base import PlateStore
from .memory import MemoryPlateStore, StoreCall
from .registry import open_plate, register_backend, available_schemes

__all__ = [
    "PlateStore",
    "MemoryPlateStore",
    "StoreCall",
    "open_plate",
    "register_backend",
    "available_schemes",
]
