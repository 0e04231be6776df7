"""
Plate Reduction Package

Composites every time-versioned tile stored at each grid cell of a plate
pyramid level into one alpha-weighted tile, as a batch job that can be
split across independent processes.
"""

from .errors import (
    PlateReduceError,
    ArgumentError,
    UnsupportedFormatError,
    StoreError,
    TileNotFoundError,
    WriteProtocolError,
)
from .pixel import PixelFormat, ChannelType, PixelType, resolve_pixel_type
from .reduce import ReducerKind, WeightedAverageReducer, create_reducer
from .tiling import (
    TileRecord,
    WorkUnit,
    JobAssignment,
    WorkPartitioner,
    TileAggregator,
)
from .store import PlateStore, MemoryPlateStore, open_plate
from .config import ReduceConfig
from .processing import ReduceRunner, JobResult, run_job

__version__ = "0.1.0"

__all__ = [
    "PlateReduceError",
    "ArgumentError",
    "UnsupportedFormatError",
    "StoreError",
    "TileNotFoundError",
    "WriteProtocolError",
    "PixelFormat",
    "ChannelType",
    "PixelType",
    "resolve_pixel_type",
    "ReducerKind",
    "WeightedAverageReducer",
    "create_reducer",
    "TileRecord",
    "WorkUnit",
    "JobAssignment",
    "WorkPartitioner",
    "TileAggregator",
    "PlateStore",
    "MemoryPlateStore",
    "open_plate",
    "ReduceConfig",
    "ReduceRunner",
    "JobResult",
    "run_job",
]
