"""
Grid partitioning and per-cell tile aggregation.

Splits a pyramid level into work units, deals them to cooperating jobs,
and reduces every cell of a job's units.
"""

from .models import TileRecord, WorkUnit, JobAssignment, ReductionRequest
from .partition import WorkPartitioner, level_size, DEFAULT_BLOCK_SIZE
from .aggregator import TileAggregator, ProcessingProgress, AggregationSummary

__all__ = [
    # Models
    "TileRecord",
    "WorkUnit",
    "JobAssignment",
    "ReductionRequest",
    # Partitioning
    "WorkPartitioner",
    "level_size",
    "DEFAULT_BLOCK_SIZE",
    # Aggregation
    "TileAggregator",
    "ProcessingProgress",
    "AggregationSummary",
]
