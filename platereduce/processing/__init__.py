"""
Reduction job execution.

Ties configuration, plate access, pixel dispatch, partitioning, and
aggregation together for one job process.
"""

from .runner import ReduceRunner, JobResult, run_job

__all__ = [
    "ReduceRunner",
    "JobResult",
    "run_job",
]
