"""
Work partitioning for distributed reduction jobs.

The grid at a pyramid level is cut into fixed-size blocks of cells, and
the blocks are dealt round-robin to the cooperating jobs.
"""

from typing import List, Sequence

from .models import JobAssignment, WorkUnit
from ..errors import ArgumentError

DEFAULT_BLOCK_SIZE = 4


def level_size(level: int) -> int:
    """
    Width (and height) in tiles of the square grid at a level.

    Args:
        level: Pyramid level, 0 being the single root tile

    Returns:
        2 ** level
    """
    if level < 0:
        raise ArgumentError(f"level must be >= 0, got {level}")
    return 2 ** level


class WorkPartitioner:
    """
    Splits a level's tile grid into work units and deals them to jobs.

    Example:
        >>> partitioner = WorkPartitioner(block_size=4)
        >>> units = partitioner.partition(level_size(5), level=5)
        >>> mine = partitioner.assign(units, job_id=1, num_jobs=3)
    """

    def __init__(self, block_size: int = DEFAULT_BLOCK_SIZE):
        """
        Initialize the partitioner.

        Args:
            block_size: Edge length of a work unit, in grid cells
        """
        if block_size < 1:
            raise ArgumentError(f"block_size must be >= 1, got {block_size}")
        self.block_size = block_size

    def partition(self, size: int, level: int = 0) -> List[WorkUnit]:
        """
        Cover a size x size grid with work units.

        Units are emitted row-major (block rows outer, block columns inner);
        the last row and column of blocks are clipped to the grid.

        Args:
            size: Grid width and height in cells
            level: Pyramid level stamped on every unit

        Returns:
            List of WorkUnit objects
        """
        if size < 0:
            raise ArgumentError(f"grid size must be >= 0, got {size}")

        units = []
        for row_min in range(0, size, self.block_size):
            row_max = min(row_min + self.block_size, size)
            for col_min in range(0, size, self.block_size):
                col_max = min(col_min + self.block_size, size)
                units.append(WorkUnit(
                    level=level,
                    col_min=col_min,
                    row_min=row_min,
                    col_max=col_max,
                    row_max=row_max,
                ))
        return units

    def assign(
        self,
        units: Sequence[WorkUnit],
        job_id: int,
        num_jobs: int,
    ) -> List[WorkUnit]:
        """
        Select the units belonging to one job.

        Unit at position i goes to job i mod num_jobs.

        Args:
            units: Full partition, in partition order
            job_id: This job's index
            num_jobs: Number of cooperating jobs

        Returns:
            This job's units, in partition order
        """
        return JobAssignment(job_id=job_id, num_jobs=num_jobs).select(units)

    def units_for_job(self, level: int, assignment: JobAssignment) -> List[WorkUnit]:
        """
        Partition a level and select one job's share.

        Args:
            level: Pyramid level
            assignment: Job slot

        Returns:
            This job's units
        """
        units = self.partition(level_size(level), level=level)
        return assignment.select(units)

    def get_unit_count(self, size: int) -> int:
        """
        Number of units partition() would create for a grid size.

        Args:
            size: Grid width and height in cells

        Returns:
            Number of work units
        """
        blocks = -(-size // self.block_size)
        return blocks * blocks
