"""
Data structures for plate grid partitioning and tile lookup.
"""

from dataclasses import dataclass
from typing import List, Tuple, Dict, Any, Iterator, Sequence

from ..errors import ArgumentError


@dataclass(frozen=True)
class TileRecord:
    """
    Metadata for one stored tile version.

    Attributes:
        col: Grid column
        row: Grid row
        level: Pyramid level
        transaction_id: Version the pixel data was written under
    """
    col: int
    row: int
    level: int
    transaction_id: int


@dataclass(frozen=True)
class WorkUnit:
    """
    Rectangle of grid cells at one pyramid level.

    Column and row ranges are half-open: [col_min, col_max) x [row_min, row_max).
    """
    level: int
    col_min: int
    row_min: int
    col_max: int
    row_max: int

    def __post_init__(self):
        """Validate bounds."""
        if self.col_max < self.col_min or self.row_max < self.row_min:
            raise ValueError(f"Invalid work unit bounds: {self.bounds}")

    @property
    def bounds(self) -> Tuple[int, int, int, int]:
        """(col_min, row_min, col_max, row_max)."""
        return (self.col_min, self.row_min, self.col_max, self.row_max)

    @property
    def width(self) -> int:
        """Number of columns."""
        return self.col_max - self.col_min

    @property
    def height(self) -> int:
        """Number of rows."""
        return self.row_max - self.row_min

    @property
    def cell_count(self) -> int:
        """Number of grid cells covered."""
        return self.width * self.height

    def cells(self) -> Iterator[Tuple[int, int]]:
        """
        Iterate (col, row) cells, column-major.

        Columns are the outer loop and rows the inner loop, so the order
        is stable for progress reporting.
        """
        for col in range(self.col_min, self.col_max):
            for row in range(self.row_min, self.row_max):
                yield col, row

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "bounds": {
                "col_min": self.col_min,
                "row_min": self.row_min,
                "col_max": self.col_max,
                "row_max": self.row_max,
            },
            "width": self.width,
            "height": self.height,
        }

    def __str__(self) -> str:
        return f"L{self.level}[{self.col_min}:{self.col_max}, {self.row_min}:{self.row_max}]"


@dataclass(frozen=True)
class JobAssignment:
    """
    One job's slot among num_jobs cooperating processes.

    Unit i of the partition belongs to job (i mod num_jobs), so the
    assignments of all jobs are disjoint and together cover the partition
    without any coordination between processes.
    """
    job_id: int = 0
    num_jobs: int = 1

    def __post_init__(self):
        """Validate job slot."""
        if self.num_jobs < 1:
            raise ArgumentError(f"num_jobs must be >= 1, got {self.num_jobs}")
        if not (0 <= self.job_id < self.num_jobs):
            raise ArgumentError(
                f"job_id must be in [0, {self.num_jobs}), got {self.job_id}"
            )

    def owns(self, index: int) -> bool:
        """Check whether the unit at position index belongs to this job."""
        return index % self.num_jobs == self.job_id

    def select(self, units: Sequence[WorkUnit]) -> List[WorkUnit]:
        """Pick this job's units, preserving partition order."""
        return [unit for i, unit in enumerate(units) if self.owns(i)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"job_id": self.job_id, "num_jobs": self.num_jobs}

    def __str__(self) -> str:
        return f"{self.job_id}/{self.num_jobs}"


@dataclass(frozen=True)
class ReductionRequest:
    """Location query issued to the store for one grid cell."""
    col: int
    row: int
    level: int
    start_trans_id: int
    end_trans_id: int
