"""
Job runner: validate, partition, dispatch, and aggregate one reduction job.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Callable

from ..config.reduce_config import ReduceConfig
from ..errors import ArgumentError
from ..pixel.formats import PixelType, resolve_pixel_type
from ..reduce.kinds import ReducerKind, create_reducer
from ..store.base import PlateStore
from ..store.registry import open_plate
from ..tiling.aggregator import AggregationSummary, ProcessingProgress, TileAggregator
from ..tiling.models import JobAssignment, WorkUnit
from ..tiling.partition import WorkPartitioner, level_size

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """Result of one reduction job."""
    assignment: JobAssignment
    level: int
    pixel_type: PixelType
    reducer: ReducerKind
    work_units: List[WorkUnit] = field(default_factory=list)
    total_work_units: int = 0
    summary: AggregationSummary = field(default_factory=AggregationSummary)
    total_time_ms: float = 0.0
    progress: Optional[ProcessingProgress] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "job": self.assignment.to_dict(),
            "level": self.level,
            "pixel_type": self.pixel_type.to_dict(),
            "function": self.reducer.display_name,
            "work_units": [unit.to_dict() for unit in self.work_units],
            "total_work_units": self.total_work_units,
            "summary": self.summary.to_dict(),
            "total_time_ms": self.total_time_ms,
            "progress": self.progress.to_dict() if self.progress else None,
        }


class ReduceRunner:
    """
    Runs one reduction job against a plate.

    Order of operations:
    - Resolve the reduction function
    - Open the plate and check the level
    - Resolve the pixel type (fails before any cell is queried)
    - Compute this job's work units
    - Reduce every cell of those units

    Example:
        >>> runner = ReduceRunner(ReduceConfig(url="memory://plate", level=3, end_trans_id=10))
        >>> result = runner.run()
        >>> print(result.summary.cells_reduced)
    """

    def __init__(
        self,
        config: ReduceConfig,
        store: Optional[PlateStore] = None,
        progress_callback: Optional[Callable[[ProcessingProgress], None]] = None,
    ):
        """
        Initialize runner.

        Args:
            config: Job configuration
            store: Optional already-open plate (opened from config.url otherwise)
            progress_callback: Callback for per-work-unit progress updates
        """
        self.config = config
        self.store = store
        self.progress_callback = progress_callback
        self.partitioner = WorkPartitioner(block_size=config.block_size)

    def run(self) -> JobResult:
        """
        Execute the job.

        Returns:
            JobResult

        Raises:
            ArgumentError: Bad configuration or level
            UnsupportedFormatError: Plate pixel type has no reduction path
            StoreError: Any store failure (fatal)
        """
        start_time = time.time()
        config = self.config
        config.require_complete()

        kind = ReducerKind.from_name(config.function)
        reducer = create_reducer(kind)

        if self.store is None:
            self.store = open_plate(config.url)
        store = self.store

        self._check_level(store)
        pixel_type = resolve_pixel_type(store.pixel_format(), store.channel_type())
        logger.info(f"Plate {config.url}: pixel type {pixel_type}, level {config.level}")

        assignment = JobAssignment(job_id=config.job_id, num_jobs=config.num_jobs)
        total_units = self.partitioner.get_unit_count(level_size(config.level))
        work_units = self.partitioner.units_for_job(config.level, assignment)
        logger.info(f"Level {config.level} splits into {total_units} work units")
        logger.info(f"Job {assignment} has {len(work_units)} work units.")

        aggregator = TileAggregator(
            store=store,
            pixel_type=pixel_type,
            reducer=reducer,
            level=config.level,
            start_trans_id=config.start_trans_id,
            end_trans_id=config.end_trans_id,
            output_transaction_id=config.transaction_id,
            progress_callback=self.progress_callback,
        )
        summary = aggregator.process(work_units)

        total_time = (time.time() - start_time) * 1000
        logger.info(
            f"Job {assignment} finished: {summary.cells_reduced} cells reduced, "
            f"{summary.cells_skipped} skipped, {summary.tiles_read} tiles read "
            f"in {total_time:.1f}ms"
        )

        return JobResult(
            assignment=assignment,
            level=config.level,
            pixel_type=pixel_type,
            reducer=kind,
            work_units=work_units,
            total_work_units=total_units,
            summary=summary,
            total_time_ms=total_time,
            progress=aggregator.progress,
        )

    def _check_level(self, store: PlateStore) -> None:
        """Reject levels outside [0, num_levels)."""
        num_levels = store.num_levels()
        if self.config.level < 0 or self.config.level >= num_levels:
            raise ArgumentError(
                f"Incorrect level selection, {self.config.level}.\n\n"
                f"Platefile {self.config.url} has {num_levels} levels internally."
            )


def run_job(
    config: ReduceConfig,
    store: Optional[PlateStore] = None,
    progress_callback: Optional[Callable[[ProcessingProgress], None]] = None,
) -> JobResult:
    """
    Run one reduction job.

    Args:
        config: Job configuration
        store: Optional already-open plate
        progress_callback: Optional per-work-unit progress callback

    Returns:
        JobResult
    """
    return ReduceRunner(config, store=store, progress_callback=progress_callback).run()
