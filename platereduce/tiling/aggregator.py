"""
TileAggregator: query, reduce, and commit every grid cell of a job.

Cells are processed strictly one after another; each cell's
query -> read -> reduce -> write cycle finishes before the next begins.
"""

import logging
from dataclasses import dataclass
from typing import List, Callable, Optional, Any, Dict, Sequence, TYPE_CHECKING

import numpy as np

from .models import ReductionRequest, TileRecord, WorkUnit
from ..errors import StoreError, TileNotFoundError
from ..pixel.formats import PixelType

if TYPE_CHECKING:
    from ..store.base import PlateStore

logger = logging.getLogger(__name__)

# (buffers, records, pixel_type) -> composite
Reducer = Callable[[Sequence[np.ndarray], Sequence[TileRecord], PixelType], np.ndarray]


@dataclass
class ProcessingProgress:
    """Progress information, counted in whole work units."""
    total_units: int
    completed_units: int
    current_unit: Optional[str] = None
    status: str = "pending"  # pending, processing, complete

    @property
    def progress_percent(self) -> float:
        """Get completion percentage."""
        if self.total_units == 0:
            return 100.0
        return (self.completed_units / self.total_units) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_units": self.total_units,
            "completed_units": self.completed_units,
            "current_unit": self.current_unit,
            "status": self.status,
            "progress_percent": self.progress_percent,
        }


@dataclass
class AggregationSummary:
    """Counters for one aggregation run."""
    work_units: int = 0
    cells_visited: int = 0
    cells_reduced: int = 0
    cells_skipped: int = 0
    tiles_read: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "work_units": self.work_units,
            "cells_visited": self.cells_visited,
            "cells_reduced": self.cells_reduced,
            "cells_skipped": self.cells_skipped,
            "tiles_read": self.tiles_read,
        }


class TileAggregator:
    """
    Reduces every stored tile version of each cell into one composite.

    The aggregator is bound to a single PixelType and reducer for the whole
    run. Store failures propagate to the caller; there is no retry and no
    rollback of earlier cells.

    Example:
        >>> aggregator = TileAggregator(store, pixel_type, reducer, level=4,
        ...                             start_trans_id=0, end_trans_id=10,
        ...                             output_transaction_id=2000)
        >>> summary = aggregator.process(work_units)
    """

    def __init__(
        self,
        store: "PlateStore",
        pixel_type: PixelType,
        reducer: Reducer,
        level: int,
        start_trans_id: int,
        end_trans_id: int,
        output_transaction_id: int,
        progress_callback: Optional[Callable[[ProcessingProgress], None]] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            store: Plate to read from and write to
            pixel_type: Pixel representation resolved for this run
            reducer: Reduction function
            level: Pyramid level being reduced
            start_trans_id: First input transaction id
            end_trans_id: Last input transaction id
            output_transaction_id: Transaction id composites are written under
            progress_callback: Optional callback for progress updates
        """
        self.store = store
        self.pixel_type = pixel_type
        self.reducer = reducer
        self.level = level
        self.start_trans_id = start_trans_id
        self.end_trans_id = end_trans_id
        self.output_transaction_id = output_transaction_id
        self.progress_callback = progress_callback
        self._progress = ProcessingProgress(total_units=0, completed_units=0)

    def process(self, work_units: Sequence[WorkUnit]) -> AggregationSummary:
        """
        Reduce every cell of the given work units.

        Args:
            work_units: This job's units, in assignment order

        Returns:
            AggregationSummary with run counters
        """
        summary = AggregationSummary(work_units=len(work_units))
        self._update_progress(len(work_units), 0, "processing")

        for i, unit in enumerate(work_units):
            self._update_progress(len(work_units), i, "processing", str(unit))
            for col, row in unit.cells():
                summary.cells_visited += 1
                tiles_read = self.process_cell(col, row)
                if tiles_read:
                    summary.cells_reduced += 1
                    summary.tiles_read += tiles_read
                else:
                    summary.cells_skipped += 1
            logger.info(
                f"Work unit {i + 1}/{len(work_units)} {unit} done "
                f"({summary.cells_reduced} cells reduced so far)"
            )

        self._update_progress(len(work_units), len(work_units), "complete")
        return summary

    def request_for(self, col: int, row: int) -> ReductionRequest:
        """Build the location query for a cell."""
        return ReductionRequest(
            col=col,
            row=row,
            level=self.level,
            start_trans_id=self.start_trans_id,
            end_trans_id=self.end_trans_id,
        )

    def process_cell(self, col: int, row: int) -> int:
        """
        Query, reduce, and commit one grid cell.

        Args:
            col: Grid column
            row: Grid row

        Returns:
            Number of tile versions reduced; 0 if the cell was skipped
        """
        request = self.request_for(col, row)
        records = self.query(request)
        if not records:
            logger.debug(f"No tiles at ({col}, {row}), skipping")
            return 0

        buffers = self.load(request, records)
        result = self.reducer(buffers, records, self.pixel_type)
        self.commit(result, col, row)

        logger.debug(f"Reduced {len(records)} tile(s) at ({col}, {row})")
        return len(records)

    def query(self, request: ReductionRequest) -> List[TileRecord]:
        """
        Find the tile versions for a request.

        A TileNotFoundError from the store means zero results.
        """
        try:
            records = self.store.search_by_location(
                request.col,
                request.row,
                request.level,
                request.start_trans_id,
                request.end_trans_id,
                True,
            )
        except TileNotFoundError:
            return []
        return list(records or [])

    def load(
        self,
        request: ReductionRequest,
        records: Sequence[TileRecord],
    ) -> List[np.ndarray]:
        """
        Read the pixel data of every record at the request's cell.

        Raises:
            StoreError: If a buffer does not match the run's pixel type or
                the buffers disagree in size
        """
        buffers = []
        for record in records:
            buffer = self.store.read(
                request.col,
                request.row,
                request.level,
                record.transaction_id,
                True,
            )
            try:
                buffers.append(self.pixel_type.validate(buffer))
            except ValueError as e:
                raise StoreError(
                    f"Tile ({request.col}, {request.row}) transaction "
                    f"{record.transaction_id}: {e}"
                ) from e

        shapes = {buffer.shape for buffer in buffers}
        if len(shapes) > 1:
            raise StoreError(
                f"Tile versions at ({request.col}, {request.row}) differ in size: {sorted(shapes)}"
            )
        return buffers

    def commit(self, result: np.ndarray, col: int, row: int) -> None:
        """Write a composite through the store's three-phase protocol."""
        self.store.write_request()
        self.store.write_update(result, col, row, self.level, self.output_transaction_id)
        self.store.write_complete()

    def _update_progress(
        self,
        total: int,
        completed: int,
        status: str,
        current_unit: Optional[str] = None,
    ):
        """Update progress and notify callback."""
        self._progress = ProcessingProgress(
            total_units=total,
            completed_units=completed,
            current_unit=current_unit,
            status=status,
        )

        if self.progress_callback:
            self.progress_callback(self._progress)

    @property
    def progress(self) -> ProcessingProgress:
        """Get current processing progress."""
        return self._progress
