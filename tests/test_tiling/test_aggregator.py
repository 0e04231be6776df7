"""Tests for TileAggregator."""

import numpy as np
import pytest

from platereduce.errors import StoreError
from platereduce.pixel.formats import resolve_pixel_type
from platereduce.reduce.weighted_average import WeightedAverageReducer
from platereduce.store.memory import MemoryPlateStore
from platereduce.tiling.aggregator import (
    AggregationSummary,
    ProcessingProgress,
    TileAggregator,
)
from platereduce.tiling.models import TileRecord, WorkUnit

from tests.fixtures.plate_fixtures import create_graya_plate, make_gray_tile


def make_aggregator(store, level=2, start=0, end=100, output=2000, **kwargs):
    """Aggregator over an 8-bit gray + alpha plate."""
    return TileAggregator(
        store=store,
        pixel_type=resolve_pixel_type("graya", "uint8"),
        reducer=WeightedAverageReducer(),
        level=level,
        start_trans_id=start,
        end_trans_id=end,
        output_transaction_id=output,
        **kwargs,
    )


def whole_level(level=2):
    """Single work unit covering a level."""
    size = 2 ** level
    return [WorkUnit(level=level, col_min=0, row_min=0, col_max=size, row_max=size)]


class TestProcessingProgress:
    """Tests for ProcessingProgress dataclass."""

    def test_progress_percent(self):
        """Test progress percentage calculation."""
        assert ProcessingProgress(total_units=4, completed_units=1).progress_percent == 25.0
        assert ProcessingProgress(total_units=4, completed_units=4).progress_percent == 100.0

    def test_progress_percent_zero_total(self):
        """Test progress percentage with zero units."""
        assert ProcessingProgress(total_units=0, completed_units=0).progress_percent == 100.0

    def test_progress_to_dict(self):
        """Test serialization."""
        d = ProcessingProgress(total_units=2, completed_units=1, status="processing").to_dict()
        assert d["total_units"] == 2
        assert d["progress_percent"] == 50.0
        assert d["status"] == "processing"


class TestProcessCell:
    """Tests for one query -> read -> reduce -> write cycle."""

    def test_reduces_and_commits(self):
        """Test a cell with two versions is composited and written."""
        store = create_graya_plate()
        aggregator = make_aggregator(store)

        assert aggregator.process_cell(1, 2) == 2

        written = store.get(col=1, row=2, level=2, transaction_id=2000)
        assert written is not None
        assert np.all(written[:, :, 0] == 133)
        assert np.all(written[:, :, 1] == 150)

    def test_write_protocol_order(self):
        """Test request, update, complete are called in order for the cell."""
        store = create_graya_plate()
        make_aggregator(store).process_cell(1, 2)

        methods = [call.method for call in store.calls]
        assert methods == [
            "search_by_location",
            "read",
            "read",
            "write_request",
            "write_update",
            "write_complete",
        ]
        assert store.calls_named("write_update")[0].args == (1, 2, 2, 2000)
        assert not store.write_open

    def test_exact_match_query(self):
        """Test the location query asks for the exact cell and range."""
        store = create_graya_plate()
        make_aggregator(store, start=1, end=7).process_cell(1, 2)

        search = store.calls_named("search_by_location")[0]
        assert search.args == (1, 2, 2, 1, 7, True)

    def test_reads_each_record_transaction(self):
        """Test every returned version is read at its own transaction id."""
        store = create_graya_plate()
        make_aggregator(store).process_cell(1, 2)

        reads = store.calls_named("read")
        assert [call.args[3] for call in reads] == [1, 2]
        assert all(call.args[:3] == (1, 2, 2) for call in reads)

    def test_empty_cell_skipped_without_writes(self):
        """Test a cell with no versions issues no write calls."""
        store = create_graya_plate()
        aggregator = make_aggregator(store)

        assert aggregator.process_cell(3, 3) == 0
        assert store.calls_named("write_request") == []
        assert store.calls_named("write_update") == []
        assert store.calls_named("write_complete") == []

    def test_empty_list_result_skipped(self):
        """Test a store answering with an empty list is also a skip."""

        class EmptyStore(MemoryPlateStore):
            def search_by_location(self, *args, **kwargs):
                return []

        store = EmptyStore(num_levels=3, pixel_format="graya", channel_type="uint8")
        assert make_aggregator(store).process_cell(0, 0) == 0
        assert store.calls == []

    def test_transaction_range_filters_versions(self):
        """Test versions outside the range are not reduced."""
        store = create_graya_plate()
        make_aggregator(store, start=2, end=2).process_cell(1, 2)

        written = store.get(col=1, row=2, level=2, transaction_id=2000)
        assert np.all(written[:, :, 0] == 0)
        assert np.all(written[:, :, 1] == 50)

    def test_reducer_receives_records(self):
        """Test the reducer gets buffers and records in store order."""
        store = create_graya_plate()
        seen = {}

        def recording_reducer(buffers, records, pixel_type):
            seen["records"] = list(records)
            seen["count"] = len(buffers)
            return buffers[0]

        aggregator = make_aggregator(store)
        aggregator.reducer = recording_reducer
        aggregator.process_cell(1, 2)

        assert seen["count"] == 2
        assert seen["records"] == [
            TileRecord(col=1, row=2, level=2, transaction_id=1),
            TileRecord(col=1, row=2, level=2, transaction_id=2),
        ]

    def test_mismatched_sizes_raise(self):
        """Test versions of different sizes are a store error."""
        store = MemoryPlateStore(num_levels=3, pixel_format="graya", channel_type="uint8")
        store.put(make_gray_tile(1, 1, size=(4, 4)), col=0, row=0, level=2, transaction_id=1)
        store.put(make_gray_tile(1, 1, size=(8, 8)), col=0, row=0, level=2, transaction_id=2)

        with pytest.raises(StoreError, match="differ in size"):
            make_aggregator(store).process_cell(0, 0)
        assert store.calls_named("write_request") == []

    def test_wrong_pixel_layout_raises(self):
        """Test a buffer that does not match the run's pixel type is fatal."""
        store = MemoryPlateStore(num_levels=3, pixel_format="graya", channel_type="uint8")
        store.put(np.zeros((4, 4, 4), dtype=np.uint8), col=0, row=0, level=2, transaction_id=1)

        with pytest.raises(StoreError, match="transaction 1"):
            make_aggregator(store).process_cell(0, 0)

    def test_read_failure_propagates(self):
        """Test store read errors abort the cell."""

        class BrokenStore(MemoryPlateStore):
            def read(self, *args, **kwargs):
                raise StoreError("disk on fire")

        store = BrokenStore(num_levels=3, pixel_format="graya", channel_type="uint8")
        store.put(make_gray_tile(1, 1), col=0, row=0, level=2, transaction_id=1)

        with pytest.raises(StoreError, match="disk on fire"):
            make_aggregator(store).process_cell(0, 0)

    def test_write_failure_propagates_without_retry(self):
        """Test a failing write_update is not retried."""

        class FailingWriteStore(MemoryPlateStore):
            def write_update(self, *args, **kwargs):
                super().write_update(*args, **kwargs)
                raise StoreError("write failed")

        store = FailingWriteStore(num_levels=3, pixel_format="graya", channel_type="uint8")
        store.put(make_gray_tile(1, 1), col=0, row=0, level=2, transaction_id=1)

        with pytest.raises(StoreError, match="write failed"):
            make_aggregator(store).process_cell(0, 0)
        assert len(store.calls_named("write_update")) == 1
        assert store.calls_named("write_complete") == []


class TestProcess:
    """Tests for iterating work units."""

    def test_summary_counts(self):
        """Test summary counters over a whole level."""
        store = create_graya_plate()
        summary = make_aggregator(store).process(whole_level())

        assert isinstance(summary, AggregationSummary)
        assert summary.work_units == 1
        assert summary.cells_visited == 16
        assert summary.cells_reduced == 2
        assert summary.cells_skipped == 14
        assert summary.tiles_read == 3

    def test_writes_only_occupied_cells(self):
        """Test one write sequence per occupied cell."""
        store = create_graya_plate()
        make_aggregator(store).process(whole_level())

        updates = [call.args[:2] for call in store.calls_named("write_update")]
        assert updates == [(0, 0), (1, 2)]
        assert len(store.calls_named("write_request")) == 2
        assert len(store.calls_named("write_complete")) == 2

    def test_only_assigned_units_touched(self):
        """Test cells outside the given units are never queried."""
        store = create_graya_plate()
        unit = WorkUnit(level=2, col_min=0, row_min=0, col_max=1, row_max=1)
        summary = make_aggregator(store).process([unit])

        assert summary.cells_visited == 1
        searched = [call.args[:2] for call in store.calls_named("search_by_location")]
        assert searched == [(0, 0)]
        assert store.get(col=1, row=2, level=2, transaction_id=2000) is None

    def test_cells_in_column_major_order(self):
        """Test cells are visited columns outer, rows inner."""
        store = create_graya_plate()
        make_aggregator(store).process(
            [WorkUnit(level=2, col_min=0, row_min=0, col_max=2, row_max=2)]
        )
        searched = [call.args[:2] for call in store.calls_named("search_by_location")]
        assert searched == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_no_units(self):
        """Test an empty assignment does nothing."""
        store = create_graya_plate()
        summary = make_aggregator(store).process([])
        assert summary.cells_visited == 0
        assert store.calls == []

    def test_progress_callback_per_unit(self):
        """Test progress is reported in whole work units."""
        store = create_graya_plate()
        updates = []
        units = [
            WorkUnit(level=2, col_min=0, row_min=0, col_max=2, row_max=4),
            WorkUnit(level=2, col_min=2, row_min=0, col_max=4, row_max=4),
        ]
        aggregator = make_aggregator(
            store,
            progress_callback=lambda p: updates.append((p.completed_units, p.status)),
        )
        aggregator.process(units)

        assert updates[0] == (0, "processing")
        assert updates[-1] == (2, "complete")
        assert aggregator.progress.progress_percent == 100.0
