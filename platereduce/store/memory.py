"""
In-memory plate store.

Reference implementation of the PlateStore contract, used by the test
suite and reachable from the command line through ``memory://<name>`` URLs.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any, Union

import numpy as np

from .base import PlateStore
from ..errors import ArgumentError, StoreError, TileNotFoundError, WriteProtocolError
from ..pixel.formats import ChannelType, PixelFormat
from ..tiling.models import TileRecord

logger = logging.getLogger(__name__)

TileKey = Tuple[int, int, int, int]  # (level, col, row, transaction_id)


@dataclass
class StoreCall:
    """One protocol call recorded by MemoryPlateStore."""
    method: str
    args: Tuple[Any, ...] = field(default_factory=tuple)


class MemoryPlateStore(PlateStore):
    """
    Plate held in a dictionary keyed by (level, col, row, transaction_id).

    Transaction ranges are inclusive at both ends. Writes are staged between
    write_request() and write_complete() and only become visible to reads
    once complete.

    Example:
        >>> store = MemoryPlateStore(num_levels=3, pixel_format="graya", channel_type="uint8")
        >>> store.put(tile, col=0, row=0, level=1, transaction_id=5)
        >>> store.search_by_location(0, 0, 1, 0, 10)
        [TileRecord(col=0, row=0, level=1, transaction_id=5)]
    """

    _named: Dict[str, "MemoryPlateStore"] = {}

    def __init__(
        self,
        num_levels: int,
        pixel_format: Union[PixelFormat, str] = PixelFormat.RGBA,
        channel_type: Union[ChannelType, str] = ChannelType.UINT8,
    ):
        """
        Initialize an empty plate.

        Args:
            num_levels: Number of pyramid levels
            pixel_format: Declared pixel layout (not validated here)
            channel_type: Declared channel type (not validated here)
        """
        if num_levels < 0:
            raise ValueError(f"num_levels must be >= 0, got {num_levels}")
        self._num_levels = num_levels
        self._pixel_format = pixel_format
        self._channel_type = channel_type
        self._tiles: Dict[TileKey, np.ndarray] = {}
        self._pending: Optional[List[Tuple[TileKey, np.ndarray]]] = None
        self.calls: List[StoreCall] = []

    # Named instances for memory:// URLs

    def register(self, name: str) -> "MemoryPlateStore":
        """Make this store reachable as memory://<name>."""
        MemoryPlateStore._named[name] = self
        return self

    @classmethod
    def unregister(cls, name: str) -> None:
        """Forget a named store."""
        cls._named.pop(name, None)

    @classmethod
    def from_url(cls, url: str) -> "MemoryPlateStore":
        """Resolve memory://<name> to a registered store."""
        name = url.split("://", 1)[-1].strip("/")
        try:
            return cls._named[name]
        except KeyError:
            raise ArgumentError(f"No in-memory plate named '{name}'") from None

    # Seeding and inspection

    def put(
        self,
        buffer: np.ndarray,
        col: int,
        row: int,
        level: int,
        transaction_id: int,
    ) -> None:
        """Store a tile directly, bypassing the write protocol."""
        self._check_level(level)
        self._tiles[(level, col, row, transaction_id)] = np.array(buffer, copy=True)

    def get(self, col: int, row: int, level: int, transaction_id: int) -> Optional[np.ndarray]:
        """Return a stored tile, or None."""
        return self._tiles.get((level, col, row, transaction_id))

    def calls_named(self, method: str) -> List[StoreCall]:
        """Recorded calls of one protocol method."""
        return [call for call in self.calls if call.method == method]

    @property
    def write_open(self) -> bool:
        """True between write_request() and write_complete()."""
        return self._pending is not None

    # PlateStore

    def num_levels(self) -> int:
        return self._num_levels

    def pixel_format(self) -> Union[PixelFormat, str]:
        return self._pixel_format

    def channel_type(self) -> Union[ChannelType, str]:
        return self._channel_type

    def search_by_location(
        self,
        col: int,
        row: int,
        level: int,
        start_trans_id: int,
        end_trans_id: int,
        exact_match: bool = True,
    ) -> List[TileRecord]:
        self.calls.append(StoreCall(
            "search_by_location",
            (col, row, level, start_trans_id, end_trans_id, exact_match),
        ))
        self._check_level(level)

        records = [
            TileRecord(col=c, row=r, level=lvl, transaction_id=t)
            for (lvl, c, r, t) in self._tiles
            if lvl == level and c == col and r == row
            and start_trans_id <= t <= end_trans_id
        ]
        if not records:
            raise TileNotFoundError(
                f"No tiles at col={col} row={row} level={level} "
                f"in transactions [{start_trans_id}, {end_trans_id}]"
            )
        return sorted(records, key=lambda record: record.transaction_id)

    def read(
        self,
        col: int,
        row: int,
        level: int,
        transaction_id: int,
        exact_match: bool = True,
    ) -> np.ndarray:
        self.calls.append(StoreCall("read", (col, row, level, transaction_id, exact_match)))
        tile = self._tiles.get((level, col, row, transaction_id))
        if tile is None:
            raise TileNotFoundError(
                f"No tile at col={col} row={row} level={level} transaction={transaction_id}"
            )
        return tile.copy()

    def write_request(self) -> None:
        self.calls.append(StoreCall("write_request"))
        if self._pending is not None:
            raise WriteProtocolError("write_request() called while a write is already open")
        self._pending = []

    def write_update(
        self,
        buffer: np.ndarray,
        col: int,
        row: int,
        level: int,
        transaction_id: int,
    ) -> None:
        self.calls.append(StoreCall("write_update", (col, row, level, transaction_id)))
        if self._pending is None:
            raise WriteProtocolError("write_update() called without write_request()")
        self._check_level(level)
        self._pending.append(((level, col, row, transaction_id), np.array(buffer, copy=True)))

    def write_complete(self) -> None:
        self.calls.append(StoreCall("write_complete"))
        if self._pending is None:
            raise WriteProtocolError("write_complete() called without write_request()")
        for key, buffer in self._pending:
            self._tiles[key] = buffer
        logger.debug(f"Committed {len(self._pending)} tile(s)")
        self._pending = None

    def _check_level(self, level: int) -> None:
        if not (0 <= level < self._num_levels):
            raise StoreError(f"Level {level} outside [0, {self._num_levels})")
