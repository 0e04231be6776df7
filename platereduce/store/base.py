"""
Contract of the tiled pyramid store a reduction job runs against.

Addressing, transactions, indexing, and persistence all belong to the
store; the reduction job only queries, reads, and commits through these
methods.
"""

from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..pixel.formats import ChannelType, PixelFormat
from ..tiling.models import TileRecord


class PlateStore(ABC):
    """
    Tiled, versioned raster pyramid ("plate").

    Writes follow a three-phase protocol that must be called in order,
    once per tile written:

        store.write_request()
        store.write_update(buffer, col, row, level, transaction_id)
        store.write_complete()
    """

    @abstractmethod
    def num_levels(self) -> int:
        """Number of pyramid levels; valid levels are [0, num_levels)."""

    @abstractmethod
    def pixel_format(self) -> PixelFormat:
        """Pixel layout of every tile in the plate."""

    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Channel numeric type of every tile in the plate."""

    @abstractmethod
    def search_by_location(
        self,
        col: int,
        row: int,
        level: int,
        start_trans_id: int,
        end_trans_id: int,
        exact_match: bool = True,
    ) -> List[TileRecord]:
        """
        Find tile versions stored at a grid cell.

        Args:
            col: Grid column
            row: Grid row
            level: Pyramid level
            start_trans_id: First transaction id of the range
            end_trans_id: Last transaction id of the range
            exact_match: Only this cell, no ancestor/descendant search

        Returns:
            Matching TileRecords; may be empty

        Raises:
            TileNotFoundError: Stores may signal "nothing here" this way
        """

    @abstractmethod
    def read(
        self,
        col: int,
        row: int,
        level: int,
        transaction_id: int,
        exact_match: bool = True,
    ) -> np.ndarray:
        """
        Load the pixel data of one tile version.

        Returns:
            (H, W, C) buffer in the plate's channel type
        """

    @abstractmethod
    def write_request(self) -> None:
        """Open a write."""

    @abstractmethod
    def write_update(
        self,
        buffer: np.ndarray,
        col: int,
        row: int,
        level: int,
        transaction_id: int,
    ) -> None:
        """Stage a tile for the open write."""

    @abstractmethod
    def write_complete(self) -> None:
        """Commit the open write."""
