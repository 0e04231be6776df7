"""
Alpha-weighted average of stacked tile versions.

Each input pixel contributes to the output in proportion to its alpha, and
output alpha is the total accumulated coverage, saturated at the channel
range.
"""

from typing import List, Sequence

import cv2
import numpy as np

from ..pixel.formats import PixelType
from ..tiling.models import TileRecord

# Accumulator depth for cv2.accumulate / cv2.accumulateProduct
ACCUMULATOR_DTYPE = np.float64


def _plane(buffer: np.ndarray, channel: int) -> np.ndarray:
    """One channel as a contiguous accumulator-typed plane."""
    return np.ascontiguousarray(buffer[:, :, channel], dtype=ACCUMULATOR_DTYPE)


class WeightedAverageReducer:
    """
    Composites tile versions by alpha-weighted averaging.

    For every pixel and non-alpha channel k:

        output_k = sum(alpha_i * value_ik) / sum(alpha_i)
        output_alpha = clip(sum(alpha_i), alpha_min, alpha_max)

    Pixels where every input has zero alpha come out as all zeros.

    Example:
        >>> reducer = WeightedAverageReducer()
        >>> composite = reducer(buffers, records, pixel_type)
    """

    def __call__(
        self,
        buffers: Sequence[np.ndarray],
        records: Sequence[TileRecord],
        pixel_type: PixelType,
    ) -> np.ndarray:
        """
        Reduce same-sized buffers into one composite.

        Args:
            buffers: (H, W, C) arrays, alpha in the last channel
            records: Tile metadata matching buffers (unused by this reducer)
            pixel_type: Native pixel representation of the run

        Returns:
            (H, W, C) composite with the native dtype
        """
        if len(buffers) == 0:
            raise ValueError("WeightedAverageReducer needs at least one input buffer")

        height, width = buffers[0].shape[:2]
        num_channels = pixel_type.num_channels
        alpha = num_channels - 1

        summed_weights = np.zeros((height, width), dtype=ACCUMULATOR_DTYPE)
        weighted_sums: List[np.ndarray] = [
            np.zeros((height, width), dtype=ACCUMULATOR_DTYPE)
            for _ in range(alpha)
        ]

        for buffer in buffers:
            weight = _plane(buffer, alpha)
            cv2.accumulate(weight, summed_weights)
            for channel, weighted_sum in enumerate(weighted_sums):
                cv2.accumulateProduct(weight, _plane(buffer, channel), weighted_sum)

        covered = summed_weights > 0
        output = pixel_type.empty(width, height)
        for channel, weighted_sum in enumerate(weighted_sums):
            mean = np.divide(
                weighted_sum,
                summed_weights,
                out=np.zeros_like(weighted_sum),
                where=covered,
            )
            output[:, :, channel] = pixel_type.cast(mean)

        output[:, :, alpha] = pixel_type.cast(summed_weights, bounds=pixel_type.alpha_range)
        return output
