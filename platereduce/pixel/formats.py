"""
Pixel format resolution.

Maps the (pixel format, channel type) pair declared by a plate onto the one
concrete PixelType used for the whole run. The supported pairs form a fixed
table; anything else fails before any tile is touched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, Tuple, Union

import numpy as np

from ..errors import UnsupportedFormatError


class PixelFormat(Enum):
    """Pixel layouts a plate can declare."""
    GRAY = "gray"
    GRAYA = "graya"  # gray + alpha
    RGB = "rgb"
    RGBA = "rgba"  # RGB + alpha

    @property
    def num_channels(self) -> int:
        """Channels per pixel, alpha included."""
        return _FORMAT_CHANNELS[self]


_FORMAT_CHANNELS = {
    PixelFormat.GRAY: 1,
    PixelFormat.GRAYA: 2,
    PixelFormat.RGB: 3,
    PixelFormat.RGBA: 4,
}


class ChannelType(Enum):
    """Numeric channel types a plate can declare."""
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        """Matching numpy dtype."""
        return np.dtype(self.value)


@dataclass(frozen=True)
class PixelType:
    """
    Concrete pixel representation for a reduction run.

    Attributes:
        pixel_format: Declared pixel layout
        channel_type: Declared channel numeric type
    """
    pixel_format: PixelFormat
    channel_type: ChannelType

    @property
    def num_channels(self) -> int:
        """Number of channels per pixel; the last one is alpha."""
        return self.pixel_format.num_channels

    @property
    def dtype(self) -> np.dtype:
        """Native numpy dtype of every channel."""
        return self.channel_type.dtype

    @property
    def is_integer(self) -> bool:
        """True for integer channel types."""
        return np.issubdtype(self.dtype, np.integer)

    @property
    def value_range(self) -> Tuple[float, float]:
        """Representable (min, max) of the native channel type."""
        if self.is_integer:
            info = np.iinfo(self.dtype)
            return float(info.min), float(info.max)
        info = np.finfo(self.dtype)
        return float(info.min), float(info.max)

    @property
    def alpha_range(self) -> Tuple[float, float]:
        """
        Channel range used to saturate accumulated alpha.

        Integer types run from zero to the type maximum; float types
        are normalized to [0.0, 1.0].
        """
        if self.is_integer:
            return 0.0, float(np.iinfo(self.dtype).max)
        return 0.0, 1.0

    def cast(self, values: np.ndarray, bounds: Optional[Tuple[float, float]] = None) -> np.ndarray:
        """
        Cast a floating accumulator plane back to the native channel type.

        Integer types are rounded to nearest (half to even) and clipped so
        values never wrap around.

        Args:
            values: Floating point array
            bounds: Optional (min, max) clip range, defaults to value_range

        Returns:
            Array with dtype == self.dtype
        """
        low, high = bounds if bounds is not None else self.value_range
        if self.is_integer:
            values = np.rint(values)
        return np.clip(values, low, high).astype(self.dtype)

    def empty(self, width: int, height: int) -> np.ndarray:
        """Allocate a zeroed (height, width, channels) buffer."""
        return np.zeros((height, width, self.num_channels), dtype=self.dtype)

    def validate(self, buffer: np.ndarray) -> np.ndarray:
        """
        Check a buffer against this pixel type.

        Args:
            buffer: Array read from the store

        Returns:
            The buffer, converted to the native dtype if it arrived in
            a narrower type that converts without loss

        Raises:
            ValueError: If the buffer is not (H, W, channels) or its dtype
                cannot be converted safely
        """
        buffer = np.asarray(buffer)
        if buffer.ndim != 3 or buffer.shape[2] != self.num_channels:
            raise ValueError(
                f"Expected (H, W, {self.num_channels}) buffer for {self}, got shape {buffer.shape}"
            )
        if buffer.dtype != self.dtype:
            if not np.can_cast(buffer.dtype, self.dtype, casting="safe"):
                raise ValueError(f"Cannot read {buffer.dtype} buffer as {self}")
            buffer = buffer.astype(self.dtype)
        return buffer

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pixel_format": self.pixel_format.value,
            "channel_type": self.channel_type.value,
            "num_channels": self.num_channels,
        }

    def __str__(self) -> str:
        return f"{self.pixel_format.value}<{self.channel_type.value}>"


# Every (format, channel type) pair a run can be dispatched on
SUPPORTED_PIXEL_TYPES: Dict[Tuple[PixelFormat, ChannelType], PixelType] = {
    (PixelFormat.GRAYA, ChannelType.UINT8): PixelType(PixelFormat.GRAYA, ChannelType.UINT8),
    (PixelFormat.GRAYA, ChannelType.INT16): PixelType(PixelFormat.GRAYA, ChannelType.INT16),
    (PixelFormat.GRAYA, ChannelType.FLOAT32): PixelType(PixelFormat.GRAYA, ChannelType.FLOAT32),
    (PixelFormat.RGBA, ChannelType.UINT8): PixelType(PixelFormat.RGBA, ChannelType.UINT8),
}


def _coerce_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        return None


def resolve_pixel_type(
    pixel_format: Union[PixelFormat, str],
    channel_type: Union[ChannelType, str],
) -> PixelType:
    """
    Select the pixel type for a run.

    Args:
        pixel_format: Format declared by the plate (enum or its value)
        channel_type: Channel type declared by the plate (enum or its value)

    Returns:
        PixelType from SUPPORTED_PIXEL_TYPES

    Raises:
        UnsupportedFormatError: If the pair is not in the table
    """
    fmt = _coerce_enum(PixelFormat, pixel_format)
    channel = _coerce_enum(ChannelType, channel_type)

    supported_formats = {f for f, _ in SUPPORTED_PIXEL_TYPES}
    if fmt is None or fmt not in supported_formats:
        raise UnsupportedFormatError(
            f"Platefile contains an unsupported pixel format: {pixel_format}"
        )

    pixel_type = SUPPORTED_PIXEL_TYPES.get((fmt, channel))
    if pixel_type is None:
        raise UnsupportedFormatError(
            f"Platefile contains unsupported channel type {channel_type} "
            f"for pixel format {fmt.value}"
        )
    return pixel_type
