"""
Pixel format resolution.

Turns a plate's declared pixel layout and channel type into the single
concrete pixel representation used for a run.
"""

from .formats import (
    PixelFormat,
    ChannelType,
    PixelType,
    SUPPORTED_PIXEL_TYPES,
    resolve_pixel_type,
)

__all__ = [
    "PixelFormat",
    "ChannelType",
    "PixelType",
    "SUPPORTED_PIXEL_TYPES",
    "resolve_pixel_type",
]
