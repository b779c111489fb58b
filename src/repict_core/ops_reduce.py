# channel averaging (black & white)

from __future__ import annotations

from typing import Optional

import numpy as np

from .buffer import ImageBuffer
from .errors import AllocationFailure, SourceNotInitialized


def channel_average(source: ImageBuffer) -> np.ndarray:
    """Per-pixel integer mean of the channels, shape (height, width), uint8."""
    px = source.pixels
    if source.channels == 1:
        return px[:, :, 0].copy()
    sums = px.sum(axis=2, dtype=np.uint16)
    return (sums // source.channels).astype(np.uint8)


def reduce(source: Optional[ImageBuffer], keep_channels: bool = False) -> ImageBuffer:
    """
    Grayscale by channel averaging.

    keep_channels=True writes the average into every channel (same shape);
    otherwise the result has a single channel.
    """
    if source is None:
        raise SourceNotInitialized("No source image to reduce.")

    try:
        avg = channel_average(source)
        if keep_channels:
            out = np.repeat(avg[:, :, None], source.channels, axis=2)
            return ImageBuffer(out.reshape(-1), source.width, source.height, source.channels)
        return ImageBuffer(avg.reshape(-1), source.width, source.height, 1)
    except MemoryError as e:
        raise AllocationFailure(f"Out of memory reducing {source!r}") from e
