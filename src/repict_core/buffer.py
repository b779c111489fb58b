# owning pixel buffer

from __future__ import annotations

from typing import Union

import numpy as np

from .errors import AllocationFailure, InvalidChannelCount, InvalidDimensions, RepictError

MAX_CHANNELS = 4

PixelSource = Union[np.ndarray, bytes, bytearray, memoryview, list, tuple]


def _is_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def validate_geometry(width: int, height: int, channels: int) -> None:
    if not _is_int(width) or width <= 0:
        raise InvalidDimensions(f"width must be a positive integer, got {width!r}")
    if not _is_int(height) or height <= 0:
        raise InvalidDimensions(f"height must be a positive integer, got {height!r}")
    if not _is_int(channels) or not (1 <= channels <= MAX_CHANNELS):
        raise InvalidChannelCount(f"channels must be between 1 and {MAX_CHANNELS}, got {channels!r}")


def alloc_samples(count: int, *, fill: int | None = 0) -> np.ndarray:
    try:
        if fill is None:
            return np.empty(count, dtype=np.uint8)
        return np.full(count, fill, dtype=np.uint8)
    except MemoryError as e:
        raise AllocationFailure(f"Failed to allocate {count} samples") from e


def _as_samples(source: PixelSource, *, copy: bool) -> np.ndarray:
    if isinstance(source, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(source, dtype=np.uint8)
    else:
        arr = np.asarray(source)

    if arr.dtype != np.uint8:
        if arr.size and (not np.issubdtype(arr.dtype, np.integer) or arr.min() < 0 or arr.max() > 255):
            raise RepictError("pixel samples must be 8-bit integers (0..255)")
        arr = arr.astype(np.uint8)
        copy = False  # astype already produced a fresh array

    arr = arr.reshape(-1)
    # immutable sources (bytes, read-only views) are never adopted
    if copy or not arr.flags.writeable:
        try:
            arr = arr.copy()
        except MemoryError as e:
            raise AllocationFailure(f"Failed to duplicate {arr.size} samples") from e
    return arr


class ImageBuffer:
    """
    Flat, row-major, channel-interleaved uint8 samples plus their geometry.

    Pixel (x, y) occupies data[(y*width + x)*channels : +channels].
    The buffer length always equals width*height*channels.
    """

    __slots__ = ("width", "height", "channels", "data")

    def __init__(self, data: np.ndarray, width: int, height: int, channels: int) -> None:
        validate_geometry(width, height, channels)
        if data.ndim != 1 or data.dtype != np.uint8:
            raise RepictError("ImageBuffer data must be a flat uint8 array")
        if data.size != width * height * channels:
            raise InvalidDimensions(
                f"buffer holds {data.size} samples, expected {width}x{height}x{channels}"
                f" = {width * height * channels}"
            )
        self.width = int(width)
        self.height = int(height)
        self.channels = int(channels)
        self.data = data

    @classmethod
    def allocate(cls, width: int, height: int, channels: int, *, fill: int | None = 0) -> "ImageBuffer":
        validate_geometry(width, height, channels)
        return cls(alloc_samples(width * height * channels, fill=fill), width, height, channels)

    @classmethod
    def from_source(
        cls,
        source: PixelSource,
        width: int,
        height: int,
        channels: int,
        *,
        copy: bool = True,
    ) -> "ImageBuffer":
        """Wrap caller samples; with copy=False the caller's array is adopted when possible."""
        validate_geometry(width, height, channels)
        return cls(_as_samples(source, copy=copy), width, height, channels)

    @classmethod
    def from_array(cls, pixels: np.ndarray, *, copy: bool = True) -> "ImageBuffer":
        """Build from an (h, w) or (h, w, c) uint8 array."""
        if pixels.ndim == 2:
            h, w = pixels.shape
            c = 1
        elif pixels.ndim == 3:
            h, w, c = pixels.shape
        else:
            raise InvalidDimensions(f"expected a 2D or 3D pixel array, got shape {pixels.shape}")
        return cls.from_source(np.ascontiguousarray(pixels), w, h, c, copy=copy)

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.height, self.width, self.channels

    @property
    def pixels(self) -> np.ndarray:
        # view, not a copy
        return self.data.reshape(self.shape)

    def __len__(self) -> int:
        return self.data.size

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height}x{self.channels})"

    def copy(self) -> "ImageBuffer":
        return ImageBuffer(_as_samples(self.data, copy=True), self.width, self.height, self.channels)

    def like(self, channels: int | None = None, *, fill: int | None = 0) -> "ImageBuffer":
        """Allocate a new buffer with this geometry, optionally changing the channel count."""
        return ImageBuffer.allocate(
            self.width,
            self.height,
            self.channels if channels is None else channels,
            fill=fill,
        )
