# 2D convolution with border policy

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .buffer import ImageBuffer
from .config import FilterConfig, default_config
from .errors import AllocationFailure, DegenerateKernel, ImageTooSmall, InvalidKernelSize
from .ops_kernel import Kernel

# absorbs float error before truncating, so exact averages don't drop by one
_ROUND_EPS = 1e-6
_ZERO_TOL = 1e-12


def check_convolvable(source: ImageBuffer, kernel: Kernel) -> None:
    k = kernel.size
    if k <= 0 or k % 2 == 0 or kernel.weights.size != k * k:
        raise InvalidKernelSize(f"kernel must be square with odd side, got size {k}")
    if source.width < k or source.height < k:
        raise ImageTooSmall(
            f"image {source.width}x{source.height} is smaller than kernel {k}x{k}"
        )
    if not math.isfinite(kernel.total):
        raise DegenerateKernel("kernel weights are not finite")
    if math.isclose(kernel.total, 0.0, abs_tol=_ZERO_TOL):
        raise DegenerateKernel("kernel weights sum to zero; cannot normalise")


def _shift(n: int, d: int) -> tuple[slice, slice]:
    # output index y reads input index y - d
    out = slice(max(0, d), n + min(0, d))
    inp = slice(max(0, -d), n - max(0, d))
    return out, inp


def _accumulate(src: np.ndarray, kernel: Kernel, *, track_weights: bool) -> tuple[np.ndarray, Optional[np.ndarray]]:
    h, w = src.shape[:2]
    half = kernel.half
    m = kernel.matrix

    acc = np.zeros(src.shape, dtype=np.float64)
    wsum = np.zeros((h, w), dtype=np.float64) if track_weights else None

    for j in range(-half, half + 1):
        oy, iy = _shift(h, j)
        for i in range(-half, half + 1):
            weight = m[j + half, i + half]
            if weight == 0.0:
                continue
            ox, ix = _shift(w, i)
            acc[oy, ox] += weight * src[iy, ix]
            if wsum is not None:
                wsum[oy, ox] += weight
    return acc, wsum


def _to_samples(values: np.ndarray) -> np.ndarray:
    out = np.floor(np.clip(values + _ROUND_EPS, 0.0, 255.0))
    return out.astype(np.uint8).reshape(-1)


def convolve(
    source: ImageBuffer,
    kernel: Kernel,
    config: Optional[FilterConfig] = None,
) -> ImageBuffer:
    """
    out[y, x, c] = sum(in[y - j, x - i, c] * K[j + half, i + half]) / sum(K)

    Border handling follows config.border:
      "all"   - out-of-bounds taps are skipped and the sum is divided by the
                weights that did land inside the image.
      "trash" - pixels within `half` of an edge are set to config.trash_value.
    Values are clamped to [0, 255] and truncated.
    """
    cfg = config or default_config()
    check_convolvable(source, kernel)

    total = kernel.total
    try:
        src = source.pixels.astype(np.float64)
        if cfg.border == "all":
            acc, wsum = _accumulate(src, kernel, track_weights=True)
            norm = np.where(np.abs(wsum) > _ZERO_TOL, wsum, total)
            result = _to_samples(acc / norm[:, :, None])
        else:
            acc, _ = _accumulate(src, kernel, track_weights=False)
            out = _to_samples(acc / total).reshape(source.shape)
            out[border_mask(source.width, source.height, kernel.size)] = cfg.trash_value
            result = out.reshape(-1)
    except MemoryError as e:
        raise AllocationFailure(
            f"Out of memory convolving {source.width}x{source.height}x{source.channels}"
        ) from e

    return ImageBuffer(result, source.width, source.height, source.channels)


def border_mask(width: int, height: int, kernel_size: int) -> np.ndarray:
    """Boolean (height, width) mask of pixels whose kernel footprint leaves the image."""
    half = (kernel_size - 1) // 2
    mask = np.zeros((height, width), dtype=bool)
    if half:
        mask[:half, :] = True
        mask[-half:, :] = True
        mask[:, :half] = True
        mask[:, -half:] = True
    return mask
