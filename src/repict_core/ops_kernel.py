# box/gaussian/custom kernel synthesis

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from .config import FilterConfig, default_config
from .errors import InvalidKernelSize, KernelFileError

_SPLIT = re.compile(r"[,\s]+")


@dataclass(frozen=True, eq=False)
class Kernel:
    """Square, odd-sided weight matrix stored row-major in `weights` (length size*size)."""

    size: int
    weights: np.ndarray

    @property
    def half(self) -> int:
        return (self.size - 1) // 2

    @property
    def matrix(self) -> np.ndarray:
        return self.weights.reshape(self.size, self.size)

    @property
    def total(self) -> float:
        # normalisation factor applied by the convolution engine
        return float(self.weights.sum())

    def weight(self, i: int, j: int) -> float:
        return float(self.weights[i * self.size + j])


def validate_kernel_size(size: int, config: Optional[FilterConfig] = None) -> int:
    cfg = config or default_config()
    if isinstance(size, bool) or not isinstance(size, (int, np.integer)):
        raise InvalidKernelSize(f"kernel size must be an integer, got {size!r}")
    if size <= 0:
        raise InvalidKernelSize(f"kernel size must be positive, got {size}")
    if size % 2 == 0:
        raise InvalidKernelSize(f"kernel size must be odd (2n + 1), got {size}")
    if size > cfg.max_kernel_size:
        raise InvalidKernelSize(f"kernel size {size} exceeds maximum {cfg.max_kernel_size}")
    return int(size)


def gaussian_size_for_sigma(sigma: float) -> int:
    return 2 * math.floor(2 * sigma) + 3


def generate_box(size: int, config: Optional[FilterConfig] = None) -> Kernel:
    k = validate_kernel_size(size, config)
    return Kernel(size=k, weights=np.ones(k * k, dtype=np.float64))


def generate_gaussian(
    sigma: float,
    size_hint: Optional[int] = None,
    config: Optional[FilterConfig] = None,
) -> Kernel:
    """
    Unnormalised Gaussian: w = exp(-(dx^2 + dy^2) / (2 sigma^2)) / (2 pi sigma^2).

    A non-positive sigma falls back to config.default_sigma. Without a size hint
    the side is derived from sigma as 2*floor(2*sigma) + 3.
    """
    cfg = config or default_config()
    if sigma is not None and not math.isfinite(sigma):
        raise InvalidKernelSize(f"sigma must be a finite number, got {sigma!r}")
    if sigma is None or sigma <= 0:
        sigma = cfg.default_sigma
    size = gaussian_size_for_sigma(sigma) if size_hint is None else size_hint
    k = validate_kernel_size(size, cfg)

    mean = k // 2
    offsets = np.arange(k, dtype=np.float64) - mean
    dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
    two_s2 = 2.0 * sigma * sigma
    weights = np.exp(-(dx * dx + dy * dy) / two_s2) / (math.pi * two_s2)
    return Kernel(size=k, weights=weights.reshape(-1))


def kernel_from_matrix(values: Sequence[Sequence[float]], config: Optional[FilterConfig] = None) -> Kernel:
    try:
        m = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidKernelSize(f"kernel rows must be numeric and of equal length ({e})") from e
    if m.ndim != 2 or m.shape[0] != m.shape[1]:
        raise InvalidKernelSize(f"kernel must be square, got shape {m.shape}")
    k = validate_kernel_size(m.shape[0], config)
    if not np.all(np.isfinite(m)):
        raise InvalidKernelSize("kernel weights must be finite")
    return Kernel(size=k, weights=np.ascontiguousarray(m).reshape(-1).copy())


def parse_kernel_text(text: str, config: Optional[FilterConfig] = None) -> Kernel:
    """
    Rows of numbers separated by whitespace or commas; '#' starts a comment,
    blank lines are ignored.
    """
    rows: list[list[float]] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        try:
            rows.append([float(tok) for tok in _SPLIT.split(line) if tok])
        except ValueError as e:
            raise KernelFileError(f"line {lineno}: {e}") from e

    if not rows:
        raise KernelFileError("kernel file contains no weights")
    widths = {len(r) for r in rows}
    if len(widths) != 1:
        raise KernelFileError(f"kernel rows have differing lengths: {sorted(widths)}")
    return kernel_from_matrix(rows, config)


def load_kernel(path: Path, config: Optional[FilterConfig] = None) -> Kernel:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise KernelFileError(f"Failed to read kernel file: {path} ({e})") from e
    return parse_kernel_text(text, config)
