# filter configuration

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .errors import ConfigError

BorderPolicy = Literal["all", "trash"]

BORDER_POLICIES = ("all", "trash")
DEFAULT_MAX_KERNEL_HALF = 50
DEFAULT_SIGMA = 1.0
TRASH_VALUE = 0


@dataclass(frozen=True)
class FilterConfig:
    """
    Settings shared by kernel generation and convolution.

    border:
      "all"   - taps falling outside the image are skipped and the pixel is
                renormalised by the in-bounds weights (default).
      "trash" - pixels whose kernel footprint leaves the image are set to
                `trash_value` instead of being convolved.
    max_kernel_half: largest n allowed for a kernel side k = 2n+1.
    default_sigma: used by the Gaussian generator when sigma <= 0.
    """

    border: BorderPolicy = "all"
    trash_value: int = TRASH_VALUE
    max_kernel_half: int = DEFAULT_MAX_KERNEL_HALF
    default_sigma: float = DEFAULT_SIGMA

    def __post_init__(self) -> None:
        if self.border not in BORDER_POLICIES:
            raise ConfigError(f"Unknown border policy: {self.border!r}")
        if not (0 <= self.trash_value <= 255):
            raise ConfigError("trash_value must be between 0 and 255")
        if self.max_kernel_half < 0:
            raise ConfigError("max_kernel_half must be >= 0")
        if self.default_sigma <= 0:
            raise ConfigError("default_sigma must be positive")

    @property
    def max_kernel_size(self) -> int:
        return 2 * self.max_kernel_half + 1


def default_config() -> FilterConfig:
    return FilterConfig()
