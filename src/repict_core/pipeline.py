# working-image context

from __future__ import annotations

from typing import Callable, Hashable, Literal, Optional

from .buffer import ImageBuffer, PixelSource
from .config import FilterConfig, default_config
from .errors import ConfigError, NotInitialized
from .ops_convolve import check_convolvable, convolve
from .ops_kernel import Kernel, generate_box, generate_gaussian
from .ops_reduce import reduce

PipelineState = Literal["uninitialized", "ready", "cleaned"]


class FilterPipeline:
    """
    Holds one working image and feeds it through successive filters.

    Every filter builds its result off to the side and only then replaces the
    working buffer, so a failed call leaves the previous image in place.
    Not thread-safe; use one pipeline per image.
    """

    def __init__(self, config: Optional[FilterConfig] = None) -> None:
        self.config = config or default_config()
        self._state: PipelineState = "uninitialized"
        self._image: Optional[ImageBuffer] = None
        self._kernel: Optional[Kernel] = None
        self._kernel_key: Optional[Hashable] = None

    def __enter__(self) -> "FilterPipeline":
        return self

    def __exit__(self, *exc) -> None:
        self.clean()

    # --- state -----------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == "ready"

    @property
    def width(self) -> int:
        return self._require().width

    @property
    def height(self) -> int:
        return self._require().height

    @property
    def channels(self) -> int:
        return self._require().channels

    @property
    def kernel(self) -> Optional[Kernel]:
        return self._kernel

    def _require(self) -> ImageBuffer:
        if self._state != "ready" or self._image is None:
            raise NotInitialized("No source image set; call set_source() first.")
        return self._image

    def _swap(self, result: ImageBuffer) -> None:
        # single rebinding; the superseded buffer has no other owner
        self._image = result

    def _lookup_kernel(self, key: Hashable, factory: Callable[[], Kernel]) -> Kernel:
        # cache is only written by _run_passes once the filter has succeeded
        if self._kernel is not None and self._kernel_key == key:
            return self._kernel
        return factory()

    # --- source / result -------------------------------------------------

    def set_source(
        self,
        buffer: PixelSource,
        width: int,
        height: int,
        channels: int,
        *,
        copy: bool = True,
    ) -> None:
        """
        Install a new working image. With copy=False the caller's buffer is
        adopted and must not be used by the caller afterwards.
        """
        image = ImageBuffer.from_source(buffer, width, height, channels, copy=copy)
        self._image = image
        self._state = "ready"

    def get_result(self) -> ImageBuffer:
        return self._require()

    def get_result_as_copy(self) -> ImageBuffer:
        return self._require().copy()

    def clean(self) -> None:
        self._image = None
        self._kernel = None
        self._kernel_key = None
        if self._state != "uninitialized":
            self._state = "cleaned"

    # --- filters ---------------------------------------------------------

    def _run_passes(
        self,
        kernel: Kernel,
        passes: int,
        keep_channels: bool,
        cache_key: Optional[Hashable] = None,
    ) -> None:
        current = self._require()
        if passes < 1:
            raise ConfigError(f"passes must be >= 1, got {passes}")
        check_convolvable(current, kernel)

        if not keep_channels and current.channels > 1:
            current = reduce(current, keep_channels=False)
        for _ in range(passes):
            current = convolve(current, kernel, self.config)
        self._swap(current)
        if cache_key is not None:
            self._kernel, self._kernel_key = kernel, cache_key

    def convolve(self, kernel: Kernel, passes: int = 1) -> None:
        self._require()
        self._run_passes(kernel, passes, keep_channels=True)

    def gaussian_filter(
        self,
        sigma: float = -1.0,
        passes: int = 1,
        keep_channels: bool = True,
        *,
        size: Optional[int] = None,
    ) -> None:
        self._require()
        if sigma is None or sigma <= 0:
            sigma = self.config.default_sigma
        key = ("gauss", size, float(sigma))
        kernel = self._lookup_kernel(key, lambda: generate_gaussian(sigma, size, self.config))
        self._run_passes(kernel, passes, keep_channels, key)

    def average_filter(self, size: int = 3, passes: int = 1, keep_channels: bool = True) -> None:
        self._require()
        key = ("box", size)
        kernel = self._lookup_kernel(key, lambda: generate_box(size, self.config))
        self._run_passes(kernel, passes, keep_channels, key)

    def bw(self, keep_channels: bool = False) -> None:
        self._swap(reduce(self._require(), keep_channels=keep_channels))
