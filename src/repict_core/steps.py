# named filter steps (def/gauss/average/bw/kernel)

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .errors import ConfigError
from .ops_kernel import load_kernel
from .pipeline import FilterPipeline


@dataclass(frozen=True)
class IdentityStep:
    pass


@dataclass(frozen=True)
class GaussianStep:
    size: Optional[int] = None
    sigma: float = -1.0
    passes: int = 1
    keep_channels: bool = True


@dataclass(frozen=True)
class AverageStep:
    size: int = 3
    passes: int = 1
    keep_channels: bool = True


@dataclass(frozen=True)
class BwStep:
    keep_channels: bool = False


@dataclass(frozen=True)
class KernelStep:
    path: Path
    passes: int = 1


FilterStep = Union[IdentityStep, GaussianStep, AverageStep, BwStep, KernelStep]
ProgressCb = Callable[[int, int, FilterStep], None]


@dataclass(frozen=True)
class StepUsage:
    name: str
    arg_min: int
    arg_max: int
    usage: str
    help: str


STEP_USAGE: dict[str, StepUsage] = {
    u.name: u
    for u in (
        StepUsage("def", 0, 0, "", "return the image unchanged"),
        StepUsage("gauss", 1, 2, "<kernel size> <optl: sigma>", "gaussian blur"),
        StepUsage("average", 1, 1, "<kernel size>", "box (average) blur"),
        StepUsage("bw", 0, 1, "<optl: keep>", "black & white; 'keep' preserves the channel count"),
        StepUsage("kernel", 1, 1, "<kernel file>", "convolve with a kernel read from a text file"),
    )
}


def _int_arg(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name}: expected an integer, got {value!r}") from e


def _float_arg(name: str, value: str) -> float:
    try:
        number = float(value)
    except ValueError as e:
        raise ConfigError(f"{name}: expected a number, got {value!r}") from e
    if not math.isfinite(number):
        raise ConfigError(f"{name}: expected a finite number, got {value!r}")
    return number


def _bool_arg(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in ("keep", "1", "true", "yes"):
        return True
    if v in ("0", "false", "no", "drop"):
        return False
    raise ConfigError(f"{name}: expected 'keep' or a boolean, got {value!r}")


def parse_step(name: str, args: Sequence[str] = ()) -> FilterStep:
    usage = STEP_USAGE.get(name)
    if usage is None:
        raise ConfigError(f"Unknown function: {name}")
    if not (usage.arg_min <= len(args) <= usage.arg_max):
        raise ConfigError(
            f"{name} takes {usage.arg_min}..{usage.arg_max} arguments: {name} {usage.usage}".rstrip()
        )

    if name == "def":
        return IdentityStep()
    if name == "gauss":
        size = _int_arg(name, args[0])
        sigma = _float_arg(name, args[1]) if len(args) > 1 else -1.0
        return GaussianStep(size=size, sigma=sigma)
    if name == "average":
        return AverageStep(size=_int_arg(name, args[0]))
    if name == "bw":
        return BwStep(keep_channels=_bool_arg(name, args[0]) if args else False)
    # kernel
    return KernelStep(path=Path(args[0]))


def apply_step(pipeline: FilterPipeline, step: FilterStep) -> None:
    if isinstance(step, IdentityStep):
        pipeline.get_result()
    elif isinstance(step, GaussianStep):
        pipeline.gaussian_filter(step.sigma, step.passes, step.keep_channels, size=step.size)
    elif isinstance(step, AverageStep):
        pipeline.average_filter(step.size, step.passes, step.keep_channels)
    elif isinstance(step, BwStep):
        pipeline.bw(step.keep_channels)
    elif isinstance(step, KernelStep):
        pipeline.get_result()
        pipeline.convolve(load_kernel(step.path, pipeline.config), step.passes)
    else:
        raise ConfigError(f"Unknown filter step: {step!r}")


def run_steps(
    pipeline: FilterPipeline,
    steps: Sequence[FilterStep],
    *,
    progress_cb: Optional[ProgressCb] = None,
) -> None:
    total = len(steps)
    for i, step in enumerate(steps, start=1):
        apply_step(pipeline, step)
        if progress_cb:
            progress_cb(i, total, step)
