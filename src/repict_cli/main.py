from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import repict_core as core
from repict_core.io import SUPPORTED_IMAGE_EXTS, format_for_path, load_into, save_result

logger = logging.getLogger(__name__)

DEFAULT_OUT_FILE = Path("out/output.png")


def _functions_epilog() -> str:
    lines = ["functions:"]
    for u in core.STEP_USAGE.values():
        lines.append(f"  {u.name:<8} {u.usage:<32} {u.help}")
    lines.append("")
    lines.append("formats: " + " ".join(sorted(SUPPORTED_IMAGE_EXTS)))
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repict",
        description="Apply convolution and grayscale filters to an image.",
        epilog=_functions_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("image", type=Path, help="input image")
    parser.add_argument(
        "-f",
        dest="functions",
        nargs="+",
        action="append",
        required=True,
        metavar="FUNC",
        help="function followed by its arguments; repeat to chain filters",
    )
    parser.add_argument("-o", dest="out", type=Path, default=DEFAULT_OUT_FILE,
                        help=f"output image (default: {DEFAULT_OUT_FILE})")
    parser.add_argument("-v", dest="verbose", action="store_true", help="verbose output")
    parser.add_argument("--border", choices=["all", "trash"], default="all",
                        help="edge handling for convolution (default: all)")
    parser.add_argument("--passes", type=int, default=1,
                        help="repeat each gauss/average/kernel step this many times")
    parser.add_argument("--overwrite", action="store_true", help="replace an existing output file")
    return parser


def _with_passes(step: core.FilterStep, passes: int) -> core.FilterStep:
    if passes == 1 or not hasattr(step, "passes"):
        return step
    return replace(step, passes=passes)


def parse_steps(groups: Sequence[Sequence[str]], passes: int = 1) -> list[core.FilterStep]:
    steps: list[core.FilterStep] = []
    for name, *args in groups:
        steps.append(_with_passes(core.parse_step(name, args), passes))
    return steps


def run(args: argparse.Namespace) -> int:
    format_for_path(args.image)
    format_for_path(args.out)
    steps = parse_steps(args.functions, args.passes)
    config = core.FilterConfig(border=args.border)

    with core.FilterPipeline(config) as pipeline:
        logger.info("Loading %s", args.image)
        load_into(pipeline, args.image)
        logger.debug(
            "Source %dx%d, %d channel(s)", pipeline.width, pipeline.height, pipeline.channels
        )

        def report(done: int, total: int, step: core.FilterStep) -> None:
            logger.info("[%d/%d] Applied %s", done, total, step)
            if isinstance(step, (core.GaussianStep, core.AverageStep)) and pipeline.kernel is not None:
                k = pipeline.kernel
                logger.debug("Kernel %dx%d, weight sum %.6f", k.size, k.size, k.total)
            logger.debug("Result has %d channel(s)", pipeline.channels)

        core.run_steps(pipeline, steps, progress_cb=report)

        save_result(pipeline, args.out, overwrite=args.overwrite)
        logger.info("Saved: %s", args.out)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="repict: %(message)s",
    )

    try:
        return run(args)
    except core.RepictError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
