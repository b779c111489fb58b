"""
repict_core: headless image-filtering engine (kernels, convolution, grayscale).

The working image lives in a FilterPipeline; file decoding/encoding sits in
repict_core.io and the command line in repict_cli.
"""

from .errors import (
    RepictError,
    InvalidDimensions,
    InvalidChannelCount,
    InvalidKernelSize,
    ImageTooSmall,
    DegenerateKernel,
    SourceNotInitialized,
    NotInitialized,
    AllocationFailure,
    ConfigError,
    KernelFileError,
    ImageIOError,
)
from .config import BorderPolicy, FilterConfig, default_config
from .buffer import ImageBuffer, validate_geometry
from .ops_kernel import (
    Kernel,
    generate_box,
    generate_gaussian,
    kernel_from_matrix,
    parse_kernel_text,
    load_kernel,
)
from .ops_convolve import convolve, border_mask
from .ops_reduce import reduce, channel_average
from .pipeline import FilterPipeline
from .steps import (
    IdentityStep,
    GaussianStep,
    AverageStep,
    BwStep,
    KernelStep,
    FilterStep,
    STEP_USAGE,
    parse_step,
    apply_step,
    run_steps,
)

__all__ = [
    # errors
    "RepictError",
    "InvalidDimensions",
    "InvalidChannelCount",
    "InvalidKernelSize",
    "ImageTooSmall",
    "DegenerateKernel",
    "SourceNotInitialized",
    "NotInitialized",
    "AllocationFailure",
    "ConfigError",
    "KernelFileError",
    "ImageIOError",
    # config
    "BorderPolicy",
    "FilterConfig",
    "default_config",
    # buffer
    "ImageBuffer",
    "validate_geometry",
    # kernels
    "Kernel",
    "generate_box",
    "generate_gaussian",
    "kernel_from_matrix",
    "parse_kernel_text",
    "load_kernel",
    # filters
    "convolve",
    "border_mask",
    "reduce",
    "channel_average",
    # pipeline
    "FilterPipeline",
    "IdentityStep",
    "GaussianStep",
    "AverageStep",
    "BwStep",
    "KernelStep",
    "FilterStep",
    "STEP_USAGE",
    "parse_step",
    "apply_step",
    "run_steps",
]

__version__ = "0.1.0"
