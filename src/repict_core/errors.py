# error taxonomy

from __future__ import annotations


class RepictError(RuntimeError):
    pass


class InvalidDimensions(RepictError):
    pass


class InvalidChannelCount(RepictError):
    pass


class InvalidKernelSize(RepictError):
    pass


class ImageTooSmall(RepictError):
    pass


class DegenerateKernel(RepictError):
    pass


class SourceNotInitialized(RepictError):
    pass


NotInitialized = SourceNotInitialized


class AllocationFailure(RepictError):
    pass


class ConfigError(RepictError):
    pass


class KernelFileError(RepictError):
    pass


class ImageIOError(RepictError):
    pass
