"""Exception types raised by the path tracer.

Every error also subclasses the builtin exception a caller would catch
without knowing this package: ValueError for bad camera settings,
RuntimeError for render failures and OSError for output problems.
"""


class PathTracerError(Exception):
    """Base class for all path tracer errors."""


class CameraConfigError(PathTracerError, ValueError):
    """Camera parameters do not define a valid view (e.g. degenerate basis)."""


class RenderError(PathTracerError, RuntimeError):
    """The render did not produce a complete, consistent framebuffer."""


class ImageWriteError(PathTracerError, OSError):
    """The output image could not be written."""
