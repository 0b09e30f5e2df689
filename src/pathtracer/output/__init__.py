"""Output module for image export.

Components:
    export: Gamma correction, quantization and atomic PPM/PNG writing
"""

from .export import (
    format_ppm,
    framebuffer_to_uint8,
    save_image,
    write_png,
    write_ppm,
)

__all__ = [
    "framebuffer_to_uint8",
    "format_ppm",
    "write_ppm",
    "write_png",
    "save_image",
]
