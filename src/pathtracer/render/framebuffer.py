"""Single-owner framebuffer and the per-pixel message type.

The framebuffer holds the summed (not yet averaged) color of every pixel.
Row 0 is the bottom image row. Only the aggregator writes to it, once per
pixel, driven by PixelMessage values received from the row producers.

This module declares no Taichi fields and can be imported before ti.init().
"""

from typing import NamedTuple

import numpy as np
import numpy.typing as npt

from pathtracer.errors import RenderError


class PixelMessage(NamedTuple):
    """A finished pixel: its explicit position and summed sample color."""

    row: int
    column: int
    color: tuple[float, float, float]


class Framebuffer:
    """Height x width grid of summed pixel colors with write tracking.

    Every cell must be written exactly once. A duplicate write or an index
    outside the grid raises RenderError.

    Example:
        >>> fb = Framebuffer(width=2, height=1)
        >>> fb.write(0, 0, (1.0, 0.5, 0.0))
        >>> fb.is_complete()
        False
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Framebuffer dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._colors = np.zeros((height, width, 3), dtype=np.float32)
        self._write_counts = np.zeros((height, width), dtype=np.int32)
        self._written = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def written(self) -> int:
        """Number of cells written so far."""
        return self._written

    @property
    def colors(self) -> npt.NDArray[np.float32]:
        """Summed colors of shape (height, width, 3); row 0 is the bottom row."""
        return self._colors

    @property
    def write_counts(self) -> npt.NDArray[np.int32]:
        """Number of writes received per cell."""
        return self._write_counts

    def write(self, row: int, column: int, color: tuple[float, float, float]) -> None:
        """Store the summed color of one pixel.

        Raises:
            RenderError: If the cell is outside the grid or already written.
        """
        if not (0 <= row < self._height and 0 <= column < self._width):
            raise RenderError(
                f"Pixel ({row}, {column}) is outside the {self._width}x{self._height} image"
            )
        if self._write_counts[row, column] != 0:
            raise RenderError(f"Pixel ({row}, {column}) was written more than once")
        self._colors[row, column] = color
        self._write_counts[row, column] = 1
        self._written += 1

    def missing_count(self) -> int:
        """Number of cells not written yet."""
        return self._width * self._height - self._written

    def is_complete(self) -> bool:
        """True when every cell has been written exactly once."""
        return self.missing_count() == 0

    def __repr__(self) -> str:
        return (
            f"Framebuffer(width={self._width}, height={self._height}, "
            f"written={self._written})"
        )
