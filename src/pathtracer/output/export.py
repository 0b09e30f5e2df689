"""Image export for rendered framebuffers.

Summed sample colors are averaged, gamma-corrected with gamma 2 (square
root), clamped and quantized to 8 bits:

    channel = int(256 * clamp(sqrt(sum / samples_per_pixel), 0, 0.999))

Supported formats:
    - PPM (plain-text P3), the default
    - PNG (8-bit via Pillow), selected by a .png suffix

Rows are written top first. Row 0 of a framebuffer is the bottom row, so the
row order is flipped on export.

Files are written atomically: the image goes to a temporary file in the
destination directory and is renamed into place only after a complete write.

Example:
    >>> from pathtracer.output.export import save_image
    >>> save_image(framebuffer, "result.ppm", samples_per_pixel=500)
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.errors import ImageWriteError

if TYPE_CHECKING:
    from pathtracer.render.framebuffer import Framebuffer

logger = logging.getLogger(__name__)

# Upper clamp before scaling by 256, keeps 1.0 from quantizing to 256
_MAX_INTENSITY = 0.999


def framebuffer_to_uint8(
    colors: npt.NDArray[np.floating],
    samples_per_pixel: int,
) -> npt.NDArray[np.uint8]:
    """Convert summed colors to 8-bit channels in top-first row order.

    Args:
        colors: Summed colors of shape (H, W, 3), row 0 at the bottom.
        samples_per_pixel: Number of samples in every sum.

    Returns:
        Array of shape (H, W, 3) with dtype uint8, row 0 at the top.
    """
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")

    averaged = colors.astype(np.float64) / samples_per_pixel
    # NaN from a degenerate path maps to black
    averaged = np.nan_to_num(averaged, nan=0.0, posinf=_MAX_INTENSITY, neginf=0.0)
    corrected = np.sqrt(np.clip(averaged, 0.0, None))
    quantized = (256.0 * np.clip(corrected, 0.0, _MAX_INTENSITY)).astype(np.uint8)
    return np.ascontiguousarray(quantized[::-1])


def format_ppm(image: npt.NDArray[np.uint8]) -> str:
    """Format an 8-bit top-first image as plain-text PPM (P3).

    One text line per image row holding width space-separated "R G B"
    triples.
    """
    height, width = image.shape[:2]
    lines = ["P3", f"{width} {height}", "255"]
    for row in image:
        lines.append(" ".join(f"{r} {g} {b}" for r, g, b in row.tolist()))
    return "\n".join(lines) + "\n"


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data to path via a temporary file renamed into place.

    Raises:
        ImageWriteError: If the file cannot be created or written. The
            temporary file is removed and path is left untouched.
    """
    directory = path.parent if str(path.parent) else Path(".")
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=directory,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ImageWriteError(f"Unable to write image {path}: {e}") from e


def write_ppm(
    framebuffer: Framebuffer,
    filepath: str | os.PathLike[str],
    samples_per_pixel: int,
) -> None:
    """Write a framebuffer as a plain-text PPM file.

    Raises:
        ImageWriteError: If the file cannot be written.
    """
    image = framebuffer_to_uint8(framebuffer.colors, samples_per_pixel)
    _atomic_write(Path(filepath), format_ppm(image).encode("ascii"))


def write_png(
    framebuffer: Framebuffer,
    filepath: str | os.PathLike[str],
    samples_per_pixel: int,
) -> None:
    """Write a framebuffer as an 8-bit PNG file.

    Raises:
        ImageWriteError: If the file cannot be written.
    """
    image = framebuffer_to_uint8(framebuffer.colors, samples_per_pixel)
    buffer = io.BytesIO()
    PILImage.fromarray(image).save(buffer, format="PNG")
    _atomic_write(Path(filepath), buffer.getvalue())


def save_image(
    framebuffer: Framebuffer,
    filepath: str | os.PathLike[str],
    samples_per_pixel: int,
) -> None:
    """Save a complete framebuffer, choosing the format from the suffix.

    A .png suffix writes PNG; anything else writes plain-text PPM.

    Raises:
        ImageWriteError: If the framebuffer is incomplete or the file cannot
            be written.
    """
    if not framebuffer.is_complete():
        raise ImageWriteError(
            f"Refusing to write an incomplete image "
            f"({framebuffer.missing_count()} pixels missing)"
        )

    path = Path(filepath)
    if path.suffix.lower() == ".png":
        write_png(framebuffer, path, samples_per_pixel)
    else:
        write_ppm(framebuffer, path, samples_per_pixel)

    logger.info("Wrote %dx%d image to %s", framebuffer.width, framebuffer.height, path)
