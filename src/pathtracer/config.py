"""Run-time configuration for a render.

Declares no Taichi fields, so it can be imported before ti.init(). It holds
the image and sampling settings, the sub-pixel jitter mode, Taichi
initialization and JSON scene-file loading.

Example:
    >>> from pathtracer.config import RenderConfig, init_taichi
    >>> config = RenderConfig(image_width=400, samples_per_pixel=50)
    >>> config.image_height
    266
    >>> init_taichi(seed=config.seed, workers=config.workers)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti

logger = logging.getLogger(__name__)


class JitterMode(IntEnum):
    """Sub-pixel sampling pattern for primary rays.

    INDEPENDENT draws separate offsets for both image axes, CORRELATED reuses
    one draw for both axes (samples fall on the pixel diagonal), NONE samples
    the pixel center.
    """

    NONE = 0
    INDEPENDENT = 1
    CORRELATED = 2

    @classmethod
    def parse(cls, value: str | int | JitterMode) -> JitterMode:
        """Accept a member, its integer value or its case-insensitive name."""
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                choices = ", ".join(m.name.lower() for m in cls)
                raise ValueError(f"Unknown jitter mode {value!r}; expected one of {choices}") from None
        return cls(value)


@dataclass
class RenderConfig:
    """Image and sampling settings for one render.

    Attributes:
        aspect_ratio: Image width divided by height.
        image_width: Image width in pixels. The height is derived.
        samples_per_pixel: Stochastic samples averaged per pixel.
        max_depth: Maximum number of bounces per path.
        jitter: Sub-pixel sampling pattern.
        workers: Number of CPU threads rendering rows in parallel. None lets
            Taichi use every core.
        seed: Seed of the Taichi random generator.
        rows_per_batch: Rows handed to the parallel kernel per launch. Smaller
            batches give finer progress reporting.
    """

    aspect_ratio: float = 3.0 / 2.0
    image_width: int = 1200
    samples_per_pixel: int = 500
    max_depth: int = 50
    jitter: JitterMode = JitterMode.INDEPENDENT
    workers: int | None = None
    seed: int = 0
    rows_per_batch: int = 16

    @property
    def image_height(self) -> int:
        """Image height in pixels, truncated from width / aspect_ratio."""
        return int(self.image_width / self.aspect_ratio)

    @property
    def pixel_count(self) -> int:
        """Number of pixels in the image."""
        return self.image_width * self.image_height

    def validate(self) -> None:
        """Check the settings before any rendering work starts.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.image_height <= 0:
            raise ValueError(
                f"image_width {self.image_width} and aspect_ratio {self.aspect_ratio} "
                "give an empty image"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if self.rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {self.rows_per_batch}")


def init_taichi(seed: int = 0, workers: int | None = None) -> None:
    """Initialize Taichi on the CPU backend.

    Must run before any module declaring Taichi fields is imported (camera,
    materials, scene, integrator, orchestrator).

    Args:
        seed: Seed of the kernel random generator.
        workers: Maximum number of CPU threads for parallel loops.
    """
    kwargs: dict[str, Any] = {"arch": ti.cpu, "random_seed": seed}
    if workers is not None:
        kwargs["cpu_max_num_threads"] = workers
    ti.init(**kwargs)
    logger.debug("Taichi initialized on CPU (seed=%d, workers=%s)", seed, workers or "all")


def load_scene_file(path: str | Path) -> dict[str, Any]:
    """Read a JSON scene description.

    The file holds a "materials" list, a "spheres" list referring to
    materials by index, and an optional "camera" object with ThinLensCamera
    parameters.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or not a JSON object.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Scene file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")

    logger.info(
        "Loaded scene file %s (%d materials, %d spheres)",
        path,
        len(data.get("materials", [])),
        len(data.get("spheres", [])),
    )
    return data
