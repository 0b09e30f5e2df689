"""Command-line entry point: render a scene to an image file.

Usage:
    pathtracer [options]
    python -m pathtracer [options]

Example:
    pathtracer --scene simple --width 400 --samples 50 --output simple.ppm
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Sequence

from pathtracer.config import JitterMode, RenderConfig, init_taichi, load_scene_file
from pathtracer.errors import PathTracerError

logger = logging.getLogger(__name__)

_DEFAULTS = RenderConfig()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a sphere scene with a CPU path tracer.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=_DEFAULTS.image_width, help="Image width in pixels")
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=_DEFAULTS.aspect_ratio,
        help="Image width / height; the height is derived from it",
    )
    parser.add_argument(
        "--samples", type=int, default=_DEFAULTS.samples_per_pixel, help="Samples per pixel"
    )
    parser.add_argument(
        "--max-depth", type=int, default=_DEFAULTS.max_depth, help="Maximum bounces per path"
    )
    parser.add_argument(
        "--jitter",
        choices=[mode.name.lower() for mode in JitterMode],
        default=_DEFAULTS.jitter.name.lower(),
        help="Sub-pixel sampling pattern",
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="CPU threads for row rendering (default: all cores)"
    )
    parser.add_argument("--seed", type=int, default=_DEFAULTS.seed, help="Random seed")
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=_DEFAULTS.rows_per_batch,
        help="Rows rendered per parallel kernel launch",
    )

    scene_group = parser.add_mutually_exclusive_group()
    scene_group.add_argument(
        "--scene", choices=["random", "simple"], default="random", help="Built-in scene"
    )
    scene_group.add_argument("--scene-file", type=Path, default=None, help="JSON scene description")

    camera_group = parser.add_argument_group("camera overrides")
    camera_group.add_argument("--lookfrom", type=float, nargs=3, metavar=("X", "Y", "Z"))
    camera_group.add_argument("--lookat", type=float, nargs=3, metavar=("X", "Y", "Z"))
    camera_group.add_argument("--vup", type=float, nargs=3, metavar=("X", "Y", "Z"))
    camera_group.add_argument("--vfov", type=float, help="Vertical field of view in degrees")
    camera_group.add_argument("--aperture", type=float, help="Lens diameter (0 = pinhole)")
    camera_group.add_argument("--focus-dist", type=float, help="Distance to the plane in focus")

    parser.add_argument(
        "--output", type=Path, default=Path("result.ppm"), help="Output file (.ppm or .png)"
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    verbosity.add_argument("--verbose", action="store_true", help="Log debug output")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    """Build the render configuration from parsed arguments."""
    return RenderConfig(
        aspect_ratio=args.aspect_ratio,
        image_width=args.width,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        jitter=JitterMode.parse(args.jitter),
        workers=args.workers,
        seed=args.seed,
        rows_per_batch=args.rows_per_batch,
    )


def _camera_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    for name in ("lookfrom", "lookat", "vup"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = tuple(value)
    for name in ("vfov", "aperture", "focus_dist"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    return overrides


def render_to_file(args: argparse.Namespace, config: RenderConfig) -> Path:
    """Build the scene, render it and write the image.

    Taichi must be initialized before this is called.

    Returns:
        Path of the written image.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    from pathtracer.output.export import save_image
    from pathtracer.render.orchestrator import RenderOrchestrator
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.scenes import SCENES

    scene = SceneManager()
    if args.scene_file is not None:
        data = load_scene_file(args.scene_file)
        scene.from_dict(data)
        camera = ThinLensCamera.from_dict(data.get("camera", {}))
    else:
        camera = SCENES[args.scene](scene, seed=config.seed)

    camera = dataclasses.replace(
        camera, aspect_ratio=config.aspect_ratio, **_camera_overrides(args)
    )
    setup_camera(camera)

    framebuffer = RenderOrchestrator(config).render()

    save_image(framebuffer, args.output, config.samples_per_pixel)
    return args.output


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.quiet:
        level = logging.WARNING
    elif args.verbose:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)
    _configure_logging(args)

    try:
        config = config_from_args(args)
        config.validate()
        init_taichi(seed=config.seed, workers=config.workers)
        output = render_to_file(args, config)
    except (PathTracerError, ValueError, RuntimeError, OSError) as e:
        logger.error("%s", e)
        return 1

    logger.info("Saved to: %s", output.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
