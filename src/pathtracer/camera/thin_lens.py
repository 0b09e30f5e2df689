"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focus plane, focus_dist in front of the camera.
Primary rays start at a random point of a lens disk of radius aperture / 2
and pass through the viewport point for (s, t): geometry on the focus plane
stays sharp, everything else blurs in proportion to its distance from that
plane and to the aperture. An aperture of 0 reduces to a pinhole camera.

Camera state is computed once on the Python side and stored in Taichi fields;
kernels only read it, so every row of a render shares one camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>>
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.config import JitterMode
from pathtracer.core.ray import Ray, make_ray, random_in_unit_disk
from pathtracer.errors import CameraConfigError

logger = logging.getLogger(__name__)

# Basis vectors shorter than this are considered degenerate
_DEGENERATE_EPSILON = 1e-8

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance from the lens to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float] = (13.0, 2.0, 3.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, 0.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 20.0
    aspect_ratio: float = 3.0 / 2.0
    aperture: float = 0.1
    focus_dist: float = 10.0

    @classmethod
    def from_dict(cls, data: dict) -> "ThinLensCamera":
        """Build a camera from a dictionary, e.g. the "camera" entry of a scene file."""
        if not isinstance(data, dict):
            raise CameraConfigError(f"Camera must be an object, got {data!r}")
        known = {name for name in cls.__dataclass_fields__}
        unknown = set(data) - known
        if unknown:
            raise CameraConfigError(f"Unknown camera parameters: {sorted(unknown)}")
        kwargs = {}
        for key, value in data.items():
            if key in ("lookfrom", "lookat", "vup"):
                if not isinstance(value, (list, tuple)) or len(value) != 3:
                    raise CameraConfigError(f"{key} must have 3 components, got {value!r}")
                kwargs[key] = tuple(_camera_number(key, c) for c in value)
            else:
                kwargs[key] = _camera_number(key, value)
        return cls(**kwargs)


def _camera_number(key: str, value) -> float:
    # bool is an int subclass but never a valid camera setting
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CameraConfigError(f"{key} must be a number, got {value!r}")
    return float(value)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport on the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def _validate_camera(camera: ThinLensCamera) -> None:
    """Reject parameters that leave the camera basis or viewport undefined."""
    if not 0.0 < camera.vfov < 180.0:
        raise CameraConfigError(f"vfov must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aspect_ratio <= 0.0:
        raise CameraConfigError(f"aspect_ratio must be positive, got {camera.aspect_ratio}")
    if camera.aperture < 0.0:
        raise CameraConfigError(f"aperture must be non-negative, got {camera.aperture}")
    if camera.focus_dist <= 0.0:
        raise CameraConfigError(f"focus_dist must be positive, got {camera.focus_dist}")


def compute_camera_basis(
    camera: ThinLensCamera,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute the camera's orthonormal basis (u, v, w).

    Raises:
        CameraConfigError: If lookfrom equals lookat or vup is parallel to
            the view direction.
    """
    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w_len = np.linalg.norm(w)
    if w_len < _DEGENERATE_EPSILON:
        raise CameraConfigError(
            f"lookfrom {camera.lookfrom} and lookat {camera.lookat} coincide; "
            "the view direction is undefined"
        )
    w = w / w_len

    u = np.cross(vup, w)
    u_len = np.linalg.norm(u)
    if u_len < _DEGENERATE_EPSILON:
        raise CameraConfigError(
            f"vup {camera.vup} is zero or parallel to the view direction; "
            "the camera roll is undefined"
        )
    u = u / u_len

    v = np.cross(w, u)
    return u, v, w


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Validates the parameters, computes the basis and the focus-plane viewport,
    and writes them to the camera fields. Must be called before rendering and
    from Python (not from within a Taichi kernel).

    Args:
        camera: Camera configuration.

    Raises:
        CameraConfigError: If the configuration is degenerate. No camera
            field is modified in that case.
    """
    _validate_camera(camera)
    u, v, w = compute_camera_basis(camera)

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    origin = np.array(camera.lookfrom, dtype=np.float64)
    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = origin - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _camera_origin[None] = origin.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        "Camera at %s looking at %s, vfov=%.1f, aperture=%.3f, focus_dist=%.2f",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aperture,
        camera.focus_dist,
    )


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a primary ray through normalized viewport coordinates.

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].

    Returns:
        A Ray from a random point on the lens toward the focus-plane point for
        (s, t). The direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]

    return make_ray(origin, target - origin)


@ti.func
def get_ray_jittered(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter_mode: ti.i32,
) -> Ray:
    """Generate a sub-pixel sample ray for anti-aliasing.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        jitter_mode: A JitterMode value selecting the sampling pattern.

    Returns:
        The camera ray for this sample.
    """
    jitter_u = 0.5
    jitter_v = 0.5
    if jitter_mode == int(JitterMode.INDEPENDENT):
        jitter_u = ti.random(ti.f32)
        jitter_v = ti.random(ti.f32)
    elif jitter_mode == int(JitterMode.CORRELATED):
        jitter_u = ti.random(ti.f32)
        jitter_v = jitter_u

    s = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

    return get_ray(s, t)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _triple(f) -> tuple[float, float, float]:
        vec = f[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _triple(_camera_origin),
        "u": _triple(_camera_u),
        "v": _triple(_camera_v),
        "w": _triple(_camera_w),
        "horizontal": _triple(_viewport_horizontal),
        "vertical": _triple(_viewport_vertical),
        "lower_left": _triple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
