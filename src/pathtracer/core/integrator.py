"""Path tracing integrator for Monte Carlo light transport.

This module implements the color estimator and the row rendering kernel.

ray_color follows a path from a ray through the scene. At every bounce the
hit surface's material either absorbs the ray (the path contributes black) or
scatters it, multiplying the path throughput by its attenuation. A path that
escapes the scene picks up the sky gradient, weighted by the throughput
gathered so far. The recursive definition

    ray_color(ray, depth) = attenuation * ray_color(scattered, depth - 1)

is evaluated as a loop whose bounce budget strictly decreases, so a path
never traces more than max_depth bounces; when the budget runs out the path
contributes black.

render_rows is the parallel unit of work: each iteration of its outermost
loop renders one image row, and the Taichi CPU backend spreads those
iterations over its thread pool.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import trace_ray
    >>> r, g, b = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=5)  # empty scene: sky
"""

import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray_jittered
from pathtracer.core.ray import normalize
from pathtracer.materials.dielectric import get_dielectric_ior, scatter_dielectric
from pathtracer.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from pathtracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# Lower bound of the hit interval; keeps scattered rays from re-hitting
# the surface they start on (shadow acne)
T_MIN = 1e-3
T_MAX = 1e10

# Sky gradient endpoints: horizon/downward color and zenith color
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scatter function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing the ray).
        front_face: 1 if the outside of the surface was hit.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material id absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by rays that escape the scene.

    Blends linearly from white (looking straight down) to sky blue (looking
    straight up) on the vertical component of the unit direction.
    """
    unit_direction = normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_HORIZON_COLOR + a * SKY_ZENITH_COLOR


@ti.func
def ray_color(origin: vec3, direction: vec3, depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        depth: Remaining bounce budget. A budget of 0 or less yields black.

    Returns:
        The estimated radiance (RGB).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    remaining = depth

    # Active flag for path continuation (no early return from ti.func)
    active = 1
    while active == 1:
        if remaining <= 0:
            # Bounce budget exhausted: no more light gathered
            active = 0
        else:
            record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if record.hit == 0:
                radiance = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    record.material_id, ray_direction, record.normal, record.front_face
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = record.point
                    ray_direction = scattered_direction
                    remaining -= 1

    return radiance


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def render_rows(
    row_start: ti.i32,
    row_count: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    jitter_mode: ti.i32,
    out: ti.types.ndarray(dtype=ti.f32, ndim=3),
):
    """Render a band of rows, writing summed (not averaged) pixel colors.

    Each iteration of the outermost loop is one independent row task and is
    executed in parallel. Within a row, pixels and samples run sequentially.

    Args:
        row_start: Index of the first row of the band (0 = bottom row).
        row_count: Number of rows in the band.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Samples accumulated per pixel.
        max_depth: Bounce budget of every path.
        jitter_mode: A JitterMode value.
        out: Array of shape (row_count, width, 3) receiving the sums.
    """
    for k in range(row_count):
        row = row_start + k
        for col in range(width):
            pixel = vec3(0.0, 0.0, 0.0)
            for _ in range(samples_per_pixel):
                ray = get_ray_jittered(col, row, width, height, jitter_mode)
                pixel += ray_color(ray.origin, ray.direction, max_depth)
            for c in ti.static(range(3)):
                out[k, col, c] = pixel[c]


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth: ti.i32,
) -> vec3:
    """Kernel wrapper around ray_color for a single ray."""
    return ray_color(vec3(ox, oy, oz), vec3(dx, dy, dz), depth)


@ti.kernel
def _background_single(dx: ti.f32, dy: ti.f32, dz: ti.f32) -> vec3:
    """Kernel wrapper around background_color."""
    return background_color(vec3(dx, dy, dz))


# =============================================================================
# Public Python API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the color along one ray of the current scene.

    This is a Python-callable helper for inspection and testing; rendering
    goes through render_rows().

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z).
        depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) values of one stochastic estimate.
    """
    color = _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2], depth
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def sky_color(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate the background gradient for a direction."""
    color = _background_single(direction[0], direction[1], direction[2])
    return (float(color[0]), float(color[1]), float(color[2]))
