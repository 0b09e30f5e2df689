"""Rays and the vec3 algebra shared by every stage of the path tracer.

Geometry, materials and the camera all build on the helpers here: ray
evaluation, dot and cross products, mirror reflection, Snell refraction, the
Schlick reflectance term and the random generators behind diffuse bounces,
fuzzy reflection and lens sampling. Everything is a Taichi function and only
callable from inside kernels.

Points, directions and colors are all vec3; they differ only by usage.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def point_along_ray() -> ti.f32:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0).z
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# near_zero() treats components below this magnitude as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """Half-line origin + t * direction, t >= 0.

    Each bounce builds a new Ray. The direction need not be unit length:
    camera rays point at the focus plane and keep that distance.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector algebra
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return ti.sqrt(tm.dot(v, v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Scale v to unit length.

    The zero vector has no direction and is returned unchanged instead of
    producing NaN components.
    """
    result = vec3(0.0, 0.0, 0.0)
    len_sq = tm.dot(v, v)
    if len_sq > 0.0:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


# =============================================================================
# Optics
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror incident about a unit normal: v - 2 (v . n) n."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Bend a unit direction through a surface by Snell's law.

    The refracted direction is split into the part perpendicular to the
    normal, eta * (v + cos_i * n), and the part along it, whose length makes
    the result unit length.

    Args:
        incident: Unit incoming direction.
        normal: Unit normal facing the incoming ray.
        eta: n_incident / n_transmitted.

    Returns:
        The refracted unit direction, or the zero vector under total
        internal reflection.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    r_perp = eta * (incident + cos_i * normal)
    k = 1.0 - tm.dot(r_perp, r_perp)
    result = vec3(0.0, 0.0, 0.0)
    if k >= 0.0:
        result = r_perp - ti.sqrt(k) * normal
    return result


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's approximation of the Fresnel reflectance.

    R(theta) = R0 + (1 - R0) (1 - cos theta)^5 with
    R0 = ((1 - ref_idx) / (1 + ref_idx))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ti.pow(1.0 - cosine, 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 if every component of v is below NEAR_ZERO_EPSILON in magnitude."""
    largest = tm.max(ti.abs(v.x), tm.max(ti.abs(v.y), ti.abs(v.z)))
    result = 0
    if largest < NEAR_ZERO_EPSILON:
        result = 1
    return result


# =============================================================================
# Random Sampling
# =============================================================================

# Rejection sampling returns the origin after this many misses
_MAX_REJECTION_DRAWS = 64


@ti.func
def _random_symmetric() -> ti.f32:
    """Uniform draw from [-1, 1)."""
    return 2.0 * ti.random(ti.f32) - 1.0


@ti.func
def random_in_unit_sphere() -> vec3:
    """Uniform point strictly inside the unit ball (rejection sampling)."""
    p = vec3(0.0, 0.0, 0.0)
    draws = 0
    accepted = 0
    while accepted == 0 and draws < _MAX_REJECTION_DRAWS:
        candidate = vec3(_random_symmetric(), _random_symmetric(), _random_symmetric())
        draws += 1
        if tm.dot(candidate, candidate) < 1.0:
            p = candidate
            accepted = 1
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Uniform direction on the unit sphere."""
    return normalize(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Uniform point (x, y, 0) strictly inside the unit disk, for lens sampling."""
    p = vec3(0.0, 0.0, 0.0)
    draws = 0
    accepted = 0
    while accepted == 0 and draws < _MAX_REJECTION_DRAWS:
        candidate = vec3(_random_symmetric(), _random_symmetric(), 0.0)
        draws += 1
        if tm.dot(candidate, candidate) < 1.0:
            p = candidate
            accepted = 1
    return p
