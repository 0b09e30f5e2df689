"""Sphere primitive with robust ray-sphere intersection.

The sphere is the only analytic surface of the tracer. Intersection solves the
quadratic obtained by substituting the ray equation into the implicit sphere
equation, using the cancellation-free formulation from Ray Tracing Gems so that
grazing rays do not produce spurious roots.

Normals follow the front-face convention: the stored normal always opposes the
incoming ray and front_face records which side was hit. Materials can then
assume a single orientation whether the ray arrives from outside or inside.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """Center and radius.

    A negative radius keeps the same surface but points the outward normal
    inward, which turns the sphere into a hollow shell for dielectrics.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Result of one ray-sphere test.

    The remaining fields are meaningful only when hit == 1. normal is unit
    length and faces the incoming ray; front_face is 0 when the ray started
    inside the sphere.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Returns:
        Tuple of (t_near, t_far) with t_near <= t_far.
    """
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t_near = 0.0
    t_far = 0.0
    if ti.abs(q) < 1e-10:
        # Tangent ray through the center plane: q vanishes, use the plain form
        t_near = (-h - sqrt_d) / a
        t_far = (-h + sqrt_d) / a
    else:
        t_near = q / a
        t_far = c / q

    if t_near > t_far:
        temp = t_near
        t_near = t_far
        t_far = temp

    return t_near, t_far


@ti.func
def face_normal(direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the ray direction.

    Args:
        direction: The incoming ray direction.
        outward_normal: The unit normal pointing away from the surface.

    Returns:
        A tuple (normal, front_face) where normal opposes the ray and
        front_face is 1 when the ray arrived from the outside.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return normal, front_face


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    With oc = origin - center the intersection condition
    |oc + t * direction|^2 = radius^2 expands to a*t^2 + 2*h*t + c = 0 where

        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2

    A negative discriminant means no real root. Otherwise the nearer root is
    tried first and the farther root only if the nearer lies outside the open
    interval (t_min, t_max).

    Both bounds are exclusive: t_min keeps a scattered ray from hitting the
    surface it leaves, t_max is the closest hit found so far.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    # Taichi requires outer-scope declaration of the result fields
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0 and a > 0.0:
        t_near, t_far = _solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))

        t = t_near
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = t_far
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(Ray(origin=ray_origin, direction=ray_direction), t)
            outward_normal = (hit_point - sphere.center) / sphere.radius
            hit_normal, is_front_face = face_normal(ray_direction, outward_normal)

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
