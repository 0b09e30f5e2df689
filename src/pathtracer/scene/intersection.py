"""Scene-level ray intersection over the sphere list.

The scene is an ordered list of spheres, each carrying a unified material id.
A ray is tested against every sphere (no acceleration structure); the upper
bound of the search interval shrinks to the closest hit found so far, so the
scan returns the nearest intersection. On an exact tie the earlier sphere
wins because later candidates must beat the current t strictly.

Sphere data lives in Taichi fields. It is written from Python while the scene
is built and only read by kernels during rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene, vec3
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.sphere import Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: 1 if the ray intersected any sphere, 0 on a miss.
        t: Ray parameter of the closest intersection.
        point: The 3D point where the ray intersected the surface.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        material_id: Unified material id of the hit sphere, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


MAX_SPHERES = 1024

# One entry per sphere, in insertion order
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its index.

    A negative radius is allowed and turns the normal inward, which is how a
    hollow glass shell is modelled.

    Raises:
        ValueError: If the radius is zero.
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")

    idx = int(num_spheres[None])
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Closest sphere hit with t strictly inside (t_min, t_max).

    Returns a record with hit == 0 and material_id == -1 on a miss.
    """
    result = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
    closest_t = t_max

    for i in range(num_spheres[None]):
        rec = hit_sphere(
            ray_origin,
            ray_direction,
            Sphere(center=sphere_centers[i], radius=sphere_radii[i]),
            t_min,
            closest_t,
        )
        if rec.hit == 1:
            closest_t = rec.t
            result.hit = 1
            result.t = rec.t
            result.point = rec.point
            result.normal = rec.normal
            result.front_face = rec.front_face
            result.material_id = sphere_material_ids[i]

    return result
