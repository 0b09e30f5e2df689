"""Ideal diffuse reflection.

The bounce direction is the surface normal plus a uniform random unit vector,
which is distributed proportionally to the cosine of the angle to the normal.
No local frame is needed. Diffuse surfaces never absorb; they only tint the
path by their albedo.

Example:
    >>> # Inside a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, random_unit_vector
from pathtracer.materials.registry import MAX_MATERIALS_PER_TYPE, check_albedo, check_capacity

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Diffuse bounce off a surface with the given outward-facing normal.

    Returns:
        (direction, albedo, 1). The direction falls back to the normal when
        the random vector nearly cancels it.
    """
    direction = normal + random_unit_vector()
    if near_zero(direction):
        direction = normal
    return direction, albedo, 1


# =============================================================================
# Registry
# =============================================================================

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS_PER_TYPE)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its registry index.

    Raises:
        ValueError: If the albedo is not an RGB triple in [0, 1].
        RuntimeError: If the registry is full.
    """
    r, g, b = check_albedo(albedo)
    idx = int(num_lambertian_materials[None])
    check_capacity(idx, "Lambertian")

    lambertian_albedos[idx] = vec3(r, g, b)
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
