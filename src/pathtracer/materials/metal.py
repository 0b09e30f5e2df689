"""Specular metals with optional roughness.

The incoming direction is mirrored about the normal and then displaced by
fuzz times a random point in the unit ball. Fuzz 0 gives a perfect mirror.
A displaced direction that dips below the surface is absorbed, so rough
metals darken toward grazing angles.

Example:
    >>> # Inside a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize, random_in_unit_sphere, reflect
from pathtracer.materials.registry import MAX_MATERIALS_PER_TYPE, check_albedo, check_capacity

vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, incident_direction: vec3, normal: vec3):
    """Mirror bounce blurred by fuzz.

    Args:
        albedo: Reflectance tint.
        fuzz: Blur radius in [0, 1].
        incident_direction: Incoming direction; need not be unit length.
        normal: Unit normal facing the incoming ray.

    Returns:
        (direction, albedo, did_scatter). did_scatter is 0 and the direction
        is zero when the blurred reflection points into the surface.
    """
    mirrored = reflect(normalize(incident_direction), normal)
    direction = mirrored + fuzz * random_in_unit_sphere()

    did_scatter = 1
    if tm.dot(direction, normal) <= 0.0:
        did_scatter = 0
        direction = vec3(0.0, 0.0, 0.0)
    return direction, albedo, did_scatter


# =============================================================================
# Registry
# =============================================================================

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS_PER_TYPE)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_MATERIALS_PER_TYPE)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
    """Store a metal and return its registry index.

    Fuzz is rejected rather than clamped when it leaves [0, 1].

    Raises:
        ValueError: If the albedo or fuzz is out of range.
        RuntimeError: If the registry is full.
    """
    r, g, b = check_albedo(albedo)
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"Fuzz = {fuzz} is outside [0, 1]")

    idx = int(num_metal_materials[None])
    check_capacity(idx, "metal")

    metal_albedos[idx] = vec3(r, g, b)
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]
