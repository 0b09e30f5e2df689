"""Clear refractive materials such as glass and water.

At each hit the ray either reflects or refracts. It always reflects when
Snell's law has no solution (total internal reflection); otherwise it
reflects with the Schlick probability and refracts the rest of the time.
The ratio of indices is 1 / ior on the way in and ior on the way out.
Dielectrics absorb nothing, so the attenuation is white.

Example:
    >>> # Inside a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import near_zero, normalize, reflect, refract, schlick_fresnel
from pathtracer.materials.registry import MAX_MATERIALS_PER_TYPE, check_capacity

vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """n_incident / n_transmitted for the side that was hit."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def cannot_refract(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """1 under total internal reflection, else 0."""
    cos_theta = tm.min(-tm.dot(normalize(incident_direction), normal), 1.0)
    sin_theta = tm.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    result = 0
    if refraction_ratio(ior, front_face) * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def scatter_dielectric(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32):
    """Reflect or refract through a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: Incoming direction; need not be unit length.
        normal: Unit normal facing the incoming ray.
        front_face: 1 when entering the material, 0 when leaving it.

    Returns:
        (unit direction, white, 1).
    """
    ratio = refraction_ratio(ior, front_face)
    unit_direction = normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)

    reflects = cannot_refract(ior, unit_direction, normal, front_face)
    if reflects == 0:
        if ti.random(ti.f32) < schlick_fresnel(cos_theta, ratio):
            reflects = 1

    direction = vec3(0.0, 0.0, 0.0)
    if reflects == 1:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)
        # Rounding near the critical angle can leave no refracted direction
        if near_zero(direction):
            direction = reflect(unit_direction, normal)
    return normalize(direction), vec3(1.0, 1.0, 1.0), 1


# =============================================================================
# Registry
# =============================================================================

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_MATERIALS_PER_TYPE)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store a refractive index and return its registry index.

    Any positive IOR is accepted. Values below 1 describe a thinner medium
    inside a denser one, e.g. an air bubble in water is 1.0 / 1.33.

    Raises:
        ValueError: If ior is not positive.
        RuntimeError: If the registry is full.
    """
    if not ior > 0.0:
        raise ValueError(f"Index of refraction must be positive, got {ior}")

    idx = int(num_dielectric_materials[None])
    check_capacity(idx, "dielectric")

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
