"""Surface scattering models.

Each material kind has a scatter function returning
(direction, attenuation, did_scatter), with did_scatter == 0 for an absorbed
ray, plus a registry of Taichi fields holding its parameters. The scene
manager maps unified material ids onto these registries.
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)
from .registry import MAX_MATERIALS_PER_TYPE, check_albedo

__all__ = [
    "MAX_MATERIALS_PER_TYPE",
    "add_dielectric_material",
    "add_lambertian_material",
    "add_metal_material",
    "cannot_refract",
    "check_albedo",
    "clear_dielectric_materials",
    "clear_lambertian_materials",
    "clear_metal_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    "get_metal_material_count",
    "refraction_ratio",
    "scatter_dielectric",
    "scatter_lambertian",
    "scatter_metal",
]
