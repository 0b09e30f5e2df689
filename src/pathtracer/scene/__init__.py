"""Scene module for scene management and closest-hit queries.

Components:
    intersection: Sphere storage in Taichi fields and closest-hit search
    manager: Scene manager coordinating spheres and materials
    scenes: Built-in scenes (random spheres, simple)

Scene data lives in a Structure-of-Arrays layout of Taichi fields. It is
written from Python before rendering and only read by kernels.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    clear_registries,
    get_material_type,
    get_material_type_index,
)
from .scenes import SCENES, create_random_scene, create_simple_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "clear_registries",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Built-in scenes
    "SCENES",
    "create_random_scene",
    "create_simple_scene",
]
