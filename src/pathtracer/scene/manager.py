"""Scene builder owning the unified material id space.

Materials live in one registry per kind. The manager hands out a single
sequence of material ids across all kinds and records, for each id, the kind
and the index inside that kind's registry. Kernels resolve an id with
get_material_type() and get_material_type_index() and dispatch on the kind.
Spheres may share a material id.

A scene is built once from Python and stays read-only while kernels run.

Example:
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable

import taichi as ti
import taichi.math as tm

from pathtracer.materials.dielectric import add_dielectric_material, clear_dielectric_materials
from pathtracer.materials.lambertian import add_lambertian_material, clear_lambertian_materials
from pathtracer.materials.metal import add_metal_material, clear_metal_materials
from pathtracer.materials.registry import MAX_MATERIALS_PER_TYPE
from pathtracer.scene import intersection

vec3 = tm.vec3
Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Material kinds, in the order the integrator dispatches them."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


MAX_MATERIALS = MAX_MATERIALS_PER_TYPE * len(MaterialType)

# Indexed by unified material id
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_registries() -> None:
    """Empty the sphere list, every material registry and the id table."""
    intersection.clear_scene()
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    num_materials[None] = 0


@ti.func
def _is_known_material(material_id: ti.i32) -> ti.i32:
    known = 0
    if material_id >= 0:
        if material_id < num_materials[None]:
            known = 1
    return known


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType value of a material id, -1 if the id is unknown."""
    result = -1
    if _is_known_material(material_id):
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Index into the kind's own registry, -1 if the id is unknown."""
    result = -1
    if _is_known_material(material_id):
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Python-side record of a registered material."""

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class SphereInfo:
    """Python-side record of a sphere."""

    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


def _as_triple(values: Any, default: Vec3Tuple) -> Vec3Tuple:
    """Read a 3-component vector from a JSON list, or use the default."""
    if values is None:
        return default
    if not isinstance(values, (list, tuple)):
        raise ValueError(f"Expected a list of 3 components, got {values!r}")
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}: {values!r}")
    return (_as_number(values[0]), _as_number(values[1]), _as_number(values[2]))


def _as_number(value: Any) -> float:
    """Read a JSON number; booleans and strings are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected a number, got {value!r}")
    return float(value)


def _as_entries(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Read a list of JSON objects, or an empty list when the key is missing."""
    entries = data.get(key, [])
    if not isinstance(entries, list):
        raise ValueError(f'"{key}" must be a list, got {entries!r}')
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f'Entries of "{key}" must be objects, got {entry!r}')
    return entries


class SceneManager:
    """Builds the one scene of the process.

    Constructing a manager, like calling clear(), empties every global
    registry.

    Attributes:
        materials: MaterialInfo records indexed by material id.
        spheres: SphereInfo records in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_dielectric_sphere((-1, 0, -1), 0.5, ior=1.5)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        clear_registries()
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Materials
    # =========================================================================

    def _register(self, material_type: MaterialType, type_index: int, **params: Any) -> int:
        material_id = int(num_materials[None])
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Register a diffuse material and return its id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
        """
        return self._register(
            MaterialType.LAMBERTIAN, add_lambertian_material(albedo), albedo=tuple(albedo)
        )

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Register a metal and return its id.

        Raises:
            ValueError: If the albedo or fuzz is outside [0, 1].
        """
        return self._register(
            MaterialType.METAL, add_metal_material(albedo, fuzz), albedo=tuple(albedo), fuzz=fuzz
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a dielectric and return its id.

        Raises:
            ValueError: If ior is not positive.
        """
        return self._register(MaterialType.DIELECTRIC, add_dielectric_material(ior), ior=ior)

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Add a sphere using an already registered material.

        Raises:
            ValueError: If material_id is unknown or the radius is zero.
            RuntimeError: If the sphere list is full.
        """
        if self.get_material_info(material_id) is None:
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = intersection.add_sphere(
            vec3(center[0], center[1], center[2]), radius, material_id
        )
        self.spheres.append(SphereInfo(sphere_index, tuple(center), radius, material_id))
        return sphere_index

    # The add_*_sphere helpers register a fresh material for the sphere and
    # return (sphere_index, material_id)

    def add_lambertian_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple
    ) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple, fuzz: float = 0.0
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self, center: Vec3Tuple, radius: float, ior: float = 1.5
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return intersection.get_sphere_count()

    @staticmethod
    def get_max_spheres() -> int:
        return intersection.MAX_SPHERES

    # =========================================================================
    # Dictionary form (JSON scene files)
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form of the scene.

        Spheres refer to materials by their position in "materials", which
        equals the material id.
        """
        materials = []
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            entry.update(
                (key, list(value) if isinstance(value, tuple) else value)
                for key, value in info.params.items()
            )
            materials.append(entry)

        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return {"materials": materials, "spheres": spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene with one read from plain data.

        Missing material or sphere parameters take their defaults.

        Raises:
            ValueError: On an unknown material type, a bad vector, an unknown
                material reference, an out-of-range parameter or a value of
                the wrong JSON type.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Scene must be an object, got {data!r}")
        materials = _as_entries(data, "materials")
        spheres = _as_entries(data, "spheres")

        self.clear()

        for entry in materials:
            kind = str(entry.get("type", "")).lower()
            loader = _MATERIAL_LOADERS.get(kind)
            if loader is None:
                raise ValueError(f"Unknown material type: {kind}")
            loader(self, entry)

        for entry in spheres:
            material_id = entry.get("material_id", 0)
            if isinstance(material_id, bool) or not isinstance(material_id, int):
                raise ValueError(f"Invalid material_id: {material_id!r}")
            self.add_sphere(
                _as_triple(entry.get("center"), (0.0, 0.0, 0.0)),
                _as_number(entry.get("radius", 1.0)),
                material_id,
            )


_MATERIAL_LOADERS: dict[str, Callable[[SceneManager, dict[str, Any]], int]] = {
    "lambertian": lambda scene, entry: scene.add_lambertian_material(
        _as_triple(entry.get("albedo"), (0.5, 0.5, 0.5))
    ),
    "metal": lambda scene, entry: scene.add_metal_material(
        _as_triple(entry.get("albedo"), (0.8, 0.8, 0.8)), _as_number(entry.get("fuzz", 0.0))
    ),
    "dielectric": lambda scene, entry: scene.add_dielectric_material(
        _as_number(entry.get("ior", 1.5))
    ),
}
