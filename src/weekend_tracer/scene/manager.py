"""Scene bookkeeping: one material ID space over the per-type arenas.

Each material type keeps its parameters in its own arena of Taichi fields.
SceneManager hands out unified material IDs on top of them and writes two
lookup tables, indexed by ID, that the integrator reads inside the kernel:

- ``material_types[id]``: the MaterialType of the material
- ``material_type_indices[id]``: its slot in that type's arena

Spheres store only the unified ID, so any number of spheres can share one
material. Alongside the Taichi state the manager keeps plain Python records
of what was added, which is what scene serialization reads back.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> grey = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=grey)
    >>> scene.add_sphere(center=(0, -100.5, -1), radius=100.0, material_id=grey)
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from weekend_tracer.materials.dielectric import (
    MAX_DIELECTRIC_MATERIALS,
    add_dielectric_material,
    clear_dielectric_materials,
    validate_dielectric_material,
)
from weekend_tracer.materials.lambertian import (
    MAX_LAMBERTIAN_MATERIALS,
    add_lambertian_material,
    clear_lambertian_materials,
    validate_lambertian_material,
)
from weekend_tracer.materials.metal import (
    MAX_METAL_MATERIALS,
    add_metal_material,
    clear_metal_materials,
    validate_metal_material,
)
from weekend_tracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    validate_sphere_radius,
)

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Tag of the closed material set, stored per material ID."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Three arenas of 1024 entries each
MAX_MATERIALS = 3072

material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType value for material_id, or -1 if no such material."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Arena slot for material_id, or -1 if no such material."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Python-side record of a registered material.

    Attributes:
        material_id: Unified ID handed out by the manager.
        material_type: Which arena the parameters live in.
        type_index: Slot inside that arena.
        params: Parameters as given at registration (used for export).
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Python-side record of a sphere in the table."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene.

    Attributes:
        materials: One dict per material, position = material ID. Each has a
            "type" key ("lambertian", "metal" or "dielectric") plus that
            type's parameters.
        spheres: One dict per sphere with "center", "radius" and
            "material_id", in table order.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)

    def parse(
        self,
    ) -> tuple[
        list[tuple[MaterialType, dict[str, Any]]],
        list[tuple[tuple[float, float, float], float, int]],
    ]:
        """Check every entry and normalize it, without touching the scene.

        Missing parameters take the same defaults as the SceneManager add_*
        methods (albedo defaults to grey 0.5 for diffuse, 0.8 for metal).

        Returns:
            (materials, spheres): (MaterialType, keyword arguments) per
            material and (center, radius, material_id) per sphere.

        Raises:
            ValueError: On a malformed entry, an unknown material type, an
                out-of-range value or a dangling material_id.
            RuntimeError: If the entries exceed an arena or the sphere table.
        """
        materials = [_parse_material(entry) for entry in _as_list(self.materials, "materials")]

        capacity = {
            MaterialType.LAMBERTIAN: MAX_LAMBERTIAN_MATERIALS,
            MaterialType.METAL: MAX_METAL_MATERIALS,
            MaterialType.DIELECTRIC: MAX_DIELECTRIC_MATERIALS,
        }
        for material_type, limit in capacity.items():
            used = sum(1 for kind, _ in materials if kind == material_type)
            if used > limit:
                raise RuntimeError(
                    f"Scene has {used} {material_type.name.lower()} materials, maximum is {limit}"
                )

        spheres = [
            _parse_sphere(entry, len(materials))
            for entry in _as_list(self.spheres, "spheres")
        ]
        if len(spheres) > MAX_SPHERES:
            raise RuntimeError(f"Scene has {len(spheres)} spheres, maximum is {MAX_SPHERES}")

        return materials, spheres


def _as_list(values: Any, name: str) -> list[Any]:
    if not isinstance(values, list | tuple):
        raise ValueError(f"{name} must be a list, got {type(values).__name__}")
    return list(values)


def _as_object(entry: Any, name: str) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise ValueError(f"{name} entry must be an object, got {type(entry).__name__}")
    return entry


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    """Coerce a 3-element sequence from a config into a float triple."""
    if isinstance(values, str) or not hasattr(values, "__len__"):
        raise ValueError(f"{name} must be a list of 3 numbers, got {values!r}")
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (
        _as_float(values[0], name),
        _as_float(values[1], name),
        _as_float(values[2], name),
    )


def _parse_material(entry: Any) -> tuple[MaterialType, dict[str, Any]]:
    entry = _as_object(entry, "Material")
    kind = str(entry.get("type", "")).lower()

    if kind == "lambertian":
        albedo = _as_triple(entry.get("albedo", [0.5, 0.5, 0.5]), "albedo")
        validate_lambertian_material(albedo)
        return MaterialType.LAMBERTIAN, {"albedo": albedo}
    if kind == "metal":
        albedo = _as_triple(entry.get("albedo", [0.8, 0.8, 0.8]), "albedo")
        fuzz = _as_float(entry.get("fuzz", 0.0), "fuzz")
        validate_metal_material(albedo, fuzz)
        return MaterialType.METAL, {"albedo": albedo, "fuzz": fuzz}
    if kind == "dielectric":
        ior = _as_float(entry.get("ior", 1.5), "ior")
        validate_dielectric_material(ior)
        return MaterialType.DIELECTRIC, {"ior": ior}

    raise ValueError(f"Unknown material type: {kind!r}")


def _parse_sphere(
    entry: Any, material_count: int
) -> tuple[tuple[float, float, float], float, int]:
    entry = _as_object(entry, "Sphere")
    center = _as_triple(entry.get("center", [0.0, 0.0, 0.0]), "center")
    radius = _as_float(entry.get("radius", 1.0), "radius")
    validate_sphere_radius(radius)

    material_id = entry.get("material_id", 0)
    if isinstance(material_id, bool) or not isinstance(material_id, int):
        raise ValueError(f"material_id must be an integer, got {material_id!r}")
    if not 0 <= material_id < material_count:
        raise ValueError(f"Invalid material_id: {material_id}")
    return center, radius, material_id


class SceneManager:
    """Builds the scene the renderer sees.

    Spheres and materials live in module-level Taichi fields, so there is
    only ever one scene. A SceneManager is a handle on it: constructing one
    (or calling clear()) empties the sphere table and every material arena.

    Attributes:
        materials: MaterialInfo per material ID.
        spheres: SphereInfo per sphere, in table order.

    Example:
        >>> scene = SceneManager()
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_sphere((-1, 0, -1), -0.45, glass)  # hollow glass
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Materials
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Give the arena entry at type_index the next unified ID."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material.

        Args:
            albedo: Reflectance (R, G, B), each channel in [0, 1].

        Returns:
            The new material ID.

        Raises:
            ValueError: If an albedo channel is outside [0, 1].
            RuntimeError: If an arena is full.
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal material.

        Args:
            albedo: Reflectance (R, G, B), each channel in [0, 1].
            fuzz: Radius of the random perturbation of the mirror direction,
                in [0, 1]. 0 is a perfect mirror.

        Returns:
            The new material ID.

        Raises:
            ValueError: If albedo or fuzz is out of range.
            RuntimeError: If an arena is full.
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": tuple(albedo), "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear dielectric; ior must be at least 1.

        Returns:
            The new material ID.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """MaterialInfo for material_id, or None when out of range."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side counterpart of the get_material_type() kernel function."""
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Append a sphere to the table.

        Args:
            center: (x, y, z) of the centre.
            radius: Non-zero. A negative radius keeps the same surface but
                flips its normals inward.
            material_id: ID returned by one of the add_*_material methods.

        Returns:
            Position of the sphere in the table.

        Raises:
            ValueError: If material_id is unknown or radius is zero.
            RuntimeError: If the sphere table is full.
        """
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, tuple(center), radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Sphere with its own new diffuse material; returns (sphere, material) IDs."""
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Sphere with its own new metal material; returns (sphere, material) IDs."""
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Sphere with its own new dielectric material; returns (sphere, material) IDs."""
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Snapshot the scene as plain data (tuples become lists)."""
        materials = []
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            for key, value in info.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            materials.append(entry)

        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene with the contents of config.

        The whole config is checked first (see SceneConfig.parse), so an
        invalid one raises and leaves the current scene as it was.
        Materials are then registered in order, which makes each sphere's
        material_id a position in config.materials.

        Raises:
            ValueError: On a malformed entry or an invalid value.
            RuntimeError: If the config exceeds a capacity limit.
        """
        materials, spheres = config.parse()

        self.clear()
        for material_type, params in materials:
            _MATERIAL_ADDERS[material_type](self, **params)
        for center, radius, material_id in spheres:
            self.add_sphere(center, radius, material_id)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form: {"materials": [...], "spheres": [...]}."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Inverse of to_dict(); missing sections count as empty."""
        if not isinstance(data, dict):
            raise ValueError(f"Scene data must be an object, got {type(data).__name__}")
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                spheres=data.get("spheres", []),
            )
        )

    # =========================================================================
    # Capacity
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS


_MATERIAL_ADDERS: dict[MaterialType, Callable[..., int]] = {
    MaterialType.LAMBERTIAN: SceneManager.add_lambertian_material,
    MaterialType.METAL: SceneManager.add_metal_material,
    MaterialType.DIELECTRIC: SceneManager.add_dielectric_material,
}
