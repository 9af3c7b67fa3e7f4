"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Sphere table in Taichi fields and nearest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    presets: Ready-made scenes with matching cameras
    files: JSON scene files (camera + materials + spheres)

Scene data is organized for GPU access:
    - Structure-of-Arrays layout for sphere data
    - Contiguous material ID arrays
    - Per-type material arenas behind one material ID space
"""

from .files import load_scene_file, save_scene_file, scene_from_dict, scene_to_dict
from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    intersect_scene_any,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .presets import (
    PRESETS,
    ScenePreset,
    create_dielectric_scene,
    create_diffuse_scene,
    create_hit_test_scene,
    create_metal_scene,
    create_random_scene,
    get_preset,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "intersect_scene_any",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Presets
    "PRESETS",
    "ScenePreset",
    "get_preset",
    "create_hit_test_scene",
    "create_diffuse_scene",
    "create_metal_scene",
    "create_dielectric_scene",
    "create_random_scene",
    # Scene files
    "load_scene_file",
    "save_scene_file",
    "scene_to_dict",
    "scene_from_dict",
]
