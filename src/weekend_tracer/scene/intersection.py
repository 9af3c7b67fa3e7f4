"""Scene-level nearest-hit queries over the sphere table.

The scene is an ordered table of spheres stored in Taichi fields. A query
scans it in insertion order and shrinks the upper distance bound to every
accepted hit, so only the globally nearest hit survives even though each
sphere is tested on its own. Acceptance is strict (t < bound), so on an
exact tie the sphere added first wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import Ray
from weekend_tracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres supported in the scene
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all spheres; field data is overwritten when new ones are added."""
    num_spheres[None] = 0


def validate_sphere_radius(radius: float) -> None:
    """Raise ValueError for a zero radius."""
    if radius == 0.0:
        raise ValueError("Sphere radius must be non-zero")


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius. Must be non-zero; negative flips the normal.
        material_id: The unified material ID of the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
        ValueError: If radius is zero.
    """
    validate_sphere_radius(radius)

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_sphere(index: ti.i32) -> Sphere:
    return Sphere(
        center=sphere_centers[index],
        radius=sphere_radii[index],
        material_id=sphere_material_ids[index],
    )


@ti.func
def intersect_scene(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the closest hit across all spheres.

    Args:
        ray: The ray to trace.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        The nearest HitRecord in (t_min, t_max), or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        record = hit_sphere(ray, get_sphere(i), t_min, closest_t)
        if record.hit == 1:
            closest_t = record.t
            result = record

    return result


@ti.func
def intersect_scene_any(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> ti.i32:
    """1 if any sphere is hit inside (t_min, t_max), else 0.

    Cheaper than intersect_scene when only occupancy matters (hit masks).
    """
    hit_any = 0

    for i in range(num_spheres[None]):
        if hit_any == 0:
            record = hit_sphere(ray, get_sphere(i), t_min, t_max)
            if record.hit == 1:
                hit_any = 1

    return hit_any
