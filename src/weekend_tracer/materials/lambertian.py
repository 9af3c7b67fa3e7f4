"""Diffuse surfaces.

A diffuse surface scatters toward the hit normal plus a random point inside
the unit sphere. The resulting directions favour the normal (a cheap
stand-in for cosine-weighted sampling), and the attenuation is the albedo.
A Lambertian surface never absorbs a ray outright; energy is lost only
through the albedo and the depth bound.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.lambertian import scatter_lambertian
    >>> # Inside a @ti.func or @ti.kernel:
    >>> # scattered, attenuation, did_scatter = scatter_lambertian(albedo, record)
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import make_ray, near_zero, random_in_unit_sphere
from weekend_tracer.geometry.sphere import HitRecord

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, record: HitRecord):
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: Per-channel attenuation of the bounce.
        record: Hit being shaded.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: Ray from the hit point along normal + random offset.
        - attenuation: The albedo.
        - did_scatter: Always 1.
    """
    direction = record.normal + random_in_unit_sphere()

    # The random offset can cancel the normal exactly
    if near_zero(direction):
        direction = record.normal

    return make_ray(record.point, direction), albedo, 1


# =============================================================================
# Arena
# =============================================================================

MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Reset the Lambertian arena; stale entries are overwritten on reuse."""
    num_lambertian_materials[None] = 0


def validate_lambertian_material(albedo: tuple[float, float, float]) -> None:
    """Raise ValueError unless every albedo channel lies in [0, 1]."""
    for channel, value in enumerate(albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(
                f"Albedo channel {channel} = {value} is outside [0, 1] "
                "(a surface cannot reflect more light than it receives)"
            )


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse material in the next free arena slot.

    Args:
        albedo: (R, G, B) reflectance.
            Every channel has to lie in [0, 1].

    Returns:
        Arena slot of the new entry.

    Raises:
        RuntimeError: If the arena is full.
        ValueError: If a channel is out of range.
    """
    validate_lambertian_material(albedo)

    slot = num_lambertian_materials[None]
    if slot >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[slot] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = slot + 1
    return slot


def get_lambertian_material_count() -> int:
    """Number of occupied diffuse arena slots."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, record: HitRecord):
    """Scatter off the Lambertian material stored at material_idx.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    return scatter_lambertian(get_lambertian_albedo(material_idx), record)
