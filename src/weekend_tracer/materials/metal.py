"""Mirror-like metal with optional fuzz.

The incoming direction is normalized and mirrored about the surface normal:

    R = I - 2(I . N)N

then perturbed by ``fuzz`` times a random point in the unit sphere. Fuzz 0 is
a perfect mirror; larger values blur the reflection. When the perturbed
direction ends up at or below the surface (R . N <= 0) the ray is absorbed,
which is the only case in which any material declines to scatter.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.metal import scatter_metal
    >>> # Inside a @ti.func or @ti.kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, ray_in, record
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import (
    Ray,
    make_ray,
    random_in_unit_sphere,
    reflect,
    unit_vector,
)
from weekend_tracer.geometry.sphere import HitRecord

vec3 = tm.vec3


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, ray_in: Ray, record: HitRecord):
    """Reflect a ray off a metal surface.

    Args:
        albedo: Per-channel tint of the reflection.
        fuzz: Perturbation radius in [0, 1].
        ray_in: Incoming ray; its direction may have any length.
        record: Hit being shaded.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: Ray from the hit point along the fuzzed reflection.
        - attenuation: The albedo.
        - did_scatter: 1 if the reflection leaves the surface, 0 if absorbed.
    """
    reflected = reflect(unit_vector(ray_in.direction), record.normal)
    direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 1
    if tm.dot(direction, record.normal) <= 0.0:
        did_scatter = 0

    return make_ray(record.point, direction), albedo, did_scatter


# =============================================================================
# Arena
# =============================================================================

MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Reset the metal arena; stale entries are overwritten on reuse."""
    num_metal_materials[None] = 0


def validate_metal_material(albedo: tuple[float, float, float], fuzz: float) -> None:
    """Raise ValueError unless albedo channels and fuzz all lie in [0, 1]."""
    for channel, value in enumerate(albedo):
        if not 0.0 <= value <= 1.0:
            raise ValueError(
                f"Albedo channel {channel} = {value} is outside [0, 1] "
                "(a surface cannot reflect more light than it receives)"
            )

    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]; 0 is a sharp mirror, 1 the blurriest"
        )


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Store a metal material in the next free arena slot.

    Args:
        albedo: (R, G, B) tint.
            Every channel has to lie in [0, 1].
        fuzz: Blur radius in [0, 1].

    Returns:
        Arena slot of the new entry.

    Raises:
        RuntimeError: If the arena is full.
        ValueError: If an albedo channel or fuzz is out of range.
    """
    validate_metal_material(albedo, fuzz)

    slot = num_metal_materials[None]
    if slot >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[slot] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[slot] = fuzz
    num_metal_materials[None] = slot + 1
    return slot


def get_metal_material_count() -> int:
    """Number of occupied metal arena slots."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, ray_in: Ray, record: HitRecord):
    """Scatter off the metal material stored at material_idx.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, ray_in, record)
