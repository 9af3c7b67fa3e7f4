"""Clear refractive materials such as glass and water.

Optics used here:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) would exceed 1

The hit record carries the geometric normal, so the material decides by
itself which side the ray is on. If the incoming direction runs against the
normal the ray is entering (ratio 1/ior); otherwise it is leaving the
medium (ratio ior) and the normal is flipped to face the ray. A single
uniform draw against the Schlick reflectance then picks reflection or
refraction, with reflection as the fallback under total internal reflection.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.dielectric import scatter_dielectric
    >>> # Inside a @ti.func or @ti.kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(ior, ray_in, record)
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import (
    Ray,
    make_ray,
    reflect,
    refract,
    schlick_fresnel,
    unit_vector,
)
from weekend_tracer.geometry.sphere import HitRecord

vec3 = tm.vec3


@ti.func
def _facing_frame(ior: ti.f32, unit_direction: vec3, normal: vec3):
    """Orient the normal toward the incoming ray and pick the index ratio.

    Returns:
        A tuple (facing_normal, refraction_ratio).
    """
    facing_normal = normal
    refraction_ratio = 1.0 / ior
    if tm.dot(unit_direction, normal) > 0.0:
        # Leaving the medium
        facing_normal = -normal
        refraction_ratio = ior
    return facing_normal, refraction_ratio


@ti.func
def scatter_dielectric(ior: ti.f32, ray_in: Ray, record: HitRecord):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        ior: Refractive index of the material.
        ray_in: Incoming ray; its direction may have any length.
        record: Hit being shaded.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The reflected or refracted ray from the hit point.
        - attenuation: White; clear glass absorbs nothing.
        - did_scatter: Always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    unit_direction = unit_vector(ray_in.direction)
    facing_normal, refraction_ratio = _facing_frame(ior, unit_direction, record.normal)

    cos_theta = tm.min(-tm.dot(unit_direction, facing_normal), 1.0)
    refracted, did_refract = refract(unit_direction, facing_normal, refraction_ratio)
    reflectance = schlick_fresnel(cos_theta, refraction_ratio)

    direction = reflect(unit_direction, facing_normal)
    if did_refract == 1:
        if ti.random(ti.f32) >= reflectance:
            direction = refracted

    return make_ray(record.point, direction), attenuation, 1


@ti.func
def will_reflect(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.i32:
    """1 if total internal reflection rules out refraction, 0 otherwise.

    Args:
        ior: Refractive index of the material.
        incident_direction: The incoming ray direction.
        normal: The geometric surface normal from the hit record.
    """
    unit_direction = unit_vector(incident_direction)
    facing_normal, refraction_ratio = _facing_frame(ior, unit_direction, normal)
    refracted, did_refract = refract(unit_direction, facing_normal, refraction_ratio)
    return 1 - did_refract


@ti.func
def fresnel_reflectance(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.f32:
    """Schlick reflectance for a ray meeting the surface.

    Args:
        ior: Refractive index of the material.
        incident_direction: The incoming ray direction.
        normal: The geometric surface normal from the hit record.

    Returns:
        Probability of reflection, in [0, 1].
    """
    unit_direction = unit_vector(incident_direction)
    facing_normal, refraction_ratio = _facing_frame(ior, unit_direction, normal)
    cos_theta = tm.min(-tm.dot(unit_direction, facing_normal), 1.0)
    return schlick_fresnel(cos_theta, refraction_ratio)


# =============================================================================
# Arena
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Reset the dielectric arena; stale entries are overwritten on reuse."""
    num_dielectric_materials[None] = 0


def validate_dielectric_material(ior: float) -> None:
    """Raise ValueError if ior is below 1.0."""
    if not ior >= 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0; "
            "nothing is optically thinner than vacuum"
        )


def add_dielectric_material(ior: float = 1.5) -> int:
    """Store a dielectric in the next free arena slot.

    Args:
        ior: Refractive index, at least 1.0.

    Returns:
        Arena slot of the new entry.

    Raises:
        RuntimeError: If the arena is full.
        ValueError: If ior is below 1.0.
    """
    validate_dielectric_material(ior)

    slot = num_dielectric_materials[None]
    if slot >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[slot] = ior
    num_dielectric_materials[None] = slot + 1
    return slot


def get_dielectric_material_count() -> int:
    """Number of occupied dielectric arena slots."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(material_idx: ti.i32, ray_in: Ray, record: HitRecord):
    """Scatter off the dielectric material stored at material_idx.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    return scatter_dielectric(get_dielectric_ior(material_idx), ray_in, record)
