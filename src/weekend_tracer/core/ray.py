"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the small vector toolkit the
tracer is built on: products, normalization, mirror reflection, Snell
refraction, Schlick reflectance, and rejection sampling inside the unit
sphere and unit disk. Everything here is a Taichi function, callable from
kernels only.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -2.0))
    ...     return ray_at(ray, 0.5)  # (0, 0, -1)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Rejection sampling gives up after this many draws. Acceptance is ~pi/6 for
# the sphere and ~pi/4 for the disk, so the cap is only reached with a broken
# random source.
MAX_REJECTION_ATTEMPTS = 100


@ti.dataclass
class Ray:
    """A ray p(t) = origin + t * direction.

    Attributes:
        origin: Where the ray starts.
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; callers normalize where a unit convention matters.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point reached after travelling t direction-lengths along the ray.

    Args:
        ray: The ray to evaluate.
        t: Ray parameter; negative values lie behind the origin.

    Returns:
        origin + t * direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared length; avoids the square root when comparing magnitudes."""
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    A zero-length input yields NaN components, matching plain division.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror a direction about a surface normal.

    Args:
        incident: Direction travelling into the surface.
        normal: The surface normal (should be unit length).

    Returns:
        incident - 2 (incident . normal) normal
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, ni_over_nt: ti.f32):
    """Refract a unit incident vector through a surface using Snell's law.

    The Snell discriminant is ``1 - ni_over_nt^2 * (1 - cos^2)``, i.e.
    ``1 - sin_t^2``. When it is non-positive no transmitted ray exists
    (total internal reflection).

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The unit normal on the incident side (incident . normal <= 0).
        ni_over_nt: Ratio of refractive indices n_incident / n_transmitted.

    Returns:
        A tuple (refracted, did_refract) where refracted is the transmitted
        direction (zero vector on total internal reflection) and did_refract
        is 1 when refraction is possible, 0 otherwise.
    """
    dt = tm.dot(unit_incident, normal)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)
    refracted = vec3(0.0, 0.0, 0.0)
    did_refract = 0
    if discriminant > 0.0:
        refracted = ni_over_nt * (unit_incident - normal * dt) - normal * ti.sqrt(discriminant)
        did_refract = 1
    return refracted, did_refract


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Fresnel reflectance via Schlick's approximation.

    ``r0`` is the same for a ratio and its reciprocal, so either the material
    IOR or the refraction ratio can be passed as ref_idx.

    Args:
        cosine: Cosine of the incidence angle.
        ref_idx: Relative refractive index across the boundary.

    Returns:
        The approximate reflectance in [0, 1].
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 if all components are within 1e-8 of zero, else 0."""
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random sampling
# =============================================================================


@ti.func
def random_in_unit_sphere() -> vec3:
    """Uniform random point strictly inside the unit sphere.

    Rejection sampling over the [-1, 1]^3 cube, capped at
    MAX_REJECTION_ATTEMPTS draws (returns the origin if the cap is hit).
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
            )
            if length_squared(candidate) < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_in_unit_disk() -> vec3:
    """Uniform random point (x, y, 0) strictly inside the unit disk.

    Rejection sampling over the [-1, 1]^2 square, capped like
    random_in_unit_sphere.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p
