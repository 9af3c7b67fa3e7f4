"""Sphere primitive and ray-sphere intersection.

Substituting the ray p(t) = O + tD into the implicit sphere
|p - c|^2 = r^2 gives a quadratic in t. With the half-b form:

    a = D . D
    b = (O - c) . D
    c_term = (O - c) . (O - c) - r^2
    discriminant = b^2 - a * c_term

A positive discriminant means two real roots (-b -/+ sqrt(discriminant)) / a.
The near root is tried first, the far root only when the near one falls
outside the (t_min, t_max) window. That is what lets a ray starting inside a
sphere hit its far wall.

The normal stored in the hit record is (point - c) / r. For a positive radius
it points outward; a negative radius flips it inward, which is how hollow
shells and mirrored cavities are modelled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.geometry.sphere import Sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import Ray, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius. Negative values invert the normal.
        material_id: Unified material ID from the scene's material arena.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 on a miss.
        t: Distance parameter along the ray. Only valid if hit == 1.
        point: World-space intersection point. Only valid if hit == 1.
        normal: Unit surface normal (point - center) / radius. Not flipped
            toward the ray; materials compare it with the incoming direction.
        material_id: Material of the hit surface, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Find the nearest intersection of a ray with a sphere inside a window.

    Args:
        ray: The ray to test. A zero-length direction is reported as a miss.
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on t (suppresses self-intersection).
        t_max: Exclusive upper bound on t (closest hit found so far).

    Returns:
        A HitRecord; check its hit field.
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = b * b - a * c

    record = make_miss_record()

    if a > 0.0 and discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-b - sqrt_d) / a
        valid = t > t_min and t < t_max

        if not valid:
            t = (-b + sqrt_d) / a
            valid = t > t_min and t < t_max

        if valid:
            point = ray_at(ray, t)
            record = HitRecord(
                hit=1,
                t=t,
                point=point,
                normal=(point - sphere.center) / sphere.radius,
                material_id=sphere.material_id,
            )

    return record


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, radius and material ID."""
    return Sphere(center=center, radius=radius, material_id=material_id)
