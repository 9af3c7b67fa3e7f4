"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, hit record, and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) following the pattern:
    record = hit_sphere(ray, sphere, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "make_miss_record",
]
