"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random sampling
    runtime: Taichi initialization (backend choice and seeding)
    integrator: Colour integrator, material dispatch, render target and render()
    progressive: Progressive renderer with batching and progress callbacks

Colour is computed by following one continuation ray per bounce, multiplying
material attenuation into the path throughput, until the ray escapes to the
sky gradient, is absorbed, or the depth bound is reached.
"""

from .ray import (
    MAX_REJECTION_ATTEMPTS,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    unit_vector,
    vec3,
)
from .runtime import init_runtime

# Note: integrator and progressive are NOT imported here. They declare Taichi
# fields and must be imported after init_runtime():
#   from weekend_tracer.core.integrator import render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "MAX_REJECTION_ATTEMPTS",
    "init_runtime",
]
