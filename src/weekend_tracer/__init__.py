"""Sphere ray tracer built on Taichi.

Casts rays through a thin-lens camera into a scene of spheres and shades them
with a small closed set of materials:
- Lambertian (diffuse), Metal (specular with fuzz), Dielectric (glass)
- Sky-gradient background for escaped rays
- Monte Carlo anti-aliasing with progressive accumulation

Subpackages:
    core: Ray and vector helpers, colour integrator, progressive renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Scattering models and their material arenas
    scene: Sphere table, nearest-hit queries, scene manager and presets
    camera: Look-at camera with thin-lens depth of field
    preview: PPM/PNG export and display helpers

Modules that declare Taichi fields must be imported after ``ti.init()``;
use :func:`weekend_tracer.core.runtime.init_runtime` first.
"""

__version__ = "0.1.0"
