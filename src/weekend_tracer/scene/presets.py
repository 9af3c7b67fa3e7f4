"""Ready-made scenes.

Each factory clears the global scene, builds its spheres and materials, and
returns the SceneManager together with a matching Camera:

- hit_test: one sphere in front of the default camera, meant for hit-mask
  shading (red where the sphere is, sky elsewhere)
- diffuse: a grey diffuse sphere resting on a large ground sphere
- metal: a diffuse sphere flanked by a fuzzy gold and a very fuzzy silver
  metal sphere
- dielectric: diffuse, metal and a hollow glass sphere (a glass shell with a
  negative-radius inner surface)
- random: the cover scene, a grid of small random spheres around three
  large ones, viewed through a thin-lens camera

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.scene.presets import create_random_scene
    >>> scene, camera = create_random_scene(seed=7)
    >>> scene.get_sphere_count() > 4
    True
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from weekend_tracer.camera.thin_lens import Camera
from weekend_tracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Aspect ratio of the classic 200x100 and 400x200 renders
DEFAULT_ASPECT_RATIO = 2.0

# Ground sphere of the cover scene
GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0

# Small spheres keep clear of this point (next to the big metal sphere)
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
SMALL_RADIUS = 0.2


def create_hit_test_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """A single sphere at (0, 0, -1) with radius 0.5."""
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.5, 0.5, 0.5))
    return scene, Camera(aspect_ratio=aspect_ratio)


def create_diffuse_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """A grey diffuse sphere on a grey diffuse ground sphere."""
    scene = SceneManager()
    grey = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, grey)
    scene.add_sphere((0.0, -100.5, -1.0), 100.0, grey)
    return scene, Camera(aspect_ratio=aspect_ratio)


def create_metal_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Diffuse centre sphere between two metal spheres on yellow ground."""
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.8, 0.3, 0.3))
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, albedo=(0.8, 0.8, 0.0))
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    scene.add_metal_sphere((-1.0, 0.0, -1.0), 0.5, albedo=(0.8, 0.8, 0.8), fuzz=1.0)
    return scene, Camera(aspect_ratio=aspect_ratio)


def create_dielectric_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """Diffuse, metal and hollow glass spheres on yellow ground."""
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, albedo=(0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, albedo=(0.1, 0.2, 0.5))
    scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    glass = scene.add_dielectric_material(ior=1.5)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    # Inward-facing inner wall turns the solid ball into a thin shell
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    return scene, Camera(aspect_ratio=aspect_ratio)


def create_random_scene(
    seed: int | None = None,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, Camera]:
    """The cover scene.

    A huge grey ground sphere, a 22x22 grid of radius-0.2 spheres jittered
    inside their cells (80% diffuse, 15% metal, 5% glass), and three radius-1
    spheres: glass in the middle, brown diffuse on the left and a polished
    metal one on the right.

    Args:
        seed: Seed for the NumPy random generator. None draws fresh entropy.
        aspect_ratio: Aspect ratio of the returned camera.
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, albedo=(0.5, 0.5, 0.5))

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARANCE_POINT) <= 0.9:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < 0.8:
                albedo = tuple(float(x) for x in rng.random(3))
                scene.add_lambertian_sphere(center_tuple, SMALL_RADIUS, albedo=albedo)
            elif choose_mat < 0.95:
                albedo = tuple(float(x) for x in 0.5 * (1.0 + rng.random(3)))
                fuzz = float(0.5 * rng.random())
                scene.add_metal_sphere(center_tuple, SMALL_RADIUS, albedo=albedo, fuzz=fuzz)
            else:
                scene.add_dielectric_sphere(center_tuple, SMALL_RADIUS, ior=1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, ior=1.5)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    logger.debug("Random scene built with %d spheres (seed=%s)", scene.get_sphere_count(), seed)

    camera = Camera.looking_at(
        look_from=(20.0 * math.cos(0.47), 20.0 * 0.47, 3.0),
        look_at=(0.0, 0.0, 1.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.3,
    )
    return scene, camera


@dataclass(frozen=True)
class ScenePreset:
    """A named scene with the render settings it was designed for.

    Attributes:
        name: Preset name used on the command line.
        build: Scene factory returning (scene, camera).
        seeded: The factory takes a seed keyword.
        hit_mask: Render with hit-mask shading instead of path tracing.
        width: Default image width.
        height: Default image height.
        samples: Default samples per pixel.
    """

    name: str
    build: Callable[..., tuple[SceneManager, Camera]]
    seeded: bool = False
    hit_mask: bool = False
    width: int = 200
    height: int = 100
    samples: int = 100

    def create(
        self, aspect_ratio: float = DEFAULT_ASPECT_RATIO, seed: int | None = None
    ) -> tuple[SceneManager, Camera]:
        """Build the scene; the seed is ignored by deterministic presets."""
        if self.seeded:
            return self.build(seed=seed, aspect_ratio=aspect_ratio)
        return self.build(aspect_ratio=aspect_ratio)


PRESETS: dict[str, ScenePreset] = {
    "hit_test": ScenePreset("hit_test", create_hit_test_scene, hit_mask=True, samples=1),
    "diffuse": ScenePreset("diffuse", create_diffuse_scene),
    "metal": ScenePreset("metal", create_metal_scene),
    "dielectric": ScenePreset("dielectric", create_dielectric_scene),
    "random": ScenePreset(
        "random", create_random_scene, seeded=True, width=400, height=200
    ),
}


def get_preset(name: str) -> ScenePreset:
    """Look up a preset by name.

    Raises:
        ValueError: If no preset has that name.
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown scene preset {name!r}; choose from {sorted(PRESETS)}") from None
