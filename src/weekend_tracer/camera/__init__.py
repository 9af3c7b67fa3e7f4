"""Camera module for view and ray generation.

Components:
    thin_lens: Positionable camera with optional depth of field

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

Camera state lives in Taichi fields written by setup_camera(), so rays can
be generated inside the render kernel for every pixel in parallel.
"""

from .thin_lens import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_for_pixel,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_for_pixel",
    "get_camera_info",
]
