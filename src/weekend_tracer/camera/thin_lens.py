"""Thin-lens camera model for primary ray generation.

This module implements a positionable camera with optional depth of field:
- Look-at positioning (look_from, look_at, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Finite aperture focused at a chosen distance (aperture 0 is a pinhole)
- Jittered sampling for anti-aliasing

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from look_at toward look_from (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport is placed at focus_dist along -w. A ray starts at the camera
origin displaced by a random point on the lens disk and passes through the
viewport point for (s, t), so only geometry at the focus distance is sharp.
Ray directions are not normalized.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     look_from=(13.0, 2.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import taichi as ti

from weekend_tracer.core.ray import Ray, make_ray, random_in_unit_disk, vec3

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a thin-lens camera.

    Attributes:
        look_from: Camera position in world space (x, y, z).
        look_at: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance from look_from to the plane in perfect focus.
    """

    look_from: tuple[float, float, float] = (0.0, 0.0, 0.0)
    look_at: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 2.0
    aperture: float = 0.0
    focus_dist: float = 1.0

    @classmethod
    def default(cls) -> "Camera":
        """The fixed pinhole camera used by the early scenes.

        Origin at 0, viewport lower-left (-2, -1, -1), horizontal span
        (4, 0, 0) and vertical span (0, 2, 0).
        """
        return cls()

    @classmethod
    def looking_at(
        cls,
        look_from: tuple[float, float, float],
        look_at: tuple[float, float, float],
        vfov: float,
        aspect_ratio: float,
        aperture: float = 0.0,
        vup: tuple[float, float, float] = (0.0, 1.0, 0.0),
    ) -> "Camera":
        """Camera focused on its look-at point."""
        focus_dist = float(np.linalg.norm(np.subtract(look_from, look_at)))
        return cls(
            look_from=tuple(look_from),
            look_at=tuple(look_at),
            vup=tuple(vup),
            vfov=vfov,
            aspect_ratio=aspect_ratio,
            aperture=aperture,
            focus_dist=focus_dist,
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the camera as a JSON-friendly dictionary."""
        data = asdict(self)
        for key in ("look_from", "look_at", "vup"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Camera":
        """Build a camera from a dictionary; missing keys take the defaults.

        Raises:
            ValueError: If the dictionary has unknown keys.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Camera must be an object, got {type(data).__name__}")
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown camera keys: {sorted(unknown)}")

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("look_from", "look_at", "vup"):
                if len(value) != 3:
                    raise ValueError(f"Camera {key} must have 3 components")
                kwargs[key] = (float(value[0]), float(value[1]), float(value[2]))
            else:
                kwargs[key] = float(value)
        return cls(**kwargs)


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

# Camera origin (lens center)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors at the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def _validate_camera(camera: Camera) -> None:
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov = {camera.vfov} must be in (0, 180) degrees")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"aspect_ratio = {camera.aspect_ratio} must be positive")
    if camera.aperture < 0.0:
        raise ValueError(f"aperture = {camera.aperture} must be non-negative")
    if camera.focus_dist <= 0.0:
        raise ValueError(f"focus_dist = {camera.focus_dist} must be positive")


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and the viewport
    geometry at the focus distance. This must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the parameters are out of range or the view direction
            is zero or parallel to vup.
    """
    _validate_camera(camera)

    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height

    look_from = np.array(camera.look_from, dtype=np.float64)
    look_at = np.array(camera.look_at, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from look_at toward look_from (backward)
    w = look_from - look_at
    w_norm = np.linalg.norm(w)
    if w_norm == 0.0:
        raise ValueError("look_from and look_at must be different points")
    w = w / w_norm

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm == 0.0:
        raise ValueError("vup must not be parallel to the view direction")
    u = u / u_norm

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus = camera.focus_dist
    horizontal = 2.0 * half_width * focus * u
    vertical = 2.0 * half_height * focus * v
    lower_left = look_from - half_width * focus * u - half_height * focus * v - focus * w

    _camera_origin[None] = look_from.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0

    logger.debug(
        "Camera set up: origin=%s lower_left=%s lens_radius=%.4f",
        look_from.tolist(),
        lower_left.tolist(),
        camera.aperture / 2.0,
    )


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The origin is offset by a lens sample when the lens radius is non-zero.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray from the (possibly offset) camera origin toward the viewport
        point. The direction is not normalized.
    """
    offset = vec3(0.0, 0.0, 0.0)
    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        rd = lens_radius * random_in_unit_disk()
        offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    return make_ray(origin, target - origin)


@ti.func
def get_ray_for_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, jitter: ti.i32
) -> Ray:
    """Generate a ray for pixel (i, j), with j = 0 the bottom row.

    With jitter the sample lands uniformly inside the pixel; without it the
    ray passes through the pixel's lower-left corner (s = i / width).
    """
    offset_u = 0.0
    offset_v = 0.0
    if jitter != 0:
        offset_u = ti.random(ti.f32)
        offset_v = ti.random(ti.f32)

    s = (ti.cast(pixel_i, ti.f32) + offset_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + offset_v) / ti.cast(height, ti.f32)
    return get_ray(s, t)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, Any]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (as float triples) and lens_radius.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info: dict[str, Any] = {}
    for name, vector_field in fields.items():
        vec = vector_field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    info["lens_radius"] = float(_lens_radius[None])
    return info
