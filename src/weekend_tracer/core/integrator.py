"""Colour integrator and render loop.

This module implements the main rendering kernel: for every pixel it shoots
camera rays, follows each one through the sphere scene by repeatedly asking
the hit material to scatter it, and averages the resulting colours.

A path ends in one of three ways:
    - it escapes the scene and picks up the sky gradient
      (white at the bottom blending to light blue at the top),
    - the material absorbs it (black),
    - it has already been scattered MAX_DEPTH times (black).

Every scatter multiplies its attenuation into the path throughput, so the
final colour is the product of all attenuations times the sky colour. The
chain is written as a loop because Taichi functions cannot recurse.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Depth bound of MAX_DEPTH scatter events per sample
    - Progressive sample accumulation for convergence
    - Hit-mask shading for quick geometry checks

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.camera import Camera
    >>> from weekend_tracer.core.integrator import render
    >>> from weekend_tracer.scene.manager import SceneManager
    >>>
    >>> scene = SceneManager()
    >>> scene.add_lambertian_sphere((0, 0, -1), 0.5, (0.5, 0.5, 0.5))
    >>> image = render(Camera.default(), scene, 200, 100, samples_per_pixel=16)
"""

import logging
import time
from collections.abc import Callable
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti
import taichi.math as tm

from weekend_tracer.camera.thin_lens import Camera, get_ray_for_pixel, setup_camera
from weekend_tracer.core.ray import Ray, make_ray, unit_vector
from weekend_tracer.geometry.sphere import HitRecord
from weekend_tracer.materials.dielectric import scatter_dielectric_by_id
from weekend_tracer.materials.lambertian import scatter_lambertian_by_id
from weekend_tracer.materials.metal import scatter_metal_by_id
from weekend_tracer.scene.intersection import intersect_scene, intersect_scene_any
from weekend_tracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

if TYPE_CHECKING:
    from weekend_tracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Progress callback: (samples_done, samples_total)
ProgressCallback = Callable[[int, int], None]

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum number of scatter events per path
MAX_DEPTH = 50

# t_min and t_max for ray intersection (t_min suppresses self-intersection)
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints
SKY_BOTTOM = vec3(1.0, 1.0, 1.0)
SKY_TOP = vec3(0.5, 0.7, 1.0)

# Colour of any hit in hit-mask shading
HIT_MASK_COLOR = vec3(1.0, 0.0, 0.0)


class ShadingMode(IntEnum):
    """How a primary ray is turned into a colour."""

    PATH_TRACE = 0
    HIT_MASK = 1


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer, indexed (i, j) with j = 0 the bottom row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Single-ray probe state used by trace_ray()
_probe_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_colour = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_scatter_count = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (1..MAX_IMAGE_WIDTH).
        height: Image height in pixels (1..MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(ray_in: Ray, record: HitRecord):
    """Dispatch a hit to the scattering function of its material.

    Args:
        ray_in: The incoming ray.
        record: The hit record; its material_id selects the material.

    Returns:
        A tuple of (scattered, attenuation, did_scatter). Unknown material
        IDs absorb the ray.
    """
    mat_type = get_material_type(record.material_id)
    type_index = get_material_type_index(record.material_id)

    scattered = make_ray(record.point, record.normal)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered, attenuation, did_scatter = scatter_lambertian_by_id(type_index, record)
    elif mat_type == int(MaterialType.METAL):
        scattered, attenuation, did_scatter = scatter_metal_by_id(type_index, ray_in, record)
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, ray_in, record
        )

    return scattered, attenuation, did_scatter


# =============================================================================
# Colour Computation
# =============================================================================


@ti.func
def sky_colour(direction: vec3) -> vec3:
    """Background gradient for a ray that escapes the scene.

    Linear blend from white (looking straight down) to SKY_TOP (straight up),
    driven by the y component of the unit direction.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_BOTTOM + t * SKY_TOP


@ti.func
def ray_colour_with_depth(ray: Ray):
    """Follow a ray through the scene and return its colour.

    Args:
        ray: The primary ray.

    Returns:
        A tuple (colour, scatter_count). The colour is linear and unclamped;
        scatter_count is the number of material scatter calls made, at most
        MAX_DEPTH.
    """
    colour = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    scatter_count = 0

    # Taichi doesn't support break in ti.func loops
    active = 1

    for depth in range(MAX_DEPTH + 1):
        if active == 1:
            record = intersect_scene(current, T_MIN, T_MAX)

            if record.hit == 0:
                colour = throughput * sky_colour(current.direction)
                active = 0
            elif depth < MAX_DEPTH:
                scattered, attenuation, did_scatter = scatter_material(current, record)
                scatter_count += 1
                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered
            else:
                # Depth bound reached on a hit
                active = 0

    return colour, scatter_count


@ti.func
def ray_colour(ray: Ray) -> vec3:
    """Linear colour carried back along a ray (see ray_colour_with_depth)."""
    colour, depth = ray_colour_with_depth(ray)
    return colour


@ti.func
def hit_mask_colour(ray: Ray) -> vec3:
    """HIT_MASK_COLOR if the ray hits any sphere, otherwise the sky."""
    colour = sky_colour(ray.direction)
    if intersect_scene_any(ray, T_MIN, T_MAX) == 1:
        colour = HIT_MASK_COLOR
    return colour


@ti.func
def shade_pixel_sample(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter: ti.i32,
    shading: ti.i32,
) -> vec3:
    """Colour of one camera sample through pixel (i, j), j = 0 the bottom row."""
    ray = get_ray_for_pixel(pixel_i, pixel_j, width, height, jitter)
    colour = vec3(0.0, 0.0, 0.0)
    if shading == int(ShadingMode.HIT_MASK):
        colour = hit_mask_colour(ray)
    else:
        colour = ray_colour(ray)
    return colour


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, jitter: ti.i32, shading: ti.i32):
    """Render one sample per pixel and accumulate a running average."""
    for i, j in ti.ndrange(width, height):
        color = shade_pixel_sample(i, j, width, height, jitter, shading)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter: ti.i32,
    shading: ti.i32,
) -> vec3:
    """Render a single sample for a specific pixel without accumulating."""
    color = vec3(0.0, 0.0, 0.0)
    # Serial wrapper so loops inside the inlined functions are not offloaded
    for _ in range(1):
        color = shade_pixel_sample(pixel_i, pixel_j, width, height, jitter, shading)
    return color


@ti.kernel
def _trace_probe():
    for _ in range(1):
        colour, scatter_count = ray_colour_with_depth(
            make_ray(_probe_origin[None], _probe_direction[None])
        )
        _probe_colour[None] = colour
        _probe_scatter_count[None] = scatter_count


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[tuple[float, float, float], int]:
    """Trace one ray through the current scene from Python.

    Returns:
        A tuple ((R, G, B), scatter_count).
    """
    _probe_origin[None] = [origin[0], origin[1], origin[2]]
    _probe_direction[None] = [direction[0], direction[1], direction[2]]
    _trace_probe()
    colour = _probe_colour[None]
    return (float(colour[0]), float(colour[1]), float(colour[2])), int(
        _probe_scatter_count[None]
    )


def render_sample(
    pixel_i: int,
    pixel_j: int,
    jitter: bool = True,
    shading: ShadingMode = ShadingMode.PATH_TRACE,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        jitter: Randomize the sample position inside the pixel.
        shading: Shading mode.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, int(jitter), int(shading))

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    jitter: bool = True,
    shading: ShadingMode = ShadingMode.PATH_TRACE,
) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples for convergence.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, int(jitter), int(shading))


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_image_numpy() -> np.ndarray:
    """Get the accumulated image as a NumPy array.

    The array has shape (height, width, 3), dtype float32, linear and
    unclamped. Row 0 is the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Buffer rows run bottom to top; images run top to bottom
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def get_normalized_image_numpy() -> np.ndarray:
    """Like get_image_numpy() but clamped to [0, 1]."""
    return np.clip(get_image_numpy(), 0.0, 1.0).astype(np.float32)


def render(
    camera: Camera,
    scene: "SceneManager",
    width: int,
    height: int,
    samples_per_pixel: int,
    *,
    jitter: bool = True,
    shading: ShadingMode = ShadingMode.PATH_TRACE,
    batch_size: int | None = None,
    callback: ProgressCallback | None = None,
) -> np.ndarray:
    """Render a scene through a camera.

    Args:
        camera: The camera configuration.
        scene: The scene to render. Its spheres and materials are the ones
            currently loaded into the Taichi fields.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples averaged per pixel.
        jitter: Randomize sample positions inside each pixel (anti-aliasing).
        shading: PATH_TRACE for full colour, HIT_MASK for geometry checks.
        batch_size: Samples per progress report. Default renders all at once.
        callback: Called with (samples_done, samples_total) after each batch.

    Returns:
        Array of shape (height, width, 3), float32, linear and unclamped.
        Row 0 is the top of the image, so ``image.reshape(-1)`` is the flat
        RGB triple sequence in output order.

    Raises:
        ValueError: If dimensions, samples_per_pixel or camera are invalid.
    """
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be >= 1, got {samples_per_pixel}")
    if batch_size is not None and batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    setup_render_target(width, height)
    setup_camera(camera)

    if abs(camera.aspect_ratio - width / height) > 0.01 * camera.aspect_ratio:
        logger.warning(
            "Camera aspect ratio %.3f does not match image %dx%d (%.3f)",
            camera.aspect_ratio,
            width,
            height,
            width / height,
        )

    logger.info(
        "Rendering %dx%d, %d spp, %d spheres, %d materials (%s)",
        width,
        height,
        samples_per_pixel,
        scene.get_sphere_count(),
        scene.get_material_count(),
        ShadingMode(shading).name.lower(),
    )

    batch = batch_size or samples_per_pixel
    done = 0
    start = time.perf_counter()
    while done < samples_per_pixel:
        n = min(batch, samples_per_pixel - done)
        render_image(n, jitter=jitter, shading=shading)
        done += n
        logger.debug("Rendered %d/%d samples", done, samples_per_pixel)
        if callback is not None:
            callback(done, samples_per_pixel)

    logger.info("Render finished in %.2fs", time.perf_counter() - start)
    return get_image_numpy()
