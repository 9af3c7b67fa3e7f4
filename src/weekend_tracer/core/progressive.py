"""Sample accumulation spread over several calls.

ProgressiveRenderer keeps adding samples to the same accumulator, in
batches, and reports after every batch, so a caller can save or show the
image while it is still converging.

The renderer owns the image size and the camera; the scene is whatever the
SceneManager currently holds.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.core.progressive import ProgressiveRenderer
    >>> from weekend_tracer.scene.presets import create_metal_scene
    >>>
    >>> scene, camera = create_metal_scene()
    >>> renderer = ProgressiveRenderer(200, 100, camera)
    >>> renderer.render(100, batch_size=10)
    >>> renderer.save_image("metal.ppm")
"""

import logging
from collections.abc import Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from weekend_tracer.camera.thin_lens import Camera, setup_camera
from weekend_tracer.core.integrator import (
    ProgressCallback,
    ShadingMode,
    clear_render_target,
    get_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from weekend_tracer.preview.display import apply_gamma
from weekend_tracer.preview.export import image_to_uint8, save_image

logger = logging.getLogger(__name__)


class ProgressiveRenderer:
    """Accumulates samples into the integrator buffers across calls.

    The buffers are module-level Taichi fields, so two live renderers
    would overwrite each other.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        camera: The camera rays are generated from.
        jitter: Whether samples are jittered inside their pixel.
        shading: The shading mode.
    """

    def __init__(
        self,
        width: int,
        height: int,
        camera: Camera | None = None,
        jitter: bool = True,
        shading: ShadingMode = ShadingMode.PATH_TRACE,
    ) -> None:
        """Set up the render target and upload the camera.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            camera: Camera to render through. Default is Camera.default().
            jitter: Randomize sample positions inside each pixel.
            shading: Shading mode.

        Raises:
            ValueError: If dimensions or camera parameters are invalid.
        """
        self._width = width
        self._height = height
        self.camera = camera if camera is not None else Camera.default()
        self.jitter = jitter
        self.shading = shading
        setup_render_target(width, height)
        setup_camera(self.camera)

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self._width

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated so far."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulator without changing the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the image size; the accumulator starts over.

        Raises:
            ValueError: If a dimension is out of range.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def set_camera(self, camera: Camera) -> None:
        """Switch camera and reset the accumulator."""
        setup_camera(camera)
        self.camera = camera
        clear_render_target()

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples per pixel, calling back after each batch.

        Args:
            num_samples: Samples per pixel to add on top of what is there.
            batch_size: Samples per kernel pass.
            callback: Called as callback(done, target) after every batch.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Generator form of render(): yields (done, target) per batch."""
        if num_samples <= 0:
            return
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, jitter=self.jitter, shading=self.shading)
            remaining -= batch
            logger.debug("Accumulated %d/%d samples", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Current estimate as float32 (height, width, 3), top row first.

        Values are clamped to [0, 1] before gamma is applied.

        Args:
            gamma: Display gamma; 1.0 leaves the values linear.
                Use 2.0 for the square-root encoding of the PPM drivers.
        """
        image = np.clip(get_image_numpy(), 0.0, 1.0).astype(np.float32)
        return apply_gamma(image, gamma)

    def get_image_uint8(self, gamma: float = 2.0) -> npt.NDArray[np.uint8]:
        """Current estimate quantized to uint8."""
        return image_to_uint8(self.get_image_numpy(gamma=gamma))

    def save_image(self, filepath: str | Path, gamma: float = 2.0) -> None:
        """Write the current estimate to disk.

        Args:
            filepath: Destination. ``.ppm`` writes plain-text PPM,
                anything else goes through Pillow.
            gamma: Display gamma applied before quantizing.
        """
        save_image(filepath, self.get_image_numpy(gamma=gamma))
        logger.info("Saved %dx%d image to %s", self.width, self.height, filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
