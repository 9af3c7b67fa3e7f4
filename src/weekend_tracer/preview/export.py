"""Image export utilities for rendered images.

This module writes rendered images to disk. Images are NumPy arrays of shape
(H, W, 3) with row 0 at the top, as returned by render().

Supported formats:
    - PPM (plain-text P3, no dependencies beyond the standard library)
    - PNG (8-bit via Pillow)

Example:
    >>> from weekend_tracer.preview.export import save_ppm
    >>> from weekend_tracer.core.integrator import render
    >>>
    >>> image = render(camera, scene, 200, 100, samples_per_pixel=100)
    >>> save_ppm("output.ppm", image, gamma=2.0)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from weekend_tracer.preview.display import apply_gamma

logger = logging.getLogger(__name__)

# Maximum channel value written to PPM files
PPM_MAX_VALUE = 255


def _check_image_shape(image: npt.NDArray[np.floating]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a float image to uint8.

    Each channel is clamped to [0, 1] and truncated to ``int(255 * v)``.
    NaN channels map to 0.

    Args:
        image: Image array of shape (H, W, 3).
        gamma: Gamma applied before quantization (1.0 leaves values alone).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    _check_image_shape(image)
    encoded = apply_gamma(np.nan_to_num(image, nan=0.0), gamma)
    clamped = np.clip(encoded, 0.0, 1.0)
    return (clamped * PPM_MAX_VALUE).astype(np.uint8)


def write_ppm(
    stream: TextIO,
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> None:
    """Write an image as plain-text (P3) PPM.

    The header is ``P3``, then ``width height``, then ``255``, each on its
    own line. Pixels follow in row order, top row first, each written as
    ``"r g b "``.

    Args:
        stream: Text stream to write to.
        image: Image array of shape (H, W, 3).
        gamma: Gamma applied before quantization.
    """
    pixels = image_to_uint8(image, gamma=gamma)
    height, width = pixels.shape[:2]

    stream.write("P3\n")
    stream.write(f"{width} {height}\n{PPM_MAX_VALUE}\n")
    stream.write("".join(f"{r} {g} {b} " for r, g, b in pixels.reshape(-1, 3).tolist()))


def save_ppm(
    filepath: str | Path,
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> None:
    """Save an image as a plain-text PPM file (see write_ppm)."""
    path = Path(filepath)
    with path.open("w", encoding="ascii") as stream:
        write_ppm(stream, image, gamma=gamma)
    logger.debug("Wrote PPM %s", path)


def save_png(
    filepath: str | Path,
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> None:
    """Save an image as an 8-bit PNG file via Pillow.

    Args:
        filepath: Output file path. Pillow picks the format from the
            extension, so other 8-bit formats work too.
        image: Image array of shape (H, W, 3).
        gamma: Gamma applied before quantization.
    """
    image_uint8 = image_to_uint8(image, gamma=gamma)
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)
    logger.debug("Wrote image %s", filepath)


def save_image(
    filepath: str | Path,
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 1.0,
) -> None:
    """Save as PPM when the suffix is ``.ppm``, otherwise through Pillow."""
    if Path(filepath).suffix.lower() == ".ppm":
        save_ppm(filepath, image, gamma=gamma)
    else:
        save_png(filepath, image, gamma=gamma)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
