"""Display encoding and Matplotlib preview for rendered images.

Rendered images are linear. The classic output path encodes them with a
gamma of 2 (a per-channel square root) before quantizing to 8 bits.

Example:
    >>> from weekend_tracer.preview.display import show_preview
    >>> image = render(camera, scene, 200, 100, samples_per_pixel=50)
    >>> show_preview(image, gamma=2.0)
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0, i.e. square root).
            1.0 returns the image unchanged.

    Returns:
        Gamma corrected image, clamped to [0, 1] unless gamma is 1.0.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    if gamma == 2.0:
        result = np.sqrt(image)
    else:
        result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = 2.0,
) -> npt.NDArray[np.float32]:
    """Gamma-encode and clamp a linear image to [0, 1]."""
    result = apply_gamma(image.copy(), gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 2.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4),
    block: bool = True,
) -> None:
    """Display a rendered image as a Matplotlib figure.

    Matplotlib is an optional dependency (the ``preview`` extra) and is
    imported only when this function is called.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        gamma: Gamma correction value (default 2.0).
        title: Figure title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(image, gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        height, width = image.shape[:2]
        title = f"Render Preview - {width}x{height}"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
