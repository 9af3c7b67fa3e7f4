"""Preview module for output and visualization.

Components:
    display: Gamma encoding and Matplotlib-based preview
    export: PPM/PNG image export utilities

Example:
    >>> from weekend_tracer.preview import save_ppm, show_preview
    >>>
    >>> image = render(camera, scene, 200, 100, samples_per_pixel=100)
    >>> save_ppm("output.ppm", image, gamma=2.0)
    >>> show_preview(image)
"""

from weekend_tracer.preview.display import (
    apply_gamma,
    process_image_for_display,
    show_preview,
)
from weekend_tracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    # Display functions
    "show_preview",
    "apply_gamma",
    "process_image_for_display",
    # Export functions
    "write_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "image_to_uint8",
    "compute_rmse",
]
