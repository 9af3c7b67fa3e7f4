#!/usr/bin/env python3
"""Render the cover scene.

This script renders the random sphere field (three large spheres among
hundreds of small diffuse, metal and glass ones) through the thin-lens
camera, refining the image progressively, then writes it to disk.

Usage:
    python examples/render_random_scene.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 200)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --output OUTPUT     Output file path (default: random_scene.png)
    --batch-size SIZE   Samples per progress update (default: 10)
    --seed SEED         Seed for the scene layout and sampler
    --quiet             Suppress progress output

Example:
    python examples/render_random_scene.py --width 200 --height 100 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from weekend_tracer.core.runtime import init_runtime

logger = logging.getLogger("render_random_scene")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere cover scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=200,
        help="Image height in pixels (default: 200)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.png",
        help="Output file path (default: random_scene.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the scene layout and sampler",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_random_scene(
    width: int = 400,
    height: int = 200,
    num_samples: int = 100,
    output_path: str = "random_scene.png",
    batch_size: int = 10,
    seed: int | None = None,
) -> Path:
    """Render the cover scene and save to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from weekend_tracer.core.progressive import ProgressiveRenderer
    from weekend_tracer.scene.presets import create_random_scene

    logger.info("Creating random scene (%dx%d)...", width, height)
    scene, camera = create_random_scene(seed=seed, aspect_ratio=width / height)
    logger.info("%d spheres, %d materials", scene.get_sphere_count(), scene.get_material_count())

    renderer = ProgressiveRenderer(width, height, camera)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        logger.info(
            "Progress: %d/%d samples (%.1f%%) - %.1f spp/s",
            current,
            target,
            100.0 * current / target,
            samples_per_sec,
        )

    renderer.render(num_samples=num_samples, batch_size=batch_size, callback=progress_callback)

    output_file = Path(output_path)
    renderer.save_image(output_file, gamma=2.0)

    logger.info("Saved to: %s", output_file.absolute())
    logger.info("Total time: %.2fs", time.time() - start_time)
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(message)s",
    )

    try:
        init_runtime("auto", seed=args.seed)
        render_random_scene(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            output_path=args.output,
            batch_size=args.batch_size,
            seed=args.seed,
        )
        return 0
    except Exception as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
