"""Command-line renderer.

Renders one of the built-in scenes, or a JSON scene file, to a PPM or PNG
image.

Usage:
    weekend-tracer [options]
    python -m weekend_tracer [options]

Example:
    weekend-tracer --scene random --samples 50 --output cover.png --seed 7
    weekend-tracer --scene hit_test --output hit.ppm
    weekend-tracer --scene-file my_scene.json --width 320 --height 160
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from weekend_tracer.core.runtime import init_runtime

logger = logging.getLogger("weekend_tracer")

SCENE_NAMES = ("hit_test", "diffuse", "metal", "dielectric", "random")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="weekend-tracer",
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default="random",
        help="Built-in scene to render (default: random)",
    )
    source.add_argument(
        "--scene-file",
        type=Path,
        help="JSON scene file with camera, materials and spheres",
    )
    parser.add_argument(
        "--width",
        type=int,
        help="Image width in pixels (default: scene's own, 200 for files)",
    )
    parser.add_argument(
        "--height",
        type=int,
        help="Image height in pixels (default: scene's own, 100 for files)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        help="Samples per pixel (default: scene's own, 100 for files)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("render.ppm"),
        help="Output file; .ppm writes plain-text PPM, other suffixes use Pillow "
        "(default: render.ppm)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        help="Output gamma (default: 2.0, or 1.0 for hit-mask shading)",
    )
    parser.add_argument(
        "--shading",
        choices=("path", "hit_mask"),
        help="Shading mode (default: hit_mask for hit_test, path otherwise)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for scene generation and the sampler",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu", "auto"),
        default="auto",
        help="Taichi backend (default: auto)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--no-jitter",
        action="store_true",
        help="Sample pixel corners instead of random positions inside pixels",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the result in a Matplotlib window (needs the preview extra)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Set up root logging for command-line use."""
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def render_to_file(args: argparse.Namespace) -> Path:
    """Build the requested scene, render it and save the image.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi fields are created after init_runtime()
    from weekend_tracer.core.integrator import ShadingMode, render
    from weekend_tracer.preview.export import save_image
    from weekend_tracer.scene.files import load_scene_file
    from weekend_tracer.scene.presets import get_preset

    hit_mask = False
    if args.scene_file is not None:
        width = args.width or 200
        height = args.height or 100
        samples = args.samples or 100
        scene, camera = load_scene_file(args.scene_file)
    else:
        preset = get_preset(args.scene)
        width = args.width or preset.width
        height = args.height or preset.height
        samples = args.samples or preset.samples
        hit_mask = preset.hit_mask
        scene, camera = preset.create(aspect_ratio=width / height, seed=args.seed)

    if args.shading is not None:
        hit_mask = args.shading == "hit_mask"
    shading = ShadingMode.HIT_MASK if hit_mask else ShadingMode.PATH_TRACE

    gamma = args.gamma
    if gamma is None:
        gamma = 1.0 if hit_mask else 2.0

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0.0
        logger.info(
            "Progress: %d/%d samples (%.1f%%) - %.1f spp/s",
            current,
            target,
            100.0 * current / target,
            samples_per_sec,
        )

    image = render(
        camera,
        scene,
        width,
        height,
        samples,
        jitter=not args.no_jitter,
        shading=shading,
        batch_size=args.batch_size,
        callback=progress_callback,
    )

    save_image(args.output, image, gamma=gamma)
    logger.info("Saved to %s (%.2fs)", args.output.absolute(), time.time() - start_time)

    if args.preview:
        from weekend_tracer.preview.display import show_preview

        show_preview(image, gamma=gamma)

    return args.output


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        backend = init_runtime(args.arch, seed=args.seed)
        logger.info("Using %s backend", backend.upper())
        render_to_file(args)
        return 0
    except Exception as e:
        logger.error("Error: %s", e)
        logger.debug("Traceback", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
