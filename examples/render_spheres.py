#!/usr/bin/env python3
"""Render a sphere scene to an image file.

This script renders one of the preset scenes (or a JSON scene file) with
either the Taichi parallel renderer or the double precision reference
renderer, printing progress as it goes.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 400)
    --height HEIGHT       Image height in pixels (default: 225)
    --samples SAMPLES     Samples per pixel (default: 50)
    --depth DEPTH         Maximum bounces per sample (default: 50)
    --seed SEED           Random seed (default: 0)
    --scene NAME          Preset scene (default: three_spheres)
    --scene-file PATH     JSON scene file (overrides --scene, keeps its camera)
    --backend NAME        "taichi" or "python" (default: taichi)
    --arch NAME           Taichi arch, "cpu" or "gpu" (default: cpu)
    --output OUTPUT       Output file; .ppm writes plain PPM (default: image.png)
    --batch-size SIZE     Samples per progress update (default: 10)
    --quiet               Suppress progress output
    --verbose             Enable debug logging

Example:
    python -m examples.render_spheres --scene random_spheres --samples 100 --arch gpu
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from pathtracer.config import RenderConfig, init_taichi


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    defaults = RenderConfig()
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width,
                        help=f"Image width in pixels (default: {defaults.width})")
    parser.add_argument("--height", type=int, default=defaults.height,
                        help=f"Image height in pixels (default: {defaults.height})")
    parser.add_argument("--samples", type=int, default=defaults.samples_per_pixel,
                        help=f"Samples per pixel (default: {defaults.samples_per_pixel})")
    parser.add_argument("--depth", type=int, default=defaults.max_depth,
                        help=f"Maximum bounces per sample (default: {defaults.max_depth})")
    parser.add_argument("--seed", type=int, default=defaults.seed,
                        help=f"Random seed (default: {defaults.seed})")
    parser.add_argument("--scene", type=str, default=defaults.scene,
                        help=f"Preset scene (default: {defaults.scene})")
    parser.add_argument("--scene-file", type=str, default=None,
                        help="JSON scene file, rendered with the preset scene's camera")
    parser.add_argument("--backend", type=str, default=defaults.backend,
                        choices=["taichi", "python"],
                        help=f"Renderer backend (default: {defaults.backend})")
    parser.add_argument("--arch", type=str, default=defaults.arch,
                        choices=["cpu", "gpu"],
                        help=f"Taichi architecture (default: {defaults.arch})")
    parser.add_argument("--output", type=str, default=defaults.output,
                        help=f"Output file path (default: {defaults.output})")
    parser.add_argument("--batch-size", type=int, default=10,
                        help="Samples per progress update (default: 10)")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def render(config: RenderConfig, batch_size: int = 10, quiet: bool = False) -> Path:
    """Render the configured scene and save it.

    Args:
        config: Validated render settings.
        batch_size: Samples between progress updates (taichi backend).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any kernel is compiled
    from pathtracer.scene.presets import build_scene
    from pathtracer.scene.world import load_scene

    world, camera = build_scene(config.scene, config.aspect_ratio, seed=config.seed)
    if config.scene_file is not None:
        world = load_scene(config.scene_file)

    if not quiet:
        print(
            f"Rendering {len(world)} objects at {config.width}x{config.height}, "
            f"{config.samples_per_pixel} spp ({config.backend} backend)..."
        )

    start_time = time.time()
    output_file = Path(config.output)

    if config.backend == "python":
        from pathtracer.core.integrator import render_image
        from pathtracer.preview.export import ImageBuffer

        def row_callback(done: int, total: int) -> None:
            if not quiet:
                print(f"\r  Scanlines remaining: {total - done:4d}", end="", flush=True)

        buffer = ImageBuffer(config.width, config.height)
        render_image(
            camera,
            world,
            config.width,
            config.height,
            config.samples_per_pixel,
            config.max_depth,
            buffer,
            seed=config.seed,
            callback=row_callback,
        )
        if output_file.suffix.lower() == ".ppm":
            buffer.write_ppm(output_file)
        else:
            buffer.save_png(output_file)
    else:
        from pathtracer.core.progressive import ProgressiveRenderer

        def progress_callback(current: int, target: int) -> None:
            if not quiet:
                elapsed = time.time() - start_time
                progress_pct = (current / target) * 100 if target > 0 else 0
                samples_per_sec = current / elapsed if elapsed > 0 else 0
                print(
                    f"\r  Progress: {current}/{target} samples "
                    f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                    end="",
                    flush=True,
                )

        renderer = ProgressiveRenderer(config.width, config.height, config.max_depth)
        renderer.load_scene(world, camera)
        renderer.render(
            num_samples=config.samples_per_pixel,
            batch_size=batch_size,
            callback=progress_callback,
        )
        renderer.save_image(output_file)

    if not quiet:
        print()  # Newline after progress
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        config = RenderConfig(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            seed=args.seed,
            scene=args.scene,
            scene_file=args.scene_file,
            backend=args.backend,
            arch=args.arch,
            output=args.output,
        )
        if config.backend == "taichi":
            backend = init_taichi(config.arch, config.seed)
            if not args.quiet:
                print(f"Using {backend.upper()} backend")
        render(config, batch_size=args.batch_size, quiet=args.quiet)
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
