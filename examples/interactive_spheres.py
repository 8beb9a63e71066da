#!/usr/bin/env python3
"""Interactive sphere renderer with real-time camera controls.

This script launches an interactive preview window with progressive
rendering and sliders for the camera's field of view, aperture and focus
distance.

Usage:
    python -m examples.interactive_spheres [--scene NAME] [--width W] [--height H]

Controls:
    - FOV: Vertical field of view in degrees
    - Aperture: Lens diameter (0 = pinhole, everything in focus)
    - Focus: Distance to the plane in perfect focus
    - Export PNG: Save current render with timestamp

The renderer uses 1 sample per frame for responsive UI interaction.
Sample count accumulates continuously until a control changes.
"""

from __future__ import annotations

import argparse
import sys

from pathtracer.config import init_taichi


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive sphere renderer.")
    parser.add_argument("--scene", type=str, default="three_spheres",
                        help="Preset scene (default: three_spheres)")
    parser.add_argument("--width", type=int, default=800, help="Window width (default: 800)")
    parser.add_argument("--height", type=int, default=450, help="Window height (default: 450)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    return parser.parse_args()


def main() -> int:
    """Main entry point for the interactive renderer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = parse_args()

    # Initialize Taichi first (before importing modules that compile kernels)
    backend = init_taichi("gpu", args.seed)
    print(f"Taichi backend: {backend.upper()}")

    from pathtracer.preview.interactive import InteractivePreview
    from pathtracer.scene.presets import build_scene

    if not InteractivePreview.is_display_available():
        print("Error: No display available. Cannot run interactive preview.")
        print("This script requires a graphical display environment.")
        return 1

    try:
        world, camera = build_scene(args.scene, args.width / args.height, seed=args.seed)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Creating interactive preview window ({args.width}x{args.height})...")
    preview = InteractivePreview(args.width, args.height)
    preview.set_scene(world, camera)

    print("Starting interactive rendering...")
    print("  - Adjust sliders to move the camera lens")
    print("  - Click 'Export PNG' to save current render")
    print("  - Close window to exit")
    print()

    try:
        preview.run_reactive()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
