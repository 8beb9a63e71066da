"""Path tracing integrator for Monte Carlo light transport (reference backend).

This module evaluates the color carried by a ray by following it through the
scene, bouncing off surfaces according to their material, until it escapes to
the sky, is absorbed, or runs out of bounce budget.

Key features:
    - Material dispatch through Material.scatter
    - Implicit environment light: a white-to-sky-blue vertical gradient
    - Depth-limited paths (exhaustion returns black)
    - Per-pixel Monte Carlo estimate with jittered sample positions
    - Gamma 2 tone mapping to 8-bit channels

The bounce loop is the iterative form of the recursion
``color(ray) = attenuation * color(scattered)``: the attenuation product is
carried as a running throughput instead of on the call stack.

Example:
    >>> from pathtracer.core.integrator import Pixel, render_pixel, tone_map
    >>> from pathtracer.core.sampling import make_rng
    >>> from pathtracer.scene.presets import three_spheres_scene
    >>>
    >>> world, camera = three_spheres_scene()
    >>> color = render_pixel(camera, world, Pixel(200, 112, 400, 225), 10, 50, make_rng(0))
    >>> r, g, b = tone_map(color)
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import NamedTuple, Protocol

from pathtracer.camera.camera import Camera
from pathtracer.core.ray import Ray
from pathtracer.core.sampling import Rng, pixel_rng
from pathtracer.core.vec3 import Color
from pathtracer.scene.world import World

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
MAX_DEPTH = 50

# t_min rejects self-intersections caused by floating-point error in the
# previous bounce's origin ("shadow acne")
T_MIN = 0.001
T_MAX = math.inf

# Environment gradient end points
WHITE = Color(1.0, 1.0, 1.0)
SKY_BLUE = Color(0.5, 0.7, 1.0)
BLACK = Color(0.0, 0.0, 0.0)

# Largest value a channel may take before scaling to 8 bits
MAX_INTENSITY = 0.999


class Pixel(NamedTuple):
    """Pixel coordinates within an image.

    Attributes:
        x: Column, 0 = left.
        y: Row, 0 = bottom.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    x: int
    y: int
    width: int
    height: int


class PixelSink(Protocol):
    """Receiver of rendered pixels, in arbitrary order."""

    def put(self, x: int, y: int, color: Color) -> None: ...


# Type alias for progress callback: receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Path Tracing Core
# =============================================================================


def sky_color(ray: Ray) -> Color:
    """Background color for a ray that escaped the scene.

    Linear interpolation between white (t = 0, horizon) and sky blue
    (t = 1, zenith), keyed by the normalized direction's y-component.
    """
    unit_direction = ray.direction.normalized()
    t = 0.5 * (unit_direction.y + 1.0)
    return WHITE * (1.0 - t) + SKY_BLUE * t


def ray_color(ray: Ray, world: World, depth: int, rng: Rng) -> Color:
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to trace.
        world: The scene.
        depth: Remaining bounce budget. A budget of 0 returns black.
        rng: Random source for scattering.

    Returns:
        The estimated linear RGB color.
    """
    # Throughput (product of attenuations along the path)
    throughput = Color(1.0, 1.0, 1.0)

    for _ in range(depth):
        hit = world.trace(ray, T_MIN, T_MAX)
        if hit is None:
            return throughput * sky_color(ray)

        rec, material = hit
        scattered = material.scatter(ray, rec, rng)
        if scattered is None:
            # Absorbed
            return BLACK

        ray, attenuation = scattered
        throughput = throughput * attenuation

    # Bounce budget exhausted
    return BLACK


def render_pixel(
    camera: Camera,
    world: World,
    pixel: Pixel,
    samples_per_pixel: int,
    max_depth: int,
    rng: Rng,
) -> Color:
    """Render one pixel as the average of independent jittered samples.

    Each sample offsets the pixel position by an independent uniform amount
    in [0, 1) along both axes before mapping it onto the viewport.

    Args:
        camera: The camera generating primary rays.
        world: The scene.
        pixel: Pixel coordinates and image size.
        samples_per_pixel: Number of samples to average.
        max_depth: Bounce budget per sample.
        rng: Random source for jitter, lens and scattering.

    Returns:
        Linear RGB color in [0, 1]^3.
    """
    # Guard against single-row/column images
    x_span = max(pixel.width - 1, 1)
    y_span = max(pixel.height - 1, 1)

    total = BLACK
    for _ in range(samples_per_pixel):
        s = (pixel.x + rng.random()) / x_span
        t = (pixel.y + rng.random()) / y_span
        total = total + ray_color(camera.ray(s, t, rng), world, max_depth, rng)

    return total / samples_per_pixel


def tone_map(color: Color) -> tuple[int, int, int]:
    """Convert a linear color to 8-bit channels.

    Applies gamma 2 (square root), clamps to [0, 0.999] and scales by 256,
    truncating. Clamping strictly below 1 keeps the result within 255.
    This is the only place color-space conversion happens.

    Returns:
        (r, g, b) integers in [0, 255].
    """
    return (_to_byte(color.x), _to_byte(color.y), _to_byte(color.z))


def _to_byte(c: float) -> int:
    if math.isnan(c) or c <= 0.0:
        return 0
    return int(256 * min(math.sqrt(c), MAX_INTENSITY))


def render_image(
    camera: Camera,
    world: World,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int,
    sink: PixelSink,
    *,
    seed: int = 0,
    callback: ProgressCallback | None = None,
) -> None:
    """Render a full image serially into a pixel sink.

    Each pixel draws from its own generator derived from (seed, y, x), so the
    image does not depend on the order in which pixels are visited.

    Args:
        camera: The camera generating primary rays.
        world: The scene.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of samples per pixel.
        max_depth: Bounce budget per sample.
        sink: Receiver of the rendered (x, y, color) triples.
        seed: Base seed for the per-pixel generators.
        callback: Optional callback called after each row with
            (rows_done, total_rows).

    Raises:
        ValueError: If a dimension or sample count is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")

    start_time = time.perf_counter()

    # Top row first, matching the usual image output order
    for row, y in enumerate(range(height - 1, -1, -1)):
        for x in range(width):
            color = render_pixel(
                camera,
                world,
                Pixel(x, y, width, height),
                samples_per_pixel,
                max_depth,
                pixel_rng(seed, x, y),
            )
            sink.put(x, y, color)
        if callback is not None:
            callback(row + 1, height)

    logger.info(
        "Rendered %dx%d at %d spp in %.2fs",
        width,
        height,
        samples_per_pixel,
        time.perf_counter() - start_time,
    )
