"""Image output for rendered pixels.

This module provides the pixel sink used by the reference renderer and
helpers for saving rendered images to files.

Supported formats:
    - PPM (plain-text P3, written directly)
    - PNG (8-bit via Pillow)

All 8-bit conversion goes through the gamma 2 mapping of ``tone_map``.

Example:
    >>> from pathtracer.preview.export import ImageBuffer
    >>> from pathtracer.core.integrator import render_image
    >>>
    >>> buffer = ImageBuffer(400, 225)
    >>> render_image(camera, world, 400, 225, 50, 50, buffer)
    >>> buffer.write_ppm("image.ppm")
    >>> buffer.save_png("image.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.core.integrator import MAX_INTENSITY, tone_map
from pathtracer.core.vec3 import Color

if TYPE_CHECKING:
    from pathtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


class ImageBuffer:
    """In-memory 8-bit image that collects rendered pixels.

    Every color goes through ``tone_map`` as it is stored, so the buffer
    holds exactly the bytes written to disk. Pixels are addressed with y = 0
    at the bottom row, matching the camera's viewport coordinates.
    Unwritten pixels are black.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        # Row 0 of the array is the top row of the image
        self._pixels = np.zeros((height, width, 3), dtype=np.uint8)

    def _row(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return self.height - 1 - y

    def put(self, x: int, y: int, color: Color) -> None:
        """Tone map a linear color and store it at pixel (x, y).

        Raises:
            IndexError: If the pixel lies outside the image.
        """
        self._pixels[self._row(x, y), x] = tone_map(color)

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        """Return the stored (r, g, b) bytes of pixel (x, y)."""
        r, g, b = self._pixels[self._row(x, y), x]
        return (int(r), int(g), int(b))

    def to_numpy(self) -> npt.NDArray[np.uint8]:
        """Return a copy of the image, shape (height, width, 3), top row first."""
        return self._pixels.copy()

    def write_ppm(self, target: str | Path | TextIO) -> None:
        """Write the image as plain-text PPM (P3), top row first.

        Args:
            target: File path or an open text stream.
        """
        write_ppm(self._pixels, target)

    def save_png(self, filepath: str | Path) -> None:
        """Save the image as an 8-bit PNG file."""
        save_uint8_image(self._pixels, filepath)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to uint8 for display/export.

    Vectorized form of ``tone_map``: square root, clamp to [0, 0.999],
    scale by 256 and truncate. NaN maps to 0.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0)
    gamma_corrected = np.sqrt(np.clip(linear, 0.0, None))
    return (256.0 * np.minimum(gamma_corrected, MAX_INTENSITY)).astype(np.uint8)


def save_uint8_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB array using Pillow; the format follows the extension."""
    pil_image = PILImage.fromarray(image)
    pil_image.save(filepath)
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def write_ppm(image: npt.NDArray[np.uint8], target: str | Path | TextIO) -> None:
    """Write an 8-bit RGB array as plain-text PPM (P3), first array row first.

    Args:
        image: Array of shape (H, W, 3) with dtype uint8.
        target: File path or an open text stream.
    """
    if isinstance(target, (str, Path)):
        with Path(target).open("w", encoding="ascii") as f:
            _write_ppm_stream(image, f)
        logger.info("Wrote %dx%d PPM to %s", image.shape[1], image.shape[0], target)
    else:
        _write_ppm_stream(image, target)


def _write_ppm_stream(image: npt.NDArray[np.uint8], stream: TextIO) -> None:
    height, width = image.shape[:2]
    stream.write(f"P3\n{width} {height}\n255\n")
    for row in image:
        for r, g, b in row:
            stream.write(f"{r} {g} {b}\n")


def save_png(renderer: ProgressiveRenderer, filepath: str | Path) -> None:
    """Save the current state of a progressive renderer as a PNG file.

    Example:
        >>> renderer = ProgressiveRenderer(400, 225)
        >>> renderer.load_scene(world, camera)
        >>> renderer.render(100)
        >>> save_png(renderer, "output.png")
    """
    save_uint8_image(renderer.get_image_uint8(), filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
