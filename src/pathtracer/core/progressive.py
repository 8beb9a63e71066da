"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the parallel renderer that
supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks for UI updates
- Easy reset and re-render functionality

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.presets import three_spheres_scene
    >>>
    >>> world, camera = three_spheres_scene()
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.load_scene(world, camera)
    >>> renderer.render(100)  # Render 100 SPP
    >>> image = renderer.get_image_numpy()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.camera.camera import Camera
from pathtracer.core.integrator import MAX_DEPTH
from pathtracer.core.parallel import ParallelRenderer
from pathtracer.preview.export import image_to_uint8, save_uint8_image, write_ppm
from pathtracer.scene.world import World

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps the loaded scene so that ``resize`` can rebuild the
    render target without the caller uploading the scene again.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget per sample.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Bounce budget per sample.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._max_depth = max_depth
        self._backend = ParallelRenderer(width, height, max_depth)
        self._scene: tuple[World, Camera] | None = None

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._backend.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._backend.height

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return self._backend.sample_count

    def load_scene(self, world: World, camera: Camera) -> None:
        """Upload a scene and reset the accumulator.

        Raises:
            ValueError: If the world cannot be packed for the kernels.
        """
        self._backend.load_scene(world, camera)
        self._scene = (world, camera)

    def set_camera(self, camera: Camera) -> None:
        """Swap the camera for the loaded world and reset the accumulator.

        Raises:
            RuntimeError: If no scene has been loaded.
        """
        if self._scene is None:
            raise RuntimeError("No scene loaded. Call load_scene() first.")
        self.load_scene(self._scene[0], camera)

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        self._backend.clear()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Args:
            width: New image width in pixels.
            height: New image height in pixels.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._backend = ParallelRenderer(width, height, self._max_depth)
        if self._scene is not None:
            self._backend.load_scene(*self._scene)
        logger.debug("Resized render target to %dx%d", width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
                A larger batch size reduces callback overhead but provides
                less frequent updates.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            RuntimeError: If no scene has been loaded.

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
        """Render samples progressively, yielding progress after each batch.

        This is a generator-based alternative to render() with callbacks,
        useful for iterative processing or cancellation.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return

        batch_size = max(batch_size, 1)
        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._backend.render(batch)
            # Make kernel results visible before reporting progress
            ti.sync()
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image(self) -> ti.MatrixField:
        """Get the raw Taichi color buffer field, indexed (x, y)."""
        return self._backend.get_field()

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered linear image.

        Returns:
            NumPy array of shape (height, width, 3), top row first, with
            values clamped to [0, 1].
        """
        return self._backend.get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image tone mapped to 8 bits.

        Uses the same gamma 2 mapping as ``tone_map``.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image to a file.

        Args:
            filepath: Path to save the image (e.g., "output.png"). A ".ppm"
                suffix writes plain-text PPM; other formats go through Pillow.
        """
        if Path(filepath).suffix.lower() == ".ppm":
            write_ppm(self.get_image_uint8(), filepath)
        else:
            save_uint8_image(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
