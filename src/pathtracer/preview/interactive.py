"""Interactive preview window using Taichi GGUI.

This module provides an interactive preview window for real-time rendering
using Taichi's ti.ui.Window and canvas system.

Features:
    - Real-time progressive rendering display
    - Support for updating display from numpy arrays or Taichi fields
    - Camera controls (field of view, aperture, focus distance) that reset
      the accumulator when changed
    - Continuous rendering until window closed

Example:
    >>> import numpy as np
    >>> from pathtracer.preview.interactive import InteractivePreview
    >>>
    >>> preview = InteractivePreview(400, 225)
    >>> image = np.zeros((225, 400, 3), dtype=np.float32)
    >>> preview.update_image(image)
    >>> preview.run()

Reactive Rendering Example:
    >>> from pathtracer.scene.presets import three_spheres_scene
    >>>
    >>> preview = InteractivePreview(400, 225)
    >>> preview.set_scene(*three_spheres_scene(aspect_ratio=400 / 225))
    >>> preview.run_reactive()  # Renders continuously until window closed
"""

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING, Any

import numpy as np
import taichi as ti

if TYPE_CHECKING:
    import numpy.typing as npt

    from pathtracer.camera.camera import Camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.world import World

logger = logging.getLogger(__name__)

# Lazy kernel holder - kernel is created on first use after Taichi is initialized
_copy_field_kernel: Any = None


def _get_copy_field_kernel() -> Any:
    """Get or create the field copy kernel.

    The kernel is created lazily to ensure Taichi is initialized first.
    """
    global _copy_field_kernel
    if _copy_field_kernel is None:

        @ti.kernel
        def _kernel(src: ti.template(), dst: ti.template()):
            for i, j in src:
                dst[i, j] = ti.sqrt(ti.max(src[i, j], 0.0))

        _copy_field_kernel = _kernel
    return _copy_field_kernel


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field storing the display image (RGB float).
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Path Tracer - Interactive Preview",
    ) -> None:
        """Initialize the interactive preview.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.

        Note:
            The window is created but not shown until run() is called.
        """
        self.width = width
        self.height = height
        self._title = title
        self._is_initialized = False

        # Defer window creation until run() to support headless checks
        self._window: "ti.ui.Window | None" = None
        self._canvas: "ti.ui.Canvas | None" = None

        self._renderer: "ProgressiveRenderer | None" = None
        self._world: "World | None" = None
        self._camera: "Camera | None" = None
        self._camera_dirty = False

        # Shape is (width, height) for Taichi field, RGB values stored as vec3
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        if self._is_initialized:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> "ti.ui.Window":
        """Get the Taichi GGUI window, initializing if needed."""
        if self._window is None:
            self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> "ti.ui.Canvas":
        if self._canvas is None:
            self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: "npt.NDArray[np.float32]") -> None:
        """Update the display image from a numpy array.

        The image is displayed as given; apply gamma before calling if needed.

        Args:
            image: NumPy array of shape (height, width, 3), top row first,
                with values in [0, 1].

        Raises:
            ValueError: If image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected {expected_shape}"
            )

        # NumPy images are (height, width, channels) with the top row first;
        # Taichi fields are (x, y) with the origin at bottom-left
        image_transposed = np.ascontiguousarray(
            np.transpose(np.flipud(image), (1, 0, 2)), dtype=np.float32
        )
        self.display_image.from_numpy(image_transposed)

    def update_image_from_field(self, field: ti.MatrixField) -> None:
        """Update the display image from a linear Taichi field.

        Applies gamma 2 on the device, avoiding a round trip through NumPy.

        Args:
            field: Taichi Vector.field of shape (width, height) with 3 components.
        """
        kernel = _get_copy_field_kernel()
        kernel(field, self.display_image)

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Display a single frame.

        Call this in a loop for continuous updates.
        """
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Run the main window event loop until the window is closed.

        For integration with a renderer, use is_running() and show_frame()
        directly in your own loop.
        """
        self._initialize_window()

        while self.is_running():
            self.show_frame()

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        # Windows generally always has display
        if os.name == "nt":
            return True

        # On macOS, display is always available if not in SSH
        if os.uname().sysname == "Darwin":
            ssh_connection = os.environ.get("SSH_CONNECTION")
            return not (ssh_connection and not display)

        # On Linux, check for X11 or Wayland
        return bool(display or wayland)

    # =========================================================================
    # Reactive Rendering Support
    # =========================================================================

    def set_scene(self, world: "World", camera: "Camera") -> None:
        """Set the scene for reactive rendering.

        The scene is uploaded to the renderer and the accumulator reset on
        the next frame.
        """
        self._world = world
        self._camera = camera
        self._camera_dirty = True

    def set_camera(self, camera: "Camera") -> None:
        """Replace the camera; the accumulator resets on the next frame."""
        self._camera = camera
        self._camera_dirty = True

    def _ensure_renderer(self) -> "ProgressiveRenderer":
        # Import here to avoid circular imports
        from pathtracer.core.progressive import ProgressiveRenderer

        if self._renderer is None:
            self._renderer = ProgressiveRenderer(self.width, self.height)
        return self._renderer

    def _apply_pending_changes(self) -> None:
        if not self._camera_dirty:
            return
        if self._world is None or self._camera is None:
            raise RuntimeError("No scene set. Call set_scene() first.")

        renderer = self._ensure_renderer()
        renderer.load_scene(self._world, self._camera)
        self._camera_dirty = False
        logger.debug("Scene uploaded, accumulator reset")

    def get_renderer(self) -> "ProgressiveRenderer | None":
        """Get the underlying progressive renderer, or None if not created yet."""
        return self._renderer

    def get_sample_count(self) -> int:
        """Get the number of samples per pixel rendered so far."""
        if self._renderer is None:
            return 0
        return self._renderer.sample_count

    def run_reactive(self) -> None:
        """Run the reactive rendering loop.

        On each frame:
        1. Reads the camera sliders
        2. Rebuilds the camera if they changed (resets the accumulator)
        3. Renders 1 sample per pixel
        4. Displays the gamma corrected result

        Continues until the window is closed.

        GUI Controls:
            - Field of view slider (10 to 120 degrees)
            - Aperture slider (0.0 to 2.0)
            - Focus distance slider (0.1 to 20.0)
            - Export PNG button

        Raises:
            RuntimeError: If no scene has been set.
        """
        if self._camera is None:
            raise RuntimeError("No scene set. Call set_scene() first.")

        self._initialize_window()
        renderer = self._ensure_renderer()

        while self.is_running():
            self._apply_pending_changes()

            # Render 1 sample for responsive UI
            renderer.render(num_samples=1)
            self.update_image_from_field(renderer.get_image())

            self._draw_gui_panel()
            self.show_frame()

    def _draw_gui_panel(self) -> None:
        """Draw the camera controls and export button."""
        assert self._camera is not None
        config = self._camera.config

        with self.window.GUI.sub_window("Camera", 0.02, 0.02, 0.3, 0.2) as gui:
            gui.text(f"Samples: {self.get_sample_count()}")
            new_vfov = gui.slider_float("FOV", config.vfov, minimum=10.0, maximum=120.0)
            new_aperture = gui.slider_float(
                "Aperture", config.aperture, minimum=0.0, maximum=2.0
            )
            new_focus = gui.slider_float(
                "Focus", config.focus_distance, minimum=0.1, maximum=20.0
            )
            if gui.button("Export PNG"):
                self._export_png()

        changed = (
            abs(new_vfov - config.vfov) > 1e-6
            or abs(new_aperture - config.aperture) > 1e-6
            or abs(new_focus - config.focus_distance) > 1e-6
        )
        if changed:
            self.set_camera(
                self._camera.replace(
                    vfov=new_vfov, aperture=new_aperture, focus_distance=new_focus
                )
            )

    def _export_png(self) -> None:
        """Export the current rendered image to a timestamped PNG file.

        Generates a filename in the format render_YYYYMMDD_HHMMSS.png.
        """
        from pathtracer.preview.export import save_png

        renderer = self.get_renderer()
        if renderer is None:
            logger.error("No renderer available for export")
            return

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"render_{timestamp}.png"
        save_png(renderer, filename)
        print(f"Exported: {filename} ({self.get_sample_count()} SPP)")
