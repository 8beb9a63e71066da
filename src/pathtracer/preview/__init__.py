"""Preview module for output and visualization.

Components:
    export: ImageBuffer pixel sink, PPM and PNG output
    interactive: Taichi GGUI-based interactive preview window

Example:
    >>> from pathtracer.preview import ImageBuffer
    >>> buffer = ImageBuffer(400, 225)
    >>> render_image(camera, world, 400, 225, 50, 50, buffer)
    >>> buffer.write_ppm("image.ppm")

For interactive GGUI preview:
    >>> from pathtracer.preview import InteractivePreview
    >>> preview = InteractivePreview(400, 225)
    >>> preview.set_scene(world, camera)
    >>> preview.run_reactive()
"""

from pathtracer.preview.export import (
    ImageBuffer,
    compute_rmse,
    image_to_uint8,
    save_png,
    save_uint8_image,
    write_ppm,
)
from pathtracer.preview.interactive import InteractivePreview

__all__ = [
    "InteractivePreview",
    "ImageBuffer",
    "image_to_uint8",
    "save_png",
    "save_uint8_image",
    "write_ppm",
    "compute_rmse",
]
