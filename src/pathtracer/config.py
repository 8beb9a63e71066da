"""Render configuration and Taichi runtime setup.

``RenderConfig`` gathers everything a command-line render needs. It is
validated at construction, so an instance that exists is always usable.

Example:
    >>> from pathtracer.config import RenderConfig, init_taichi
    >>> config = RenderConfig(width=800, height=450, samples_per_pixel=100)
    >>> init_taichi(config.arch, config.seed)
    'cpu'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import taichi as ti

from pathtracer.core.integrator import MAX_DEPTH
from pathtracer.scene.presets import SCENES

logger = logging.getLogger(__name__)

BACKENDS = ("taichi", "python")
ARCHS = ("cpu", "gpu")


@dataclass(frozen=True)
class RenderConfig:
    """Settings for a single render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Bounce budget per sample.
        seed: Base seed for all random streams.
        scene: Name of a preset scene (see ``pathtracer.scene.presets``).
        scene_file: Optional JSON scene file, used instead of ``scene``.
        backend: "taichi" for the parallel renderer, "python" for the
            double precision reference renderer.
        arch: Taichi architecture, "cpu" or "gpu".
        output: Output image path; ".ppm" writes plain PPM, anything else
            goes through Pillow.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 50
    max_depth: int = MAX_DEPTH
    seed: int = 0
    scene: str = "three_spheres"
    scene_file: str | None = None
    backend: str = "taichi"
    arch: str = "cpu"
    output: str = "image.png"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"samples_per_pixel must be positive, got {self.samples_per_pixel}"
            )
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}', expected one of {BACKENDS}")
        if self.arch not in ARCHS:
            raise ValueError(f"Unknown arch '{self.arch}', expected one of {ARCHS}")
        if self.scene_file is None and self.scene not in SCENES:
            raise ValueError(
                f"Unknown scene '{self.scene}', expected one of {sorted(SCENES)}"
            )

    @property
    def aspect_ratio(self) -> float:
        """Image width divided by height."""
        return self.width / self.height


def init_taichi(arch: str = "cpu", seed: int = 0) -> str:
    """Initialize Taichi with the requested architecture.

    A GPU request falls back to the CPU backend when no GPU backend is
    available.

    Args:
        arch: "cpu" or "gpu".
        seed: Seed for Taichi's per-thread random generators.

    Returns:
        Name of the backend in use, "gpu" or "cpu".
    """
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, random_seed=seed)
            logger.info("Using GPU backend")
            return "gpu"
        except Exception:
            logger.warning("GPU backend unavailable, falling back to CPU", exc_info=True)

    ti.init(arch=ti.cpu, random_seed=seed)
    logger.info("Using CPU backend")
    return "cpu"
