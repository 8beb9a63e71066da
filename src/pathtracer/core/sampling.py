"""Random sampling utilities for the reference renderer.

All randomness on the Python side flows through ``numpy.random.Generator``
instances that are passed explicitly to every function that needs them.
There is no module-level generator: each render (or each pixel) owns its
stream, so results are reproducible for a fixed seed and independent of the
order in which pixels are computed.
"""

from __future__ import annotations

import numpy as np

from pathtracer.core.vec3 import Vec3

# Type alias for the random source passed through the renderer
Rng = np.random.Generator


def make_rng(seed: int | None = None) -> Rng:
    """Create a new random generator.

    Args:
        seed: Optional seed. ``None`` draws fresh OS entropy.

    Returns:
        A NumPy PCG64 generator.
    """
    return np.random.default_rng(seed)


def pixel_rng(seed: int, x: int, y: int) -> Rng:
    """Derive an independent generator for a single pixel.

    The stream depends only on (seed, y, x), so any pixel can be rendered in
    any order, on any worker, and still produce the same color.
    """
    return np.random.default_rng([seed, y, x])


def random_float(rng: Rng, low: float = 0.0, high: float = 1.0) -> float:
    """Return a uniform float in [low, high)."""
    return float(rng.uniform(low, high))


def random_vec(rng: Rng, low: float = 0.0, high: float = 1.0) -> Vec3:
    """Return a vector whose components are uniform in [low, high)."""
    x, y, z = rng.uniform(low, high, 3)
    return Vec3(float(x), float(y), float(z))


def random_in_unit_sphere(rng: Rng) -> Vec3:
    """Return a uniform point strictly inside the unit ball.

    Draws uniformly in [-1, 1]^3 and retries while the squared length is
    at least 1.
    """
    while True:
        p = random_vec(rng, -1.0, 1.0)
        if p.length_squared() < 1.0:
            return p


def random_unit_vector(rng: Rng) -> Vec3:
    """Return a unit vector uniformly distributed on the sphere surface."""
    while True:
        p = random_in_unit_sphere(rng)
        # Points too close to the center would normalize to garbage
        if p.length_squared() > 1e-160:
            return p.normalized()


def random_in_unit_disk(rng: Rng) -> Vec3:
    """Return a uniform point inside the unit disk in the xy-plane."""
    while True:
        x, y = rng.uniform(-1.0, 1.0, 2)
        if x * x + y * y < 1.0:
            return Vec3(float(x), float(y), 0.0)
