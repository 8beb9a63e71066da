"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    vec3: Immutable double precision vector used for points and colors
    ray: Ray data structure and Taichi vector helpers
    sampling: Seedable random sampling for the reference renderer
    integrator: Reference path tracing (ray_color, render_pixel, tone_map)
    parallel: Taichi per-pixel parallel renderer
    progressive: Progressive accumulation wrapper around the parallel renderer

The integrator, parallel and progressive modules depend on camera and scene
and are not re-exported here; import them from their modules directly.
"""

from .ray import (
    Ray,
    length_squared,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
)
from .sampling import Rng, make_rng, pixel_rng
from .vec3 import Color, Point3, Vec3

__all__ = [
    # Value types
    "Vec3",
    "Point3",
    "Color",
    "Ray",
    # Sampling
    "Rng",
    "make_rng",
    "pixel_rng",
    # Kernel helpers
    "ray_at",
    "length_squared",
    "near_zero",
    "reflect",
    "refract",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
