"""Geometry module for ray-surface intersection.

Components:
    hittable: HitRecord and the Hittable protocol
    sphere: Sphere primitive (Python and Taichi intersection)
"""

from .hittable import HitRecord, Hittable
from .sphere import Sphere, SurfaceHit, hit_sphere

__all__ = [
    "HitRecord",
    "Hittable",
    "Sphere",
    "SurfaceHit",
    "hit_sphere",
]
