"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface always scatters and attenuates by its own albedo.
The scatter direction is the surface normal plus a random unit vector drawn
uniformly from the surface of the unit sphere. The resulting directions are
cosine-distributed about the normal, which matches the ideal diffuse BRDF:

    BRDF = albedo / pi
    pdf = cos(theta) / pi
    attenuation = (BRDF * cos_theta) / pdf = albedo

Example:
    >>> from pathtracer.core.vec3 import Color
    >>> material = Lambertian(Color(0.5, 0.5, 0.5))
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, near_zero, random_unit_vector
from pathtracer.core.sampling import Rng
from pathtracer.core.sampling import random_unit_vector as sample_unit_vector
from pathtracer.core.vec3 import Color
from pathtracer.geometry.hittable import HitRecord
from pathtracer.materials.material import (
    Material,
    MaterialType,
    ScatterResult,
    validate_albedo,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Lambertian(Material):
    """Lambertian (ideal diffuse) material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).

    Raises:
        ValueError: If any albedo component is outside [0, 1].
    """

    material_type: ClassVar[MaterialType] = MaterialType.LAMBERTIAN

    albedo: Color

    def __post_init__(self) -> None:
        validate_albedo(self.albedo)

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: Rng) -> ScatterResult:
        scatter_direction = rec.normal + sample_unit_vector(rng)

        # The random vector can almost exactly cancel the normal
        if scatter_direction.near_zero():
            scatter_direction = rec.normal

        return Ray(rec.point, scatter_direction), self.albedo

    def to_dict(self) -> dict[str, Any]:
        return {"type": "lambertian", "albedo": list(self.albedo.as_tuple())}


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Kernel counterpart of Lambertian.scatter.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The surface normal at the hit point (normalized).

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    scattered_direction = normal + random_unit_vector()
    if near_zero(scattered_direction):
        scattered_direction = normal
    return scattered_direction, albedo
