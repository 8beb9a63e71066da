"""Metal (specular reflective) material implementation.

The reflection formula is:
    R = I - 2(I . N)N

where I is the normalized incident direction and N is the surface normal.
For fuzzy metals the reflected direction is perturbed by a random point in
the unit ball scaled by the fuzz parameter. If the perturbed direction ends
up on or below the surface the ray is absorbed.

Example:
    >>> from pathtracer.core.vec3 import Color
    >>> mirror = Metal(Color(0.8, 0.8, 0.8), fuzz=0.0)
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, random_in_unit_sphere, reflect
from pathtracer.core.sampling import Rng
from pathtracer.core.sampling import random_in_unit_sphere as sample_in_unit_sphere
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
class Metal(Material):
    """Metal (specular reflective) material.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Surface fuzziness. Clamped to [0, 1] at construction:
            0 = perfect mirror, 1 = maximum fuzz.
    """

    material_type: ClassVar[MaterialType] = MaterialType.METAL

    albedo: Color
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        validate_albedo(self.albedo)
        object.__setattr__(self, "fuzz", min(max(float(self.fuzz), 0.0), 1.0))

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: Rng) -> ScatterResult | None:
        reflected = ray_in.direction.normalized().reflect(rec.normal)
        if self.fuzz > 0.0:
            reflected = reflected + sample_in_unit_sphere(rng) * self.fuzz

        # Light escaping below the surface is absorbed
        if reflected.dot(rec.normal) <= 0.0:
            return None
        return Ray(rec.point, reflected), self.albedo

    def to_dict(self) -> dict[str, Any]:
        return {"type": "metal", "albedo": list(self.albedo.as_tuple()), "fuzz": self.fuzz}


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, incident_direction: vec3, normal: vec3):
    """Kernel counterpart of Metal.scatter.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The surface fuzziness in [0, 1].
        incident_direction: The incoming ray direction.
        normal: The surface normal (normalized).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 when the ray is absorbed.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)
    if fuzz > 0.0:
        reflected += fuzz * random_in_unit_sphere()

    did_scatter = 1
    if tm.dot(reflected, normal) <= 0.0:
        did_scatter = 0

    return reflected, albedo, did_scatter
