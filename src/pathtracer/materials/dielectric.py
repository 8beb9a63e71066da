"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when (n1 / n2) * sin(theta1) > 1

The surrounding medium is always taken to be vacuum (index 1.0): a ray
entering through the front face uses the ratio 1 / refractive_index, a ray
leaving through the back face uses refractive_index. Nested media are not
tracked.

Dielectrics are lossless here, so the attenuation is always white.

Example:
    >>> glass = Dielectric(refractive_index=1.5)
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, reflect, refract
from pathtracer.core.sampling import Rng
from pathtracer.core.vec3 import Color
from pathtracer.geometry.hittable import HitRecord
from pathtracer.materials.material import Material, MaterialType, ScatterResult

# Type alias for 3D vectors
vec3 = tm.vec3

WHITE = Color(1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Dielectric(Material):
    """Dielectric (glass/water) material.

    Attributes:
        refractive_index: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4

    Raises:
        ValueError: If the refractive index is not positive.
    """

    material_type: ClassVar[MaterialType] = MaterialType.DIELECTRIC

    refractive_index: float

    def __post_init__(self) -> None:
        if self.refractive_index <= 0.0:
            raise ValueError(
                f"Index of refraction = {self.refractive_index} must be positive."
            )

    def refraction_ratio(self, front_face: bool) -> float:
        """Return n_incident / n_transmitted for the side the ray hit."""
        return 1.0 / self.refractive_index if front_face else self.refractive_index

    def scatter(self, ray_in: Ray, rec: HitRecord, rng: Rng) -> ScatterResult:
        refraction_ratio = self.refraction_ratio(rec.front_face)
        unit_direction = ray_in.direction.normalized()

        cos_theta = min(-unit_direction.dot(rec.normal), 1.0)
        sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))

        if refraction_ratio * sin_theta > 1.0:
            # Total internal reflection
            direction = unit_direction.reflect(rec.normal)
        else:
            direction = unit_direction.refract(rec.normal, refraction_ratio)

        return Ray(rec.point, direction), WHITE

    def to_dict(self) -> dict[str, Any]:
        return {"type": "dielectric", "refractive_index": self.refractive_index}


@ti.func
def will_reflect(ior: ti.f32, unit_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if total internal reflection will occur, 0 otherwise.
    """
    refraction_ratio = 1.0 / ior
    if front_face == 0:
        refraction_ratio = ior

    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))

    return 1 if refraction_ratio * sin_theta > 1.0 else 0


@ti.func
def scatter_dielectric(ior: ti.f32, incident_direction: vec3, normal: vec3, front_face: ti.i32):
    """Kernel counterpart of Dielectric.scatter.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction.
        normal: The surface normal facing the incident ray (normalized).
        front_face: 1 if the ray hit the outside of the surface, 0 otherwise.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    refraction_ratio = 1.0 / ior
    if front_face == 0:
        refraction_ratio = ior

    unit_direction = tm.normalize(incident_direction)
    scattered_direction = vec3(0.0, 0.0, 0.0)
    if will_reflect(ior, unit_direction, normal, front_face):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, refraction_ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0)
