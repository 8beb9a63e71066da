"""Material interface and the closed set of material kinds.

A material answers one question: given an incoming ray and the hit record
where it struck a surface, does the light scatter, and if so along which
ray and with what color attenuation? ``None`` means the ray was absorbed,
which is a normal outcome rather than an error.

The set of kinds is fixed (Lambertian, Metal, Dielectric). MaterialType
tags them so the data-parallel renderer can dispatch on an integer inside
its kernels.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import IntEnum
from typing import Any, ClassVar

from pathtracer.core.ray import Ray
from pathtracer.core.sampling import Rng
from pathtracer.core.vec3 import Color
from pathtracer.geometry.hittable import HitRecord


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the parallel path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Result of a successful scatter: the outgoing ray and its attenuation color
ScatterResult = tuple[Ray, Color]


class Material(ABC):
    """Base class for surface materials."""

    material_type: ClassVar[MaterialType]

    @abstractmethod
    def scatter(self, ray_in: Ray, rec: HitRecord, rng: Rng) -> ScatterResult | None:
        """Scatter an incoming ray at a hit point.

        Args:
            ray_in: The incoming ray.
            rec: The hit record of the ray on the surface.
            rng: Random source for stochastic scattering.

        Returns:
            (scattered_ray, attenuation) or None if the ray is absorbed.
        """

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Export the material parameters for scene serialization."""


def validate_albedo(albedo: Sequence[float]) -> None:
    """Check that every albedo component lies in [0, 1].

    Raises:
        ValueError: If a component is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def material_from_dict(data: dict[str, Any]) -> Material:
    """Create a material from its serialized form.

    Args:
        data: Dictionary with a "type" key ("lambertian", "metal" or
            "dielectric") and the type's parameters.

    Returns:
        The material instance.

    Raises:
        ValueError: If the material type is unknown.
    """
    from pathtracer.core.vec3 import Vec3
    from pathtracer.materials.dielectric import Dielectric
    from pathtracer.materials.lambertian import Lambertian
    from pathtracer.materials.metal import Metal

    mat_type = str(data.get("type", "")).lower()
    if mat_type == "lambertian":
        return Lambertian(Vec3.from_iterable(data.get("albedo", [0.5, 0.5, 0.5])))
    if mat_type == "metal":
        return Metal(
            Vec3.from_iterable(data.get("albedo", [0.8, 0.8, 0.8])),
            float(data.get("fuzz", 0.0)),
        )
    if mat_type == "dielectric":
        return Dielectric(float(data.get("refractive_index", 1.5)))
    raise ValueError(f"Unknown material type: {mat_type!r}")
