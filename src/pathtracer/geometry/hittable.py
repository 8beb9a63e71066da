"""Hit records and the surface intersection protocol.

Every primitive exposes ``is_hit(ray, t_min, t_max)`` and returns either a
HitRecord or ``None``. The record's normal is always oriented against the
incoming ray; ``front_face`` tells whether that is the geometric outward
normal or its negation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pathtracer.core.ray import Ray
from pathtracer.core.vec3 import Point3, Vec3


@dataclass(frozen=True, slots=True)
class HitRecord:
    """Record of a successful ray-surface intersection.

    Attributes:
        point: The 3D point where the ray intersected the surface.
        normal: Unit surface normal pointing into the hemisphere the ray came
            from, so dot(ray.direction, normal) <= 0.
        t: The ray parameter at the intersection.
        front_face: True if the ray hit the outside of the surface.
    """

    point: Point3
    normal: Vec3
    t: float
    front_face: bool

    @classmethod
    def from_outward_normal(
        cls,
        ray: Ray,
        point: Point3,
        outward_normal: Vec3,
        t: float,
    ) -> HitRecord:
        """Build a record, orienting the normal against the incoming ray.

        Args:
            ray: The incoming ray.
            point: The intersection point.
            outward_normal: The geometric outward normal (unit length).
            t: The ray parameter at the intersection.
        """
        front_face = ray.direction.dot(outward_normal) < 0.0
        normal = outward_normal if front_face else -outward_normal
        return cls(point=point, normal=normal, t=t, front_face=front_face)


class Hittable(Protocol):
    """A surface that can be intersected by a ray."""

    def is_hit(self, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
        """Return the nearest intersection with t in [t_min, t_max], if any."""
        ...
