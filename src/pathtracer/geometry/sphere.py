"""Sphere primitive with closed-form ray-sphere intersection.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

Expanding and rearranging gives the quadratic equation:
    a*t^2 + 2*h*t + c = 0

where:
    a = dot(direction, direction)
    h = dot(direction, oc)  (half of the traditional b)
    c = dot(oc, oc) - radius^2
    oc = origin - center

With b = 2h the discriminant reduces to h^2 - a*c. A negative discriminant
means no hit; zero (a tangent ray) is a single valid hit.

A negative radius is allowed: the geometry is the sphere of |radius|, but
the outward normal (point - center) / radius points inward. Nesting such a
sphere inside a regular glass sphere models a hollow glass shell.

Example:
    >>> from pathtracer.core.ray import Ray
    >>> from pathtracer.core.vec3 import Vec3
    >>> sphere = Sphere(center=Vec3(0.0, 0.0, -1.0), radius=0.5)
    >>> rec = sphere.is_hit(Ray(Vec3(), Vec3(0.0, 0.0, -1.0)), 0.0, 100.0)
    >>> rec.t
    0.5
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at
from pathtracer.core.vec3 import Point3, ieee_divide
from pathtracer.geometry.hittable import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True, slots=True)
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius. Negative values flip the outward normal.
    """

    center: Point3
    radius: float

    def is_hit(self, ray: Ray, t_min: float, t_max: float) -> HitRecord | None:
        """Test for ray-sphere intersection.

        Takes the smaller root first; if it falls outside [t_min, t_max]
        the larger root is tried.

        Args:
            ray: The ray to test.
            t_min: Minimum t value to consider a valid hit.
            t_max: Maximum t value to consider a valid hit.

        Returns:
            A HitRecord for the nearest valid root, or None on a miss.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0.0:
            return None

        sqrt_d = math.sqrt(discriminant)

        # Find the nearest root in range; a zero direction gives NaN roots,
        # which fall outside every interval
        root = ieee_divide(-half_b - sqrt_d, a)
        if not t_min <= root <= t_max:
            root = ieee_divide(-half_b + sqrt_d, a)
            if not t_min <= root <= t_max:
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius
        return HitRecord.from_outward_normal(ray, point, outward_normal, root)

    def to_dict(self) -> dict[str, object]:
        return {"center": list(self.center.as_tuple()), "radius": self.radius}


# =============================================================================
# Kernel-side Intersection
# =============================================================================


@ti.dataclass
class SurfaceHit:
    """Kernel-side record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 on a miss.
        t: The parameter value along the ray. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit normal oriented against the ray. Only valid if hit == 1.
        front_face: 1 if the ray hit the outside of the surface, 0 otherwise.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SurfaceHit:
    """Kernel counterpart of Sphere.is_hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        center: The sphere center.
        radius: The sphere radius (may be negative).
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SurfaceHit; check the hit field to determine if intersection occurred.
    """
    oc = ray_origin - center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = h * h - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (-h - sqrt_d) / a
        valid = t >= t_min and t <= t_max
        if not valid:
            t = (-h + sqrt_d) / a
            valid = t >= t_min and t <= t_max

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_at(ray_origin, ray_direction, t)
            outward_normal = (hit_point - center) / radius
            if tm.dot(ray_direction, outward_normal) < 0.0:
                is_front_face = 1
                hit_normal = outward_normal
            else:
                is_front_face = 0
                hit_normal = -outward_normal

    return SurfaceHit(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
