"""Ray data structures and vector utilities for both rendering backends.

This module provides the Ray value type used by the reference renderer and
the Taichi functions used inside the data-parallel kernels:

- ``Ray``: origin + direction with parametric evaluation ``at(t)``
- ``reflect`` / ``refract``: mirror reflection and Snell refraction
- ``random_in_unit_sphere`` / ``random_unit_vector`` / ``random_in_unit_disk``:
  rejection samplers driven by Taichi's per-thread random stream

Example:
    >>> from pathtracer.core.ray import Ray
    >>> from pathtracer.core.vec3 import Vec3
    >>> ray = Ray(origin=Vec3(0.0, 0.0, 0.0), direction=Vec3(0.0, 0.0, -1.0))
    >>> ray.at(5.0)
    Vec3(x=0.0, y=0.0, z=-5.0)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.vec3 import Point3, Vec3

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True, slots=True)
class Ray:
    """A ray P(t) = origin + t * direction.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. It is not required to be
            unit length.
    """

    origin: Point3
    direction: Vec3

    def at(self, t: float) -> Point3:
        """Compute the point along the ray at parameter t.

        Args:
            t: The parameter value. Positive values are in front of the origin.

        Returns:
            The point origin + t * direction.
        """
        return self.origin + self.direction * t


# =============================================================================
# Kernel-side Vector Utilities
# =============================================================================


@ti.func
def ray_at(origin: vec3, direction: vec3, t: ti.f32) -> vec3:
    """Kernel counterpart of Ray.at."""
    return origin + t * direction


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal: I - 2(I.N)N."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface.

    Uses the perpendicular/parallel decomposition of Snell's law. Total
    internal reflection must be ruled out by the caller.

    Args:
        unit_incident: The incoming direction (normalized).
        normal: The surface normal facing the incident ray (normalized).
        eta_ratio: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(-tm.dot(unit_incident, normal), 1.0)
    r_out_perp = eta_ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * normal
    return r_out_perp + r_out_parallel


# =============================================================================
# Kernel-side Random Sampling
# =============================================================================


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Rejection sampling: draw uniformly in [-1, 1]^3 until the squared length
    is below 1. Taichi functions cannot return from inside a loop, so the
    loop is bounded and tracks a found flag instead.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
            )
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return tm.normalize(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for the thin-lens depth-of-field jitter.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p
