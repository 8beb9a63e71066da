"""Three-component vector value type for the reference (double precision) path tracer.

This module provides the Vec3 dataclass used throughout the Python-side
renderer for points, directions and linear RGB colors. Vectors are immutable:
every operator returns a new instance, so they can be shared and copied freely.

The kernel-side renderer uses ``taichi.math.vec3`` instead; see
``pathtracer.core.ray`` for the Taichi helpers.

Example:
    >>> from pathtracer.core.vec3 import Vec3
    >>> a = Vec3(1.0, 0.0, 0.0)
    >>> b = Vec3(0.0, 1.0, 0.0)
    >>> a.cross(b)
    Vec3(x=0.0, y=0.0, z=1.0)
    >>> (a + b).length()
    1.4142135623730951
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class Vec3:
    """An immutable 3D vector of double precision floats.

    Index 0 is x, 1 is y and 2 is z.

    Attributes:
        x: The first component.
        y: The second component.
        z: The third component.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def __add__(self, other: Vec3 | float) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)
        return Vec3(self.x + other, self.y + other, self.z + other)

    def __radd__(self, other: float) -> Vec3:
        return self.__add__(other)

    def __sub__(self, other: Vec3 | float) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)
        return Vec3(self.x - other, self.y - other, self.z - other)

    def __mul__(self, other: Vec3 | float) -> Vec3:
        # Vec3 * Vec3 is componentwise (used for color attenuation)
        if isinstance(other, Vec3):
            return Vec3(self.x * other.x, self.y * other.y, self.z * other.z)
        return Vec3(self.x * other, self.y * other, self.z * other)

    def __rmul__(self, other: float) -> Vec3:
        return self.__mul__(other)

    def __truediv__(self, scalar: float) -> Vec3:
        if scalar == 0.0:
            return Vec3(
                ieee_divide(self.x, scalar),
                ieee_divide(self.y, scalar),
                ieee_divide(self.z, scalar),
            )
        return Vec3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def __getitem__(self, index: int) -> float:
        if index == 0:
            return self.x
        if index == 1:
            return self.y
        if index == 2:
            return self.z
        raise IndexError(f"Vec3 index out of range: {index}")

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def __len__(self) -> int:
        return 3

    # =========================================================================
    # Products and norms
    # =========================================================================

    def dot(self, other: Vec3) -> float:
        """Compute the dot product (sum of componentwise products)."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        """Compute the right-handed cross product self x other."""
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length_squared(self) -> float:
        """Return the squared Euclidean length (dot with self)."""
        return self.dot(self)

    def length(self) -> float:
        """Return the Euclidean length."""
        return math.sqrt(self.length_squared())

    def normalized(self) -> Vec3:
        """Return the unit vector in the same direction.

        Normalizing a zero vector is undefined: the result has NaN
        components and no exception is raised. Callers must avoid it (for
        example when two coincident points are subtracted).
        """
        return self / self.length()

    def near_zero(self) -> bool:
        """Return True if every component is within 1e-8 of zero."""
        s = 1e-8
        return abs(self.x) < s and abs(self.y) < s and abs(self.z) < s

    # =========================================================================
    # Optics
    # =========================================================================

    def reflect(self, normal: Vec3) -> Vec3:
        """Mirror this direction about a unit normal: v - 2(v.n)n."""
        return self - normal * (2.0 * self.dot(normal))

    def refract(self, normal: Vec3, eta_ratio: float) -> Vec3:
        """Refract this unit direction through a surface with unit normal.

        Splits the refracted ray into components perpendicular and parallel
        to the normal (Snell's law). The caller is responsible for checking
        total internal reflection first.

        Args:
            normal: Unit surface normal facing against this direction.
            eta_ratio: Ratio of refractive indices (incident / transmitted).

        Returns:
            The refracted direction.
        """
        cos_theta = min(-self.dot(normal), 1.0)
        r_out_perp = (self + normal * cos_theta) * eta_ratio
        r_out_parallel = normal * -math.sqrt(abs(1.0 - r_out_perp.length_squared()))
        return r_out_perp + r_out_parallel

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_iterable(cls, values) -> Vec3:
        """Build a vector from any three-item sequence such as a tuple or list."""
        x, y, z = values
        return cls(float(x), float(y), float(z))


def ieee_divide(numerator: float, denominator: float) -> float:
    """Divide with IEEE 754 semantics: x / 0 is a signed infinity and 0 / 0 is NaN."""
    if denominator != 0.0:
        return numerator / denominator
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


# A point in 3D space
Point3 = Vec3

# Linear RGB color with each channel normally in [0, 1]
Color = Vec3
