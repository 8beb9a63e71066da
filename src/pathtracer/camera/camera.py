"""Thin-lens camera model for primary ray generation.

This module implements a camera that generates primary rays for rendering.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view specification
- Arbitrary aspect ratios
- Defocus blur (depth of field) through a finite aperture

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport has height 2 * tan(vfov / 2) and width height * aspect_ratio,
and sits on the focus plane at focus_distance along -w. With aperture 0
every ray starts at lookfrom (a pinhole); otherwise ray origins are jittered
over a disk of radius aperture / 2 in the u/v plane and aimed at the same
point on the focus plane, which blurs everything off that plane.

Example:
    >>> from pathtracer.camera.camera import Camera, CameraConfig
    >>> camera = Camera(CameraConfig(lookfrom=(0.0, 0.0, 3.0), vfov=60.0))
    >>> ray = camera.ray(0.5, 0.5, rng)  # Ray through image center
    >>> wide = camera.replace(vfov=90.0)  # New camera, original untouched
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, random_in_unit_disk
from pathtracer.core.sampling import Rng
from pathtracer.core.sampling import random_in_unit_disk as sample_in_unit_disk
from pathtracer.core.vec3 import Point3, Vec3

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class CameraConfig:
    """Placement parameters for a camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_distance: Distance from lookfrom to the plane in perfect focus.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 1.0
    aperture: float = 0.0
    focus_distance: float = 1.0


def _to_vec3(a: np.ndarray) -> Vec3:
    return Vec3(float(a[0]), float(a[1]), float(a[2]))


class Camera:
    """Immutable camera state derived once from a CameraConfig.

    Changing any placement parameter means building a new camera, see
    ``replace``.

    Attributes:
        config: The placement parameters this camera was built from.
        origin: Camera position (lookfrom).
        u, v, w: Orthonormal basis (right, up, backward).
        horizontal: Full viewport width vector on the focus plane.
        vertical: Full viewport height vector on the focus plane.
        lower_left_corner: Lower-left corner of the viewport.
        lens_radius: Half the aperture.

    Raises:
        ValueError: If the placement is degenerate (lookfrom equal to lookat,
            vup parallel to the view direction) or a parameter is out of range.
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        self.config = config if config is not None else CameraConfig()
        cfg = self.config

        if not 0.0 < cfg.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {cfg.vfov}")
        if cfg.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {cfg.aspect_ratio}")
        if cfg.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {cfg.aperture}")
        if cfg.focus_distance <= 0.0:
            raise ValueError(f"focus_distance must be positive, got {cfg.focus_distance}")

        # Viewport dimensions at unit distance
        h = math.tan(math.radians(cfg.vfov) / 2.0)
        viewport_height = 2.0 * h
        viewport_width = cfg.aspect_ratio * viewport_height

        # Build orthonormal basis using NumPy (double precision)
        lookfrom = np.array(cfg.lookfrom, dtype=np.float64)
        lookat = np.array(cfg.lookat, dtype=np.float64)
        vup = np.array(cfg.vup, dtype=np.float64)

        w = lookfrom - lookat
        w_len = np.linalg.norm(w)
        if w_len == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        w = w / w_len

        u = np.cross(vup, w)
        u_len = np.linalg.norm(u)
        if u_len == 0.0:
            raise ValueError("vup must not be parallel to the view direction")
        u = u / u_len

        v = np.cross(w, u)

        horizontal = cfg.focus_distance * viewport_width * u
        vertical = cfg.focus_distance * viewport_height * v
        lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - cfg.focus_distance * w

        self.origin: Point3 = _to_vec3(lookfrom)
        self.u = _to_vec3(u)
        self.v = _to_vec3(v)
        self.w = _to_vec3(w)
        self.horizontal = _to_vec3(horizontal)
        self.vertical = _to_vec3(vertical)
        self.lower_left_corner: Point3 = _to_vec3(lower_left)
        self.lens_radius = cfg.aperture / 2.0
        self.focus_distance = cfg.focus_distance

    def replace(self, **changes: Any) -> "Camera":
        """Return a new camera with some placement parameters changed.

        Example:
            >>> camera.replace(lookfrom=(1.0, 2.0, 3.0), aperture=0.1)
        """
        return Camera(dataclasses.replace(self.config, **changes))

    def ray(self, s: float, t: float, rng: Rng) -> Ray:
        """Generate a ray through normalized viewport coordinates (s, t).

        The coordinates are normalized:
        - s = 0: left edge, s = 1: right edge
        - t = 0: bottom edge, t = 1: top edge

        Args:
            s: Horizontal coordinate in [0, 1].
            t: Vertical coordinate in [0, 1].
            rng: Random source for the lens jitter (unused for a pinhole).

        Returns:
            A ray from the (possibly jittered) lens point toward the focus
            plane point for (s, t). The direction is not normalized.
        """
        origin = self.origin
        if self.lens_radius > 0.0:
            rd = sample_in_unit_disk(rng) * self.lens_radius
            origin = origin + self.u * rd.x + self.v * rd.y

        target = self.lower_left_corner + self.horizontal * s + self.vertical * t
        return Ray(origin, target - origin)

    def info(self) -> dict[str, tuple[float, float, float]]:
        """Get the derived camera vectors for debugging.

        Returns:
            Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
        """
        return {
            "origin": self.origin.as_tuple(),
            "u": self.u.as_tuple(),
            "v": self.v.as_tuple(),
            "w": self.w.as_tuple(),
            "horizontal": self.horizontal.as_tuple(),
            "vertical": self.vertical.as_tuple(),
            "lower_left": self.lower_left_corner.as_tuple(),
        }

    def __repr__(self) -> str:
        return f"Camera({self.config!r})"


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(
    origin: vec3,
    lower_left_corner: vec3,
    horizontal: vec3,
    vertical: vec3,
    u: vec3,
    v: vec3,
    lens_radius: ti.f32,
    s: ti.f32,
    t: ti.f32,
):
    """Kernel counterpart of Camera.ray.

    Args:
        origin: Camera position (lookfrom).
        lower_left_corner: Lower-left corner of the viewport.
        horizontal: Full viewport width vector.
        vertical: Full viewport height vector.
        u: Camera right vector.
        v: Camera up vector.
        lens_radius: Half the aperture; 0 for a pinhole.
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A tuple of (ray_origin, ray_direction).
    """
    ray_origin = origin
    if lens_radius > 0.0:
        rd = lens_radius * random_in_unit_disk()
        ray_origin = origin + u * rd.x + v * rd.y

    target = lower_left_corner + s * horizontal + t * vertical
    return ray_origin, target - ray_origin
