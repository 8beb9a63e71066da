"""Unit tests for the thin-lens camera.

Tests cover:
- Basis vectors and viewport geometry
- Ray generation through viewport coordinates
- Defocus blur (lens sampling)
- Validation of degenerate placements
- Kernel-side ray generation
"""

import math

import pytest
import taichi as ti

from pathtracer.camera.camera import Camera, CameraConfig
from pathtracer.core.vec3 import Vec3


def _close(a, b, tol=1e-12):
    return (a - b).length() < tol


class TestCameraGeometry:
    """Tests for the derived camera state."""

    def test_default_camera(self):
        """Default camera: origin, looking down -z, 90 degree vfov, square viewport."""
        camera = Camera()
        assert camera.origin == Vec3(0.0, 0.0, 0.0)
        assert _close(camera.w, Vec3(0.0, 0.0, 1.0))
        assert _close(camera.u, Vec3(1.0, 0.0, 0.0))
        assert _close(camera.v, Vec3(0.0, 1.0, 0.0))
        assert _close(camera.horizontal, Vec3(2.0, 0.0, 0.0))
        assert _close(camera.vertical, Vec3(0.0, 2.0, 0.0))
        assert _close(camera.lower_left_corner, Vec3(-1.0, -1.0, -1.0))
        assert camera.lens_radius == 0.0

    def test_basis_is_orthonormal(self):
        """u, v and w are unit length and mutually perpendicular."""
        camera = Camera(CameraConfig(lookfrom=(3.0, 3.0, 2.0), lookat=(0.0, 0.0, -1.0), vfov=20.0))
        for a in (camera.u, camera.v, camera.w):
            assert abs(a.length() - 1.0) < 1e-12
        assert abs(camera.u.dot(camera.v)) < 1e-12
        assert abs(camera.u.dot(camera.w)) < 1e-12
        assert abs(camera.v.dot(camera.w)) < 1e-12

    def test_aspect_ratio_scales_width(self):
        """The viewport width is the height times the aspect ratio."""
        camera = Camera(CameraConfig(aspect_ratio=16.0 / 9.0))
        assert abs(camera.horizontal.length() / camera.vertical.length() - 16.0 / 9.0) < 1e-12

    def test_viewport_on_focus_plane(self):
        """The viewport center sits focus_distance in front of the camera."""
        camera = Camera(CameraConfig(focus_distance=10.0))
        center = camera.lower_left_corner + camera.horizontal * 0.5 + camera.vertical * 0.5
        assert _close(center, Vec3(0.0, 0.0, -10.0), 1e-9)
        assert abs(camera.vertical.length() - 20.0) < 1e-9

    def test_vfov_sets_viewport_height(self):
        """The viewport height is 2 * tan(vfov / 2) at unit focus distance."""
        camera = Camera(CameraConfig(vfov=60.0))
        expected = 2.0 * math.tan(math.radians(30.0))
        assert abs(camera.vertical.length() - expected) < 1e-12


class TestCameraRays:
    """Tests for Camera.ray."""

    def test_center_ray_points_at_lookat(self, rng):
        """The ray through (0.5, 0.5) points at lookat."""
        camera = Camera(CameraConfig(lookfrom=(1.0, 2.0, 3.0), lookat=(0.0, 0.0, -1.0)))
        ray = camera.ray(0.5, 0.5, rng)
        expected = (Vec3(0.0, 0.0, -1.0) - Vec3(1.0, 2.0, 3.0)).normalized()
        assert ray.origin == Vec3(1.0, 2.0, 3.0)
        assert _close(ray.direction.normalized(), expected, 1e-12)

    def test_corner_rays(self, rng):
        """Corner coordinates map to the corners of the viewport."""
        camera = Camera()
        assert _close(camera.ray(0.0, 0.0, rng).direction, Vec3(-1.0, -1.0, -1.0))
        assert _close(camera.ray(1.0, 1.0, rng).direction, Vec3(1.0, 1.0, -1.0))
        assert _close(camera.ray(1.0, 0.0, rng).direction, Vec3(1.0, -1.0, -1.0))

    def test_pinhole_ignores_rng(self):
        """With aperture 0 the ray does not depend on the random source."""
        from pathtracer.core.sampling import make_rng

        camera = Camera()
        assert camera.ray(0.3, 0.7, make_rng(1)) == camera.ray(0.3, 0.7, make_rng(2))

    def test_lens_jitters_origin_within_aperture(self, rng):
        """Lens origins stay within aperture / 2 of lookfrom."""
        camera = Camera(CameraConfig(aperture=2.0, focus_distance=5.0))
        origins = [camera.ray(0.5, 0.5, rng).origin for _ in range(200)]
        assert any(o != camera.origin for o in origins)
        for o in origins:
            # Jitter stays in the lens plane within the lens radius
            assert abs(o.z) < 1e-12
            assert (o - camera.origin).length() < camera.lens_radius

    def test_lens_rays_converge_on_focus_plane(self, rng):
        """Jittered rays for one (s, t) meet at the same focus-plane point."""
        camera = Camera(CameraConfig(aperture=1.0, focus_distance=4.0))
        target = camera.lower_left_corner + camera.horizontal * 0.25 + camera.vertical * 0.75
        for _ in range(50):
            ray = camera.ray(0.25, 0.75, rng)
            assert _close(ray.at(1.0), target, 1e-12)


class TestCameraValidation:
    """Tests for construction-time validation and replace()."""

    def test_lookfrom_equals_lookat(self):
        """Coincident lookfrom and lookat are rejected."""
        with pytest.raises(ValueError, match="different points"):
            Camera(CameraConfig(lookfrom=(1.0, 1.0, 1.0), lookat=(1.0, 1.0, 1.0)))

    def test_vup_parallel_to_view(self):
        """An up vector parallel to the view direction is rejected."""
        with pytest.raises(ValueError, match="parallel"):
            Camera(CameraConfig(lookfrom=(0.0, 5.0, 0.0), lookat=(0.0, 0.0, 0.0)))

    @pytest.mark.parametrize(
        "changes",
        [{"vfov": 0.0}, {"vfov": 180.0}, {"aspect_ratio": 0.0}, {"aperture": -1.0},
         {"focus_distance": 0.0}],
    )
    def test_rejects_out_of_range_parameters(self, changes):
        """Out-of-range vfov, aspect ratio, aperture or focus distance raise ValueError."""
        with pytest.raises(ValueError):
            Camera().replace(**changes)

    def test_replace_returns_new_camera(self):
        """replace builds a new camera and leaves the original untouched."""
        camera = Camera()
        wider = camera.replace(vfov=120.0)
        assert camera.config.vfov == 90.0
        assert wider.config.vfov == 120.0
        assert wider.vertical.length() > camera.vertical.length()

    def test_info(self):
        """info reports the camera vectors as tuples."""
        info = Camera().info()
        assert set(info) == {"origin", "u", "v", "w", "horizontal", "vertical", "lower_left"}
        assert info["origin"] == (0.0, 0.0, 0.0)


class TestKernelCameraRays:
    """Tests for the kernel-side get_ray."""

    def test_matches_python_camera_for_pinhole(self, rng):
        """The kernel get_ray matches Camera.ray for a pinhole camera."""
        from pathtracer.camera.camera import get_ray, vec3

        camera = Camera(CameraConfig(lookfrom=(-2.0, 2.0, 1.0), lookat=(0.0, 0.0, -1.0), vfov=40.0))
        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        llc = ti.Vector.field(3, dtype=ti.f32, shape=())
        horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
        vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
        u = ti.Vector.field(3, dtype=ti.f32, shape=())
        v = ti.Vector.field(3, dtype=ti.f32, shape=())
        origin[None] = list(camera.origin.as_tuple())
        llc[None] = list(camera.lower_left_corner.as_tuple())
        horizontal[None] = list(camera.horizontal.as_tuple())
        vertical[None] = list(camera.vertical.as_tuple())
        u[None] = list(camera.u.as_tuple())
        v[None] = list(camera.v.as_tuple())

        @ti.kernel
        def test_kernel():
            o, d = get_ray(
                origin[None], llc[None], horizontal[None], vertical[None],
                u[None], v[None], 0.0, 0.25, 0.6,
            )
            result[0] = o
            result[1] = d

        test_kernel()
        expected = camera.ray(0.25, 0.6, rng)
        for i in range(3):
            assert abs(result[0][i] - expected.origin[i]) < 1e-5
            assert abs(result[1][i] - expected.direction[i]) < 1e-5
