"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Ray tangent to sphere
- Root selection within [t_min, t_max]
- Negative radius (inverted normals)
- Kernel-side intersection matching the Python implementation
"""

import math

import numpy as np
import pytest
import taichi as ti

from pathtracer.core.ray import Ray
from pathtracer.core.vec3 import Vec3
from pathtracer.geometry.sphere import Sphere


class TestSphereIntersection:
    """Tests for Sphere.is_hit."""

    @pytest.mark.parametrize("distance", [2.0, 5.0, 37.5])
    @pytest.mark.parametrize("radius", [0.25, 1.0, 1.5])
    def test_hit_from_outside_at_entry_point(self, distance, radius):
        """A ray aimed at the center hits at t = distance - radius."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), radius)
        ray = Ray(Vec3(0.0, 0.0, distance), Vec3(0.0, 0.0, -1.0))

        rec = sphere.is_hit(ray, 0.0, math.inf)

        assert rec is not None
        assert abs(rec.t - (distance - radius)) < 1e-12
        assert rec.front_face
        assert rec.normal == Vec3(0.0, 0.0, 1.0)
        assert abs(rec.point.z - radius) < 1e-12

    def test_miss(self):
        """A ray offset by more than the radius returns no hit."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), 1.0)
        ray = Ray(Vec3(1.5, 0.0, 5.0), Vec3(0.0, 0.0, -1.0))
        assert sphere.is_hit(ray, 0.0, math.inf) is None

    def test_ray_pointing_away_misses(self):
        """A ray pointing away from the sphere misses."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 5.0), Vec3(0.0, 0.0, 1.0))
        assert sphere.is_hit(ray, 0.0, math.inf) is None

    def test_hit_from_inside_is_back_face(self):
        """A ray starting at the center exits with an inward-facing normal."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 0.0), Vec3(1.0, 0.0, 0.0))

        rec = sphere.is_hit(ray, 0.001, math.inf)

        assert rec is not None
        assert abs(rec.t - 1.0) < 1e-12
        assert not rec.front_face
        assert rec.normal == Vec3(-1.0, 0.0, 0.0)

    def test_tangent_ray_is_a_hit(self):
        """A zero discriminant counts as a single hit."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), 1.0)
        ray = Ray(Vec3(1.0, 0.0, 5.0), Vec3(0.0, 0.0, -1.0))

        rec = sphere.is_hit(ray, 0.0, math.inf)

        assert rec is not None
        assert abs(rec.t - 5.0) < 1e-12

    def test_t_max_excludes_far_hits(self):
        """Hits beyond t_max are ignored."""
        sphere = Sphere(Vec3(0.0, 0.0, -10.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 0.0), Vec3(0.0, 0.0, -1.0))
        assert sphere.is_hit(ray, 0.0, 5.0) is None

    def test_t_min_selects_far_root(self):
        """When the near root is below t_min, the far root is used."""
        sphere = Sphere(Vec3(0.0, 0.0, -3.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 0.0), Vec3(0.0, 0.0, -1.0))

        rec = sphere.is_hit(ray, 2.5, math.inf)

        assert rec is not None
        assert abs(rec.t - 4.0) < 1e-12
        assert not rec.front_face

    def test_interval_bounds_are_inclusive(self):
        """Roots equal to t_min or t_max count as hits."""
        sphere = Sphere(Vec3(0.0, 0.0, -3.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 0.0), Vec3(0.0, 0.0, -1.0))

        rec = sphere.is_hit(ray, 2.0, 2.0)

        assert rec is not None
        assert rec.t == 2.0

    def test_unnormalized_direction(self):
        """t is measured in units of the direction vector."""
        sphere = Sphere(Vec3(0.0, 0.0, -3.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 0.0), Vec3(0.0, 0.0, -2.0))

        rec = sphere.is_hit(ray, 0.0, math.inf)

        assert rec is not None
        assert abs(rec.t - 1.0) < 1e-12

    def test_negative_radius_flips_outward_normal(self):
        """A ray entering an inverted sphere sees it as a back face."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), -1.0)
        ray = Ray(Vec3(0.0, 0.0, 5.0), Vec3(0.0, 0.0, -1.0))

        rec = sphere.is_hit(ray, 0.0, math.inf)

        assert rec is not None
        assert abs(rec.t - 4.0) < 1e-12
        assert not rec.front_face
        # The recorded normal still faces the incoming ray
        assert rec.normal == Vec3(0.0, 0.0, 1.0)

    def test_normal_always_faces_ray(self):
        """dot(ray.direction, normal) <= 0 for every hit."""
        generator = np.random.default_rng(3)
        sphere = Sphere(Vec3(0.2, -0.1, -1.0), 0.7)
        hits = 0
        for _ in range(500):
            origin = Vec3.from_iterable(generator.uniform(-2.0, 2.0, 3))
            direction = Vec3.from_iterable(generator.normal(size=3))
            rec = sphere.is_hit(Ray(origin, direction), 0.001, math.inf)
            if rec is not None:
                hits += 1
                assert direction.dot(rec.normal) <= 0.0
                assert abs(rec.normal.length() - 1.0) < 1e-9
        assert hits > 0

    def test_zero_direction_misses(self):
        """A zero direction has no defined roots and never hits."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), 1.0)
        ray = Ray(Vec3(0.0, 0.0, 0.5), Vec3(0.0, 0.0, 0.0))

        assert sphere.is_hit(ray, 0.0, math.inf) is None

    def test_zero_radius_gives_nan_normal(self):
        """A point sphere is hit at its center with an undefined normal."""
        sphere = Sphere(Vec3(0.0, 0.0, 0.0), 0.0)
        ray = Ray(Vec3(0.0, 0.0, 5.0), Vec3(0.0, 0.0, -1.0))

        rec = sphere.is_hit(ray, 0.0, math.inf)

        assert rec is not None
        assert rec.t == 5.0
        assert all(math.isnan(c) for c in rec.normal)

    def test_to_dict(self):
        """Serializes the center and radius."""
        sphere = Sphere(Vec3(1.0, 2.0, 3.0), 0.5)
        assert sphere.to_dict() == {"center": [1.0, 2.0, 3.0], "radius": 0.5}


class TestKernelSphereIntersection:
    """Tests for the kernel-side hit_sphere."""

    def _run(self, origin, direction, center, radius, t_min=0.0, t_max=1e30):
        from pathtracer.geometry.sphere import hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())
        normal = ti.Vector.field(3, dtype=ti.f32, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(
            ox: ti.f32, oy: ti.f32, oz: ti.f32,
            dx: ti.f32, dy: ti.f32, dz: ti.f32,
            cx: ti.f32, cy: ti.f32, cz: ti.f32,
            r: ti.f32, t_min: ti.f32, t_max: ti.f32,
        ):
            rec = hit_sphere(vec3(ox, oy, oz), vec3(dx, dy, dz), vec3(cx, cy, cz), r, t_min, t_max)
            hit[None] = rec.hit
            t_val[None] = rec.t
            normal[None] = rec.normal
            front_face[None] = rec.front_face

        test_kernel(*origin, *direction, *center, radius, t_min, t_max)
        return hit[None], t_val[None], normal[None], front_face[None]

    def test_direct_hit(self):
        """A ray aimed at the center hits the front face."""
        hit, t, normal, front_face = self._run((0, 0, 5), (0, 0, -1), (0, 0, 0), 1.0)
        assert hit == 1
        assert abs(t - 4.0) < 1e-5
        assert abs(normal[2] - 1.0) < 1e-5
        assert front_face == 1

    def test_miss(self):
        """A ray offset by more than the radius misses."""
        hit, _, _, _ = self._run((1.5, 0, 5), (0, 0, -1), (0, 0, 0), 1.0)
        assert hit == 0

    def test_inside_back_face(self):
        """A ray from the center hits the back face."""
        hit, t, normal, front_face = self._run((0, 0, 0), (1, 0, 0), (0, 0, 0), 1.0, 0.001)
        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert abs(normal[0] + 1.0) < 1e-5
        assert front_face == 0

    def test_tangent_hit(self):
        """A tangent ray counts as a hit."""
        hit, t, _, _ = self._run((1, 0, 5), (0, 0, -1), (0, 0, 0), 1.0)
        assert hit == 1
        assert abs(t - 5.0) < 1e-4

    def test_t_max_excludes_hit(self):
        """Hits beyond t_max are ignored."""
        hit, _, _, _ = self._run((0, 0, 0), (0, 0, -1), (0, 0, -10), 1.0, 0.0, 5.0)
        assert hit == 0

    def test_hit_point_lies_on_ray(self):
        """The reported point is origin + t * direction on the sphere surface."""
        from pathtracer.geometry.sphere import hit_sphere, vec3

        t_val = ti.field(dtype=ti.f32, shape=())
        point = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            rec = hit_sphere(
                vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0), vec3(0.0, 0.0, -3.0), 1.0, 0.0, 1e30
            )
            t_val[None] = rec.t
            point[None] = rec.point

        test_kernel()

        assert abs(t_val[None] - 1.0) < 1e-5
        np.testing.assert_allclose(point.to_numpy(), [0.0, 0.0, -2.0], atol=1e-5)
