"""Tests for the Taichi data-parallel renderer.

This module tests:
- Render target validation
- Scene packing and its error cases
- Background-only and single-sphere images
- Running-average accumulation and clearing

Note: Imports are done inside test methods so that Taichi is initialized by
the conftest.py fixture before any field is allocated.
"""

import numpy as np
import pytest

from pathtracer.camera.camera import Camera
from pathtracer.core.integrator import sky_color
from pathtracer.core.ray import Ray
from pathtracer.core.vec3 import Color, Vec3
from pathtracer.geometry.hittable import HitRecord
from pathtracer.geometry.sphere import Sphere
from pathtracer.materials.lambertian import Lambertian
from pathtracer.scene.presets import single_sphere_scene
from pathtracer.scene.world import World


def expected_sky_image(camera, width, height):
    """Sky gradient at every pixel center, top row first."""
    image = np.zeros((height, width, 3))
    for row in range(height):
        j = height - 1 - row
        for i in range(width):
            s = (i + 0.5) / (width - 1)
            t = (j + 0.5) / (height - 1)
            direction = camera.lower_left_corner + camera.horizontal * s + camera.vertical * t
            image[row, i] = sky_color(Ray(camera.origin, direction - camera.origin)).as_tuple()
    return image


class TestParallelRendererInit:
    """Test render target validation."""

    def test_dimensions(self):
        """The renderer reports its size and starts with no samples."""
        from pathtracer.core.parallel import ParallelRenderer

        renderer = ParallelRenderer(32, 16)
        assert renderer.width == 32
        assert renderer.height == 16
        assert renderer.sample_count == 0

    def test_rejects_oversized_dimensions(self):
        """Images larger than the field limits are rejected."""
        from pathtracer.core.parallel import ParallelRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ParallelRenderer(4096, 100)

        with pytest.raises(ValueError, match="exceed maximum"):
            ParallelRenderer(100, 4096)

    @pytest.mark.parametrize("width, height", [(0, 10), (10, -2)])
    def test_rejects_non_positive_dimensions(self, width, height):
        """Zero or negative sizes are rejected."""
        from pathtracer.core.parallel import ParallelRenderer

        with pytest.raises(ValueError, match="positive"):
            ParallelRenderer(width, height)

    def test_render_before_load_raises(self):
        """Rendering needs a loaded scene."""
        from pathtracer.core.parallel import ParallelRenderer

        renderer = ParallelRenderer(8, 8)
        with pytest.raises(RuntimeError, match="No scene loaded"):
            renderer.render(1)
        with pytest.raises(RuntimeError, match="No scene loaded"):
            renderer.render_sample(0, 0)


class TestSceneUpload:
    """Test packing worlds into kernel fields."""

    def test_rejects_non_sphere_surfaces(self):
        """Only spheres can be packed into the kernel fields."""
        from pathtracer.core.parallel import ParallelRenderer

        class Plane:
            def is_hit(self, ray, t_min, t_max):
                return None

        world = World()
        world.add(Plane(), Lambertian(Color(0.5, 0.5, 0.5)))

        with pytest.raises(ValueError, match="only supports sphere"):
            ParallelRenderer(8, 8).load_scene(world, Camera())

    def test_rejects_too_many_spheres(self):
        """Worlds beyond the sphere limit are rejected."""
        from pathtracer.core.parallel import MAX_SPHERES, ParallelRenderer

        world = World()
        material = Lambertian(Color(0.5, 0.5, 0.5))
        for i in range(MAX_SPHERES + 1):
            world.add(Sphere(Vec3(float(i), 0.0, -5.0), 0.1), material)

        with pytest.raises(ValueError, match="Maximum number of spheres"):
            ParallelRenderer(8, 8).load_scene(world, Camera())

    def test_load_resets_accumulation(self):
        """Loading a scene clears accumulated samples."""
        from pathtracer.core.parallel import ParallelRenderer

        world, camera = single_sphere_scene()
        renderer = ParallelRenderer(8, 8)
        renderer.load_scene(world, camera)
        renderer.render(3)
        assert renderer.sample_count == 3

        renderer.load_scene(world, camera)
        assert renderer.sample_count == 0
        assert np.all(renderer.get_image_numpy() == 0.0)


class TestParallelRendering:
    """Test images produced by the kernels."""

    def test_empty_world_is_sky_gradient(self):
        """An empty world renders the sky gradient."""
        from pathtracer.core.parallel import ParallelRenderer

        camera = Camera()
        renderer = ParallelRenderer(32, 32)
        renderer.load_scene(World(), camera)
        renderer.render(32)

        image = renderer.get_image_numpy()
        assert image.shape == (32, 32, 3)
        assert image.dtype == np.float32
        np.testing.assert_allclose(image, expected_sky_image(camera, 32, 32), atol=0.03)

    def test_single_sphere_depth_one(self):
        """With one bounce allowed, the sphere is black and the sky is not."""
        from pathtracer.core.parallel import ParallelRenderer

        world, camera = single_sphere_scene()
        renderer = ParallelRenderer(21, 21, max_depth=1)
        renderer.load_scene(world, camera)
        renderer.render(4)

        image = renderer.get_image_numpy()
        np.testing.assert_array_equal(image[10, 10], [0.0, 0.0, 0.0])
        assert image[0, 0, 2] > 0.9
        assert image[20, 20, 2] > 0.9

    def test_render_sample_hits_sphere(self):
        """A single sample is black on the sphere and sky elsewhere."""
        from pathtracer.core.parallel import ParallelRenderer

        world, camera = single_sphere_scene()
        renderer = ParallelRenderer(21, 21, max_depth=1)
        renderer.load_scene(world, camera)

        assert renderer.render_sample(10, 10) == (0.0, 0.0, 0.0)
        r, g, b = renderer.render_sample(0, 0)
        assert b > 0.9

    def test_values_stay_in_unit_range(self):
        """Rendered values are finite and within [0, 1]."""
        from pathtracer.core.parallel import ParallelRenderer
        from pathtracer.scene.presets import three_spheres_scene

        world, camera = three_spheres_scene(aspect_ratio=2.0)
        renderer = ParallelRenderer(24, 12)
        renderer.load_scene(world, camera)
        renderer.render(8)

        image = renderer.get_image_numpy()
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        assert image.max() <= 1.0
        # Not everything is sky: the ground and spheres darken the image
        assert image.mean() < 0.9

    def test_accumulation_and_clear(self):
        """Samples accumulate across calls and clear resets them."""
        from pathtracer.core.parallel import ParallelRenderer

        world, camera = single_sphere_scene()
        renderer = ParallelRenderer(8, 8)
        renderer.load_scene(world, camera)

        renderer.render(2)
        renderer.render(3)
        assert renderer.sample_count == 5

        renderer.clear()
        assert renderer.sample_count == 0
        assert np.all(renderer.get_image_numpy() == 0.0)

    def test_field_orientation(self):
        """The raw field is (x, y) from the bottom-left; numpy output is top row first."""
        from pathtracer.core.parallel import ParallelRenderer

        world, camera = single_sphere_scene()
        renderer = ParallelRenderer(6, 4)
        renderer.load_scene(world, camera)
        renderer.render(1)

        field = renderer.get_field().to_numpy()
        image = renderer.get_image_numpy()
        assert field.shape == (6, 4, 3)
        np.testing.assert_allclose(image[0, 1], np.clip(field[1, 3], 0.0, 1.0))
