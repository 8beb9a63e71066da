"""Import checks for every module of the package.

Modules that define Taichi functions and kernels compile their signatures
when imported, so a bad annotation surfaces here rather than as a
collection error in an unrelated test module.
"""

import importlib

import pytest

MODULES = [
    "pathtracer",
    "pathtracer.config",
    "pathtracer.camera.camera",
    "pathtracer.core.integrator",
    "pathtracer.core.parallel",
    "pathtracer.core.progressive",
    "pathtracer.core.ray",
    "pathtracer.core.sampling",
    "pathtracer.core.vec3",
    "pathtracer.geometry.hittable",
    "pathtracer.geometry.sphere",
    "pathtracer.materials.dielectric",
    "pathtracer.materials.lambertian",
    "pathtracer.materials.material",
    "pathtracer.materials.metal",
    "pathtracer.preview.export",
    "pathtracer.preview.interactive",
    "pathtracer.scene.presets",
    "pathtracer.scene.world",
]


class TestPackageImports:
    """Test that each module imports cleanly."""

    @pytest.mark.parametrize("name", MODULES)
    def test_module_imports(self, name):
        """Importing the module raises nothing."""
        module = importlib.import_module(name)
        assert module.__name__ == name

    def test_copy_kernel_compiles(self):
        """The preview's lazily built copy kernel accepts template arguments."""
        import taichi as ti

        from pathtracer.preview.interactive import _get_copy_field_kernel

        src = ti.Vector.field(3, dtype=ti.f32, shape=(2, 2))
        dst = ti.Vector.field(3, dtype=ti.f32, shape=(2, 2))
        src.fill(4.0)

        _get_copy_field_kernel()(src, dst)

        assert dst[1, 1][0] == pytest.approx(2.0)
