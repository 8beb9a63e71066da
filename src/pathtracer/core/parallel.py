"""Data-parallel path tracer running one Taichi thread per pixel.

This module renders whole images with the same light transport as the
reference integrator in ``pathtracer.core.integrator``, but inside Taichi
kernels. Every pixel is an independent thread that only reads the packed
scene and camera fields and only writes its own accumulation slot, so no
locks are needed. Randomness comes from Taichi's per-thread generator,
seeded by ``ti.init(random_seed=...)``.

The scene is packed into Structure-of-Arrays fields (centers, radii,
material kind, albedo, fuzz, refractive index). Kernel arithmetic is single
precision.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=0)
    >>> from pathtracer.core.parallel import ParallelRenderer
    >>> from pathtracer.scene.presets import three_spheres_scene
    >>>
    >>> world, camera = three_spheres_scene()
    >>> renderer = ParallelRenderer(400, 225)
    >>> renderer.load_scene(world, camera)
    >>> renderer.render(num_samples=100)
    >>> image = renderer.get_image_numpy()
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import Camera, get_ray
from pathtracer.core.integrator import MAX_DEPTH, T_MIN
from pathtracer.geometry.sphere import hit_sphere
from pathtracer.materials.dielectric import scatter_dielectric
from pathtracer.materials.lambertian import scatter_lambertian
from pathtracer.materials.material import MaterialType
from pathtracer.materials.metal import scatter_metal
from pathtracer.scene.world import World

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Maximum supported image dimensions
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Maximum number of spheres in a packed scene
MAX_SPHERES = 1024

# Largest representable f32, used as the open upper bound for intersections
T_MAX = 3.0e38


@ti.dataclass
class SceneHit:
    """Record of a ray-scene intersection with the index of the hit object.

    Attributes:
        hit: 1 if the ray intersected any sphere, 0 on a miss.
        t: The parameter value along the ray. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit normal oriented against the ray. Only valid if hit == 1.
        front_face: 1 if the ray hit the outside of the surface, 0 otherwise.
        index: Index of the hit sphere (and its material), -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    index: ti.i32


@ti.data_oriented
class ParallelRenderer:
    """Progressive whole-image renderer backed by Taichi fields.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget per sample.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Allocate the render target and scene storage.

        Args:
            width: Image width in pixels (max MAX_IMAGE_WIDTH).
            height: Image height in pixels (max MAX_IMAGE_HEIGHT).
            max_depth: Bounce budget per sample.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum
                supported size, or max_depth is negative.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({width}x{height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")

        self.width = width
        self.height = height
        self.max_depth = max_depth
        self._x_span = float(max(width - 1, 1))
        self._y_span = float(max(height - 1, 1))
        self._samples = 0
        self._scene_loaded = False

        # Color accumulation buffer, indexed (x, y) with y = 0 at the bottom
        self._color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

        # Sphere storage: Structure of Arrays layout
        self._centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
        self._radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
        self._kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
        self._albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
        self._fuzz = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
        self._iors = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
        self._num_spheres = ti.field(dtype=ti.i32, shape=())

        # Camera state
        self._cam_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_lower_left = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_u = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_v = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._cam_lens_radius = ti.field(dtype=ti.f32, shape=())

    # =========================================================================
    # Scene Upload
    # =========================================================================

    def load_scene(self, world: World, camera: Camera) -> None:
        """Pack a world and camera into the kernel fields.

        Clears any accumulated samples.

        Args:
            world: The scene. Only spheres are supported.
            camera: The camera generating primary rays.

        Raises:
            ValueError: If the world contains non-sphere surfaces or more
                than MAX_SPHERES spheres.
        """
        spheres = world.spheres()
        if len(spheres) != len(world):
            raise ValueError("ParallelRenderer only supports sphere surfaces")
        if len(spheres) > MAX_SPHERES:
            raise ValueError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        centers = np.zeros((MAX_SPHERES, 3), dtype=np.float32)
        radii = np.zeros(MAX_SPHERES, dtype=np.float32)
        kinds = np.zeros(MAX_SPHERES, dtype=np.int32)
        albedos = np.ones((MAX_SPHERES, 3), dtype=np.float32)
        fuzz = np.zeros(MAX_SPHERES, dtype=np.float32)
        iors = np.ones(MAX_SPHERES, dtype=np.float32)

        for k, (sphere, material) in enumerate(spheres):
            centers[k] = sphere.center.as_tuple()
            radii[k] = sphere.radius
            kinds[k] = int(material.material_type)
            if material.material_type == MaterialType.LAMBERTIAN:
                albedos[k] = material.albedo.as_tuple()
            elif material.material_type == MaterialType.METAL:
                albedos[k] = material.albedo.as_tuple()
                fuzz[k] = material.fuzz
            else:
                iors[k] = material.refractive_index

        self._centers.from_numpy(centers)
        self._radii.from_numpy(radii)
        self._kinds.from_numpy(kinds)
        self._albedos.from_numpy(albedos)
        self._fuzz.from_numpy(fuzz)
        self._iors.from_numpy(iors)
        self._num_spheres[None] = len(spheres)

        self._cam_origin[None] = list(camera.origin.as_tuple())
        self._cam_lower_left[None] = list(camera.lower_left_corner.as_tuple())
        self._cam_horizontal[None] = list(camera.horizontal.as_tuple())
        self._cam_vertical[None] = list(camera.vertical.as_tuple())
        self._cam_u[None] = list(camera.u.as_tuple())
        self._cam_v[None] = list(camera.v.as_tuple())
        self._cam_lens_radius[None] = camera.lens_radius

        self._scene_loaded = True
        self.clear()
        logger.debug("Packed %d spheres for %dx%d render", len(spheres), self.width, self.height)

    def clear(self) -> None:
        """Clear the accumulation buffer and sample count."""
        self._color_buffer.fill(0.0)
        self._samples = 0

    @property
    def sample_count(self) -> int:
        """Number of samples per pixel accumulated so far."""
        return self._samples

    def _check_scene_loaded(self) -> None:
        if not self._scene_loaded:
            raise RuntimeError("No scene loaded. Call load_scene() first.")

    # =========================================================================
    # Path Tracing Core
    # =========================================================================

    @ti.func
    def _intersect(self, origin: vec3, direction: vec3) -> SceneHit:
        """Find the closest sphere hit, keeping the first sphere on exact ties."""
        result = SceneHit(hit=0, t=0.0, point=vec3(0.0), normal=vec3(0.0), front_face=0, index=-1)
        closest_t = T_MAX
        for k in range(self._num_spheres[None]):
            rec = hit_sphere(origin, direction, self._centers[k], self._radii[k], T_MIN, closest_t)
            if rec.hit == 1 and (result.hit == 0 or rec.t < closest_t):
                closest_t = rec.t
                result = SceneHit(
                    hit=1,
                    t=rec.t,
                    point=rec.point,
                    normal=rec.normal,
                    front_face=rec.front_face,
                    index=k,
                )
        return result

    @ti.func
    def _scatter(self, rec: SceneHit, direction: vec3):
        """Dispatch to the scatter function of the hit sphere's material.

        Returns:
            A tuple of (scattered_direction, attenuation, did_scatter).
        """
        k = rec.index
        kind = self._kinds[k]
        scattered_direction = vec3(0.0, 0.0, 0.0)
        attenuation = vec3(0.0, 0.0, 0.0)
        did_scatter = 1

        if kind == int(MaterialType.LAMBERTIAN):
            scattered_direction, attenuation = scatter_lambertian(self._albedos[k], rec.normal)
        elif kind == int(MaterialType.METAL):
            scattered_direction, attenuation, did_scatter = scatter_metal(
                self._albedos[k], self._fuzz[k], direction, rec.normal
            )
        else:
            scattered_direction, attenuation = scatter_dielectric(
                self._iors[k], direction, rec.normal, rec.front_face
            )

        return scattered_direction, attenuation, did_scatter

    @ti.func
    def _trace_path(self, pixel_i: ti.i32, pixel_j: ti.i32) -> vec3:
        """Trace one jittered sample for a pixel.

        Args:
            pixel_i: Pixel x-coordinate (0 = left).
            pixel_j: Pixel y-coordinate (0 = bottom).

        Returns:
            The estimated color for this sample.
        """
        s = (ti.cast(pixel_i, ti.f32) + ti.random(ti.f32)) / self._x_span
        t = (ti.cast(pixel_j, ti.f32) + ti.random(ti.f32)) / self._y_span
        origin, direction = get_ray(
            self._cam_origin[None],
            self._cam_lower_left[None],
            self._cam_horizontal[None],
            self._cam_vertical[None],
            self._cam_u[None],
            self._cam_v[None],
            self._cam_lens_radius[None],
            s,
            t,
        )

        color = vec3(0.0, 0.0, 0.0)
        throughput = vec3(1.0, 1.0, 1.0)

        # Active flag for path continuation (no break inside ti.func loops)
        active = 1
        for _ in range(self.max_depth):
            if active == 1:
                rec = self._intersect(origin, direction)
                if rec.hit == 0:
                    # Escaped: sky gradient
                    unit_direction = tm.normalize(direction)
                    a = 0.5 * (unit_direction.y + 1.0)
                    sky = (1.0 - a) * vec3(1.0, 1.0, 1.0) + a * vec3(0.5, 0.7, 1.0)
                    color = throughput * sky
                    active = 0
                else:
                    scattered_direction, attenuation, did_scatter = self._scatter(rec, direction)
                    if did_scatter == 0:
                        active = 0
                    else:
                        throughput *= attenuation
                        origin = rec.point
                        direction = scattered_direction

        # Paths still active here ran out of bounces and stay black
        return color

    # =========================================================================
    # Rendering Kernels
    # =========================================================================

    @ti.kernel
    def _render_one_spp(self, n: ti.i32):
        """Render one sample per pixel into the running average.

        Args:
            n: Sample index after this pass (1-based).
        """
        for i, j in ti.ndrange(self.width, self.height):
            color = self._trace_path(i, j)

            # Check for NaN/Inf and replace with zero
            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0

            # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
            self._color_buffer[i, j] += (color - self._color_buffer[i, j]) / ti.cast(n, ti.f32)

    @ti.kernel
    def _render_single_sample(self, pixel_i: ti.i32, pixel_j: ti.i32) -> vec3:
        return self._trace_path(pixel_i, pixel_j)

    # =========================================================================
    # Public Rendering API
    # =========================================================================

    def render(self, num_samples: int = 1) -> None:
        """Accumulate more samples per pixel.

        Args:
            num_samples: Number of samples to add to every pixel.

        Raises:
            RuntimeError: If no scene has been loaded.
        """
        self._check_scene_loaded()
        for _ in range(num_samples):
            self._samples += 1
            self._render_one_spp(self._samples)

    def render_sample(self, pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
        """Trace a single sample for one pixel without accumulating it.

        Useful for testing and debugging individual pixels.

        Raises:
            RuntimeError: If no scene has been loaded.
        """
        self._check_scene_loaded()
        color = self._render_single_sample(pixel_i, pixel_j)
        return (float(color[0]), float(color[1]), float(color[2]))

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the accumulated linear image.

        Returns:
            NumPy array of shape (height, width, 3), top row first, values
            clamped to [0, 1].
        """
        image = self._color_buffer.to_numpy()
        # (width, height, 3) with bottom-left origin -> (height, width, 3) top-left
        image = np.flipud(np.transpose(image, (1, 0, 2)))
        return np.clip(image, 0.0, 1.0).astype(np.float32)

    def get_field(self) -> ti.MatrixField:
        """Get the raw accumulation field, indexed (x, y) from the bottom-left."""
        return self._color_buffer
