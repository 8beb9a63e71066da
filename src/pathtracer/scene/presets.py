"""Ready-made scenes.

Each factory returns a ``(World, Camera)`` pair:

- ``three_spheres_scene``: a large ground sphere with a diffuse sphere in
  the middle, a hollow glass sphere on the left and a metal sphere on the
  right.
- ``random_spheres_scene``: a grid of small randomly-materialed spheres
  around three large feature spheres, viewed through a thin lens.
- ``single_sphere_scene``: one diffuse sphere in front of a default camera,
  the smallest scene exercising every stage of the renderer.

Example:
    >>> from pathtracer.scene.presets import three_spheres_scene
    >>> world, camera = three_spheres_scene(aspect_ratio=16 / 9)
    >>> len(world)
    5
"""

from __future__ import annotations

from collections.abc import Callable

from pathtracer.camera.camera import Camera, CameraConfig
from pathtracer.core.sampling import make_rng, random_float, random_vec
from pathtracer.core.vec3 import Color, Point3
from pathtracer.geometry.sphere import Sphere
from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.lambertian import Lambertian
from pathtracer.materials.material import Material
from pathtracer.materials.metal import Metal
from pathtracer.scene.world import World

# =============================================================================
# Scene Constants
# =============================================================================

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

GROUND_ALBEDO = Color(0.8, 0.8, 0.0)
CENTER_ALBEDO = Color(0.1, 0.2, 0.5)
RIGHT_METAL_ALBEDO = Color(0.8, 0.6, 0.2)
GLASS_IOR = 1.5

# Radius of the inner, inverted sphere of the hollow glass shell
HOLLOW_INNER_RADIUS = -0.45


def three_spheres_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[World, Camera]:
    """Create the three-sphere scene.

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        A tuple of (World, Camera).
    """
    world = World()

    world.add(Sphere(Point3(0.0, -100.5, -1.0), 100.0), Lambertian(GROUND_ALBEDO))
    world.add(Sphere(Point3(0.0, 0.0, -1.0), 0.5), Lambertian(CENTER_ALBEDO))

    # Hollow glass: an inverted inner sphere turns the solid ball into a shell
    glass = Dielectric(GLASS_IOR)
    world.add(Sphere(Point3(-1.0, 0.0, -1.0), 0.5), glass)
    world.add(Sphere(Point3(-1.0, 0.0, -1.0), HOLLOW_INNER_RADIUS), glass)

    world.add(Sphere(Point3(1.0, 0.0, -1.0), 0.5), Metal(RIGHT_METAL_ALBEDO, fuzz=0.0))

    camera = Camera(
        CameraConfig(
            lookfrom=(-2.0, 2.0, 1.0),
            lookat=(0.0, 0.0, -1.0),
            vup=(0.0, 1.0, 0.0),
            vfov=40.0,
            aspect_ratio=aspect_ratio,
        )
    )
    return world, camera


def random_spheres_scene(
    seed: int = 0,
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[World, Camera]:
    """Create the random-spheres scene.

    Small spheres are placed on a jittered 22x22 grid; each one is diffuse
    (80%), metal (15%) or glass (5%). Spheres that would overlap the large
    metal feature sphere are skipped.

    Args:
        seed: Seed for the layout and material choices. The same seed always
            gives the same world.
        aspect_ratio: Image width divided by height.

    Returns:
        A tuple of (World, Camera).
    """
    rng = make_rng(seed)
    world = World()

    world.add(Sphere(Point3(0.0, -1000.0, 0.0), 1000.0), Lambertian(Color(0.5, 0.5, 0.5)))

    clearance_point = Point3(4.0, 0.2, 0.0)
    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = random_float(rng)
            center = Point3(a + 0.9 * random_float(rng), 0.2, b + 0.9 * random_float(rng))
            if (center - clearance_point).length() <= 0.9:
                continue

            material: Material
            if choose_mat < 0.8:
                albedo = random_vec(rng) * random_vec(rng)
                material = Lambertian(albedo)
            elif choose_mat < 0.95:
                albedo = random_vec(rng, 0.5, 1.0)
                material = Metal(albedo, fuzz=random_float(rng, 0.0, 0.5))
            else:
                material = Dielectric(GLASS_IOR)
            world.add(Sphere(center, 0.2), material)

    world.add(Sphere(Point3(0.0, 1.0, 0.0), 1.0), Dielectric(GLASS_IOR))
    world.add(Sphere(Point3(-4.0, 1.0, 0.0), 1.0), Lambertian(Color(0.4, 0.2, 0.1)))
    world.add(Sphere(Point3(4.0, 1.0, 0.0), 1.0), Metal(Color(0.7, 0.6, 0.5), fuzz=0.0))

    camera = Camera(
        CameraConfig(
            lookfrom=(13.0, 2.0, 3.0),
            lookat=(0.0, 0.0, 0.0),
            vup=(0.0, 1.0, 0.0),
            vfov=20.0,
            aspect_ratio=aspect_ratio,
            aperture=0.1,
            focus_distance=10.0,
        )
    )
    return world, camera


def single_sphere_scene(aspect_ratio: float = 1.0) -> tuple[World, Camera]:
    """Create a world holding one grey diffuse sphere at (0, 0, -1).

    The camera is the default one: at the origin, looking down -z with a
    90 degree vertical field of view.
    """
    world = World()
    world.add(Sphere(Point3(0.0, 0.0, -1.0), 0.5), Lambertian(Color(0.5, 0.5, 0.5)))
    return world, Camera(CameraConfig(aspect_ratio=aspect_ratio))


# Scene factories by name, as accepted on the command line
SCENES: dict[str, Callable[..., tuple[World, Camera]]] = {
    "three_spheres": three_spheres_scene,
    "random_spheres": random_spheres_scene,
    "single_sphere": single_sphere_scene,
}


def build_scene(name: str, aspect_ratio: float, seed: int = 0) -> tuple[World, Camera]:
    """Build a named scene.

    Raises:
        ValueError: If the name is not a known scene.
    """
    if name == "random_spheres":
        return random_spheres_scene(seed=seed, aspect_ratio=aspect_ratio)
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene '{name}', expected one of {sorted(SCENES)}"
        ) from None
    return factory(aspect_ratio=aspect_ratio)
