"""Scene module for world construction and scene files.

Components:
    world: The World container resolving the closest hit
    presets: Ready-made scenes returning (World, Camera)
"""

from .presets import (
    SCENES,
    build_scene,
    random_spheres_scene,
    single_sphere_scene,
    three_spheres_scene,
)
from .world import World, load_scene, save_scene

__all__ = [
    "World",
    "load_scene",
    "save_scene",
    "SCENES",
    "build_scene",
    "three_spheres_scene",
    "random_spheres_scene",
    "single_sphere_scene",
]
