"""Scene container resolving the nearest surface hit along a ray.

The World holds an ordered list of (surface, material) pairs, one material
per surface instance. ``trace`` tests every surface against a shrinking
upper bound equal to the best hit found so far, so the closest hit always
wins; on an exact tie the surface inserted first is kept.

Scenes can be exported to and loaded from plain dictionaries (and JSON
files) of the form::

    {
        "spheres": [
            {"center": [0, 0, -1], "radius": 0.5,
             "material": {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}}
        ]
    }

Example:
    >>> from pathtracer.core.vec3 import Color, Vec3
    >>> from pathtracer.geometry.sphere import Sphere
    >>> from pathtracer.materials.lambertian import Lambertian
    >>> world = World()
    >>> world.add(Sphere(Vec3(0, 0, -1), 0.5), Lambertian(Color(0.5, 0.5, 0.5)))
    >>> len(world)
    1
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pathtracer.core.ray import Ray
from pathtracer.core.vec3 import Vec3
from pathtracer.geometry.hittable import HitRecord, Hittable
from pathtracer.geometry.sphere import Sphere
from pathtracer.materials.material import Material, material_from_dict

logger = logging.getLogger(__name__)

# A surface together with the material attached to it
SceneObject = tuple[Hittable, Material]


class World:
    """Ordered collection of (surface, material) pairs."""

    def __init__(self) -> None:
        self._objects: list[SceneObject] = []

    def add(self, surface: Hittable, material: Material) -> int:
        """Add a surface with its material.

        Args:
            surface: Any object implementing the Hittable protocol.
            material: The material attached to this surface.

        Returns:
            The index of the added object.
        """
        self._objects.append((surface, material))
        return len(self._objects) - 1

    def clear(self) -> None:
        """Remove all objects."""
        self._objects.clear()

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(self._objects)

    def spheres(self) -> list[tuple[Sphere, Material]]:
        """Return the sphere objects, in insertion order."""
        return [(s, m) for s, m in self._objects if isinstance(s, Sphere)]

    def trace(
        self, ray: Ray, t_min: float, t_max: float
    ) -> tuple[HitRecord, Material] | None:
        """Find the closest intersection of a ray with the scene.

        Args:
            ray: The ray to trace.
            t_min: Minimum t value to consider a valid hit.
            t_max: Maximum t value to consider a valid hit.

        Returns:
            (hit_record, material) for the closest hit, or None on a miss.
        """
        closest: tuple[HitRecord, Material] | None = None
        closest_t = t_max

        for surface, material in self._objects:
            rec = surface.is_hit(ray, t_min, closest_t)
            # Later surfaces must beat, not merely equal, the current best
            if rec is not None and (closest is None or rec.t < closest_t):
                closest_t = rec.t
                closest = (rec, material)

        return closest

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        spheres = []
        for sphere, material in self.spheres():
            entry = sphere.to_dict()
            entry["material"] = material.to_dict()
            spheres.append(entry)
        return {"spheres": spheres}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> World:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with a "spheres" list.

        Raises:
            ValueError: If an entry is malformed or names an unknown material.
        """
        world = cls()
        for i, entry in enumerate(data.get("spheres", [])):
            try:
                center = Vec3.from_iterable(entry["center"])
                radius = float(entry["radius"])
                material_data = entry["material"]
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Malformed sphere entry {i}: {entry!r}") from exc
            world.add(Sphere(center, radius), material_from_dict(material_data))
        return world


def load_scene(path: str | Path) -> World:
    """Load a World from a JSON scene file."""
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    world = World.from_dict(data)
    logger.info("Loaded %d objects from %s", len(world), path)
    return world


def save_scene(world: World, path: str | Path) -> None:
    """Write a World to a JSON scene file."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(world.to_dict(), f, indent=2)
    logger.info("Saved %d objects to %s", len(world), path)
