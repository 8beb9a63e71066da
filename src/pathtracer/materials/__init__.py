"""Material models describing how light scatters off surfaces.

Each material has a Python class implementing ``scatter`` for the reference
renderer and a matching ``@ti.func`` used by the parallel renderer.

Components:
    material: Material base class, MaterialType and scene-file decoding
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Refraction with total internal reflection
"""

from .dielectric import Dielectric, scatter_dielectric
from .lambertian import Lambertian, scatter_lambertian
from .material import Material, MaterialType, material_from_dict
from .metal import Metal, scatter_metal

__all__ = [
    "Material",
    "MaterialType",
    "material_from_dict",
    "Lambertian",
    "scatter_lambertian",
    "Metal",
    "scatter_metal",
    "Dielectric",
    "scatter_dielectric",
]
