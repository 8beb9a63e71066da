"""Monte Carlo path tracer for scenes of spheres.

This package renders images by following camera rays through a world of
spheres, bouncing them off diffuse, metal and glass surfaces until they
escape to a sky gradient. It provides two renderers sharing one model:

- A double precision reference renderer with explicit, seedable random
  streams (``pathtracer.core.integrator``)
- A Taichi data-parallel renderer running one thread per pixel with
  progressive accumulation (``pathtracer.core.parallel``,
  ``pathtracer.core.progressive``)

Subpackages:
    core: Vectors, rays, sampling, integrators and the parallel renderer
    geometry: Hit records and the sphere primitive
    materials: Lambertian, metal and dielectric scattering
    scene: The World container, scene files and preset scenes
    camera: Thin-lens camera with ray generation
    preview: Image output and the interactive preview window
"""

__version__ = "0.1.0"
