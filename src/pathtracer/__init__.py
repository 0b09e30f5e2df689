"""CPU path tracer built on Taichi.

Renders scenes of spheres with Lambertian, metal and dielectric materials
through a thin-lens camera, and writes the result as a plain-text PPM image.

Subpackages:
    core: Ray structure, vector algebra and the path integrator
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering models
    scene: Scene storage, closest-hit queries and built-in scenes
    camera: Thin-lens camera with depth of field
    render: Row-parallel render orchestration and the framebuffer
    output: PPM/PNG image export

Modules that declare Taichi fields must be imported after ti.init(); use
pathtracer.config.init_taichi() before importing them.
"""

__version__ = "0.1.0"
