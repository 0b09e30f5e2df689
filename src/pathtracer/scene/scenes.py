"""Built-in scene configurations.

Two scenes are provided:

- random: the classic "random spheres" cover image. A huge grey ground
  sphere, a 22x22 grid of small randomly placed spheres of random materials
  (80% diffuse, 15% metal, 5% glass), and three large feature spheres (glass,
  diffuse brown, mirror metal).
- simple: a ground sphere and one small diffuse sphere in front of a pinhole
  camera; quick to render, used for smoke tests.

Each factory fills a SceneManager and returns the camera meant for the scene.

Example:
    >>> from pathtracer.config import init_taichi
    >>> init_taichi()
    >>> from pathtracer.scene.manager import SceneManager
    >>> from pathtracer.scene.scenes import create_random_scene
    >>> scene = SceneManager()
    >>> camera = create_random_scene(scene, seed=7)
"""

import logging
from typing import Callable

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Random Spheres Parameters
# =============================================================================

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

# Small spheres are placed on a grid a in [-11, 11), b in [-11, 11)
GRID_EXTENT = 11
SMALL_RADIUS = 0.2

# Small spheres too close to the metal feature sphere are skipped
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
CLEARANCE_DISTANCE = 0.9

DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15  # cumulative threshold 0.95, glass for the rest

GLASS_IOR = 1.5

# Feature spheres
GLASS_CENTER = (0.0, 1.0, 0.0)
BROWN_CENTER = (-4.0, 1.0, 0.0)
BROWN_ALBEDO = (0.4, 0.2, 0.1)
MIRROR_CENTER = (4.0, 1.0, 0.0)
MIRROR_ALBEDO = (0.7, 0.6, 0.5)
FEATURE_RADIUS = 1.0


def create_random_scene(
    scene: SceneManager,
    seed: int | None = None,
    aspect_ratio: float = 3.0 / 2.0,
) -> ThinLensCamera:
    """Fill scene with the random spheres world.

    Args:
        scene: The scene to fill. It is cleared first.
        seed: Seed for sphere placement and materials. The same seed always
            produces the same scene.
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        The thin-lens camera for this scene: looking from (13, 2, 3) at the
        origin, vfov 20, aperture 0.1, focus distance 10.
    """
    scene.clear()
    rng = np.random.default_rng(seed)

    scene.add_lambertian_sphere(GROUND_CENTER, GROUND_RADIUS, GROUND_ALBEDO)

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARANCE_POINT) <= CLEARANCE_DISTANCE:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, size=3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                scene.add_dielectric_sphere(center_tuple, SMALL_RADIUS, GLASS_IOR)

    scene.add_dielectric_sphere(GLASS_CENTER, FEATURE_RADIUS, GLASS_IOR)
    scene.add_lambertian_sphere(BROWN_CENTER, FEATURE_RADIUS, BROWN_ALBEDO)
    scene.add_metal_sphere(MIRROR_CENTER, FEATURE_RADIUS, MIRROR_ALBEDO, 0.0)

    logger.info(
        "Built random scene: %d spheres, %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    return ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def create_simple_scene(
    scene: SceneManager,
    seed: int | None = None,
    aspect_ratio: float = 3.0 / 2.0,
) -> ThinLensCamera:
    """Fill scene with a ground sphere and one diffuse sphere.

    The seed is accepted for a uniform factory signature and unused.

    Returns:
        A pinhole camera (aperture 0) at the origin looking down -z.
    """
    scene.clear()
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.7, 0.3, 0.3))

    logger.info("Built simple scene: %d spheres", scene.get_sphere_count())

    return ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )


SceneFactory = Callable[..., ThinLensCamera]

SCENES: dict[str, SceneFactory] = {
    "random": create_random_scene,
    "simple": create_simple_scene,
}
