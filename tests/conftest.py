"""Pytest configuration for path tracer tests.

Taichi must be initialized once per session, before any module declaring
Taichi fields is imported. Test modules therefore import those modules
inside the test functions.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Repeated ti.init() calls reset the runtime and invalidate fields that
    modules declared at import time.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Start and finish every test with an empty scene."""
    from pathtracer.scene.manager import clear_registries

    clear_registries()
    yield
    clear_registries()


@pytest.fixture
def pinhole_camera():
    """Set up an aperture-0 camera at the origin looking down -z."""
    from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
        aperture=0.0,
        focus_dist=1.0,
    )
    setup_camera(camera)
    return camera
