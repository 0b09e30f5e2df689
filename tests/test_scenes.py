"""Tests for the built-in scenes."""

import pytest


class TestRandomScene:
    def test_structure(self):
        from pathtracer.camera.thin_lens import ThinLensCamera
        from pathtracer.scene.manager import MaterialType, SceneManager
        from pathtracer.scene.scenes import create_random_scene

        scene = SceneManager()
        camera = create_random_scene(scene, seed=11)

        assert isinstance(camera, ThinLensCamera)
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.aperture == 0.1
        assert camera.focus_dist == 10.0

        # Ground, up to 22 x 22 small spheres, three feature spheres
        count = scene.get_sphere_count()
        assert 4 < count <= 1 + 22 * 22 + 3
        assert scene.spheres[0].radius == 1000.0
        feature = scene.spheres[-3:]
        assert [s.center for s in feature] == [(0.0, 1.0, 0.0), (-4.0, 1.0, 0.0), (4.0, 1.0, 0.0)]
        assert scene.materials[feature[0].material_id].material_type == MaterialType.DIELECTRIC
        assert scene.materials[feature[2].material_id].params == {"albedo": (0.7, 0.6, 0.5), "fuzz": 0.0}

        for sphere in scene.spheres[1:-3]:
            assert sphere.radius == 0.2
            distance = sum((a - b) ** 2 for a, b in zip(sphere.center, (4.0, 0.2, 0.0))) ** 0.5
            assert distance > 0.9

    def test_same_seed_same_scene(self):
        from pathtracer.scene.manager import SceneManager
        from pathtracer.scene.scenes import create_random_scene

        scene = SceneManager()
        create_random_scene(scene, seed=5)
        first = scene.to_dict()
        create_random_scene(scene, seed=5)
        assert scene.to_dict() == first
        create_random_scene(scene, seed=6)
        assert scene.to_dict() != first

    def test_material_mix(self):
        from pathtracer.scene.manager import MaterialType, SceneManager
        from pathtracer.scene.scenes import create_random_scene

        scene = SceneManager()
        create_random_scene(scene, seed=0)
        kinds = {m.material_type for m in scene.materials}
        assert kinds == {MaterialType.LAMBERTIAN, MaterialType.METAL, MaterialType.DIELECTRIC}


class TestSimpleScene:
    def test_structure(self):
        from pathtracer.scene.manager import SceneManager
        from pathtracer.scene.scenes import create_simple_scene

        scene = SceneManager()
        camera = create_simple_scene(scene, aspect_ratio=2.0)
        assert scene.get_sphere_count() == 2
        assert camera.aperture == 0.0
        assert camera.aspect_ratio == 2.0


@pytest.mark.parametrize("name", ["random", "simple"])
def test_registry(name):
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.scenes import SCENES

    camera = SCENES[name](SceneManager(), seed=1)
    assert camera.vup == (0.0, 1.0, 0.0)
