"""Tests for the thin-lens camera.

Tests cover:
- Basis and viewport computation
- Ray generation through viewport corners and the center
- Lens sampling (depth of field) and the pinhole special case
- Jitter modes
- Rejection of degenerate configurations
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestCameraSetup:
    """Tests for setup_camera and the derived state."""

    def test_default_camera_basis_is_orthonormal(self):
        from pathtracer.camera.thin_lens import ThinLensCamera, compute_camera_basis

        u, v, w = compute_camera_basis(ThinLensCamera())
        for vec in (u, v, w):
            assert abs(np.linalg.norm(vec) - 1.0) < 1e-9
        assert abs(np.dot(u, v)) < 1e-9
        assert abs(np.dot(v, w)) < 1e-9
        assert abs(np.dot(u, w)) < 1e-9
        # w points from lookat toward lookfrom
        expected_w = np.array([13.0, 2.0, 3.0]) / math.sqrt(13.0**2 + 2.0**2 + 3.0**2)
        assert np.allclose(w, expected_w)

    def test_viewport_on_focus_plane(self, pinhole_camera):
        from pathtracer.camera.thin_lens import get_camera_info

        info = get_camera_info()
        # vfov 90 -> viewport height 2 at focus distance 1
        assert info["horizontal"] == pytest.approx((2.0, 0.0, 0.0), abs=1e-5)
        assert info["vertical"] == pytest.approx((0.0, 2.0, 0.0), abs=1e-5)
        assert info["lower_left"] == pytest.approx((-1.0, -1.0, -1.0), abs=1e-5)
        assert info["lens_radius"] == 0.0

    def test_focus_distance_scales_viewport(self):
        from pathtracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                vfov=90.0,
                aspect_ratio=2.0,
                aperture=0.5,
                focus_dist=3.0,
            )
        )
        info = get_camera_info()
        assert info["horizontal"] == pytest.approx((12.0, 0.0, 0.0), abs=1e-4)
        assert info["vertical"] == pytest.approx((0.0, 6.0, 0.0), abs=1e-4)
        assert info["lower_left"][2] == pytest.approx(-3.0, abs=1e-5)
        assert info["lens_radius"] == pytest.approx(0.25)

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"lookfrom": (1.0, 1.0, 1.0), "lookat": (1.0, 1.0, 1.0)}, "coincide"),
            ({"lookfrom": (0.0, 5.0, 0.0), "lookat": (0.0, 0.0, 0.0)}, "parallel"),
            ({"vup": (0.0, 0.0, 0.0)}, "parallel"),
            ({"vfov": 0.0}, "vfov"),
            ({"vfov": 180.0}, "vfov"),
            ({"aperture": -0.1}, "aperture"),
            ({"focus_dist": 0.0}, "focus_dist"),
            ({"aspect_ratio": -1.0}, "aspect_ratio"),
        ],
    )
    def test_degenerate_configuration_rejected(self, kwargs, message):
        from pathtracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera
        from pathtracer.errors import CameraConfigError

        setup_camera(ThinLensCamera())
        before = get_camera_info()

        with pytest.raises(CameraConfigError, match=message):
            setup_camera(ThinLensCamera(**kwargs))

        # Nothing was written
        assert get_camera_info() == before

    def test_camera_config_error_is_value_error(self):
        from pathtracer.errors import CameraConfigError

        assert issubclass(CameraConfigError, ValueError)

    def test_from_dict(self):
        from pathtracer.camera.thin_lens import ThinLensCamera
        from pathtracer.errors import CameraConfigError

        camera = ThinLensCamera.from_dict({"lookfrom": [1, 2, 3], "vfov": 40})
        assert camera.lookfrom == (1.0, 2.0, 3.0)
        assert camera.vfov == 40
        with pytest.raises(CameraConfigError, match="Unknown camera parameters"):
            ThinLensCamera.from_dict({"zoom": 2})

    @pytest.mark.parametrize(
        "data,match",
        [
            ({"vfov": "wide"}, "vfov must be a number"),
            ({"aperture": None}, "aperture must be a number"),
            ({"focus_dist": True}, "focus_dist must be a number"),
            ({"lookfrom": 5}, "lookfrom must have 3 components"),
            ({"vup": [0, 1]}, "vup must have 3 components"),
            ({"lookat": [0, "up", 0]}, "lookat must be a number"),
            (["vfov", 40], "Camera must be an object"),
        ],
    )
    def test_from_dict_wrong_types(self, data, match):
        from pathtracer.camera.thin_lens import ThinLensCamera
        from pathtracer.errors import CameraConfigError

        with pytest.raises(CameraConfigError, match=match):
            ThinLensCamera.from_dict(data)


class TestRayGeneration:
    """Tests for get_ray and get_ray_jittered."""

    @pytest.mark.parametrize(
        "s,t,expected",
        [
            (0.5, 0.5, (0.0, 0.0, -1.0)),
            (0.0, 0.0, (-1.0, -1.0, -1.0)),
            (1.0, 1.0, (1.0, 1.0, -1.0)),
        ],
    )
    def test_pinhole_ray_targets(self, pinhole_camera, s, t, expected):
        from pathtracer.camera.thin_lens import get_ray

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel(ss: ti.f32, tt: ti.f32):
            ray = get_ray(ss, tt)
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel(s, t)
        o = origin[None]
        d = direction[None]
        assert (o[0], o[1], o[2]) == (0.0, 0.0, 0.0)
        assert (d[0], d[1], d[2]) == pytest.approx(expected, abs=1e-5)

    def test_lens_origins_stay_in_aperture_and_converge_on_focus_plane(self):
        """Rays start within the lens disk and meet at the focus-plane target."""
        from pathtracer.camera.thin_lens import ThinLensCamera, get_ray, setup_camera

        setup_camera(
            ThinLensCamera(
                lookfrom=(0.0, 0.0, 0.0),
                lookat=(0.0, 0.0, -1.0),
                vfov=90.0,
                aspect_ratio=1.0,
                aperture=0.4,
                focus_dist=2.0,
            )
        )

        max_offset = ti.field(dtype=ti.f32, shape=())
        max_focus_error = ti.field(dtype=ti.f32, shape=())
        max_z = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1000):
                ray = get_ray(0.5, 0.5)
                ti.atomic_max(max_offset[None], ray.origin.norm())
                ti.atomic_max(max_z[None], ti.abs(ray.origin.z))
                focus_point = ray.origin + ray.direction
                ti.atomic_max(max_focus_error[None], (focus_point - ti.math.vec3(0.0, 0.0, -2.0)).norm())

        test_kernel()
        assert 0.0 < max_offset[None] <= 0.2 + 1e-6
        # Lens disk lies in the camera's u-v plane
        assert max_z[None] < 1e-6
        assert max_focus_error[None] < 1e-5

    @pytest.mark.parametrize("mode_name", ["NONE", "INDEPENDENT", "CORRELATED"])
    def test_jittered_samples_stay_in_pixel(self, pinhole_camera, mode_name):
        """Sample targets fall inside the pixel footprint; NONE hits the center."""
        from pathtracer.camera.thin_lens import get_ray_jittered
        from pathtracer.config import JitterMode

        mode = int(JitterMode[mode_name])
        width, height = 4, 4
        # Pixel (1, 2) covers s in [0.25, 0.5], t in [0.5, 0.75]
        min_s = ti.field(dtype=ti.f32, shape=())
        min_t = ti.field(dtype=ti.f32, shape=())
        max_s = ti.field(dtype=ti.f32, shape=())
        max_t = ti.field(dtype=ti.f32, shape=())
        max_diagonal_error = ti.field(dtype=ti.f32, shape=())
        min_s[None] = 10.0
        min_t[None] = 10.0
        max_s[None] = -10.0
        max_t[None] = -10.0

        @ti.kernel
        def test_kernel(jitter_mode: ti.i32):
            for _ in range(500):
                ray = get_ray_jittered(1, 2, width, height, jitter_mode)
                # Viewport spans [-1, 1] on both axes at z = -1
                s = (ray.direction.x + 1.0) / 2.0
                t = (ray.direction.y + 1.0) / 2.0
                ti.atomic_min(min_s[None], s)
                ti.atomic_min(min_t[None], t)
                ti.atomic_max(max_s[None], s)
                ti.atomic_max(max_t[None], t)
                # Correlated jitter moves along the pixel diagonal
                ti.atomic_max(max_diagonal_error[None], ti.abs((s - 0.25) - (t - 0.5)))

        test_kernel(mode)
        lo = (min_s[None], min_t[None])
        hi = (max_s[None], max_t[None])
        assert lo[0] >= 0.25 - 1e-5 and hi[0] <= 0.5 + 1e-5
        assert lo[1] >= 0.5 - 1e-5 and hi[1] <= 0.75 + 1e-5

        if mode_name == "NONE":
            assert hi[0] - lo[0] < 1e-5
            assert abs(lo[0] - 0.375) < 1e-5
            assert abs(lo[1] - 0.625) < 1e-5
        else:
            assert hi[0] - lo[0] > 0.1
        if mode_name == "CORRELATED":
            assert max_diagonal_error[None] < 1e-5
        elif mode_name == "INDEPENDENT":
            assert max_diagonal_error[None] > 0.05
