"""Tests for the path integrator.

This module tests:
- The sky gradient background
- ray_color termination (depth budget, misses, absorption)
- Material dispatch through the unified material ids
- The row rendering kernel

Note: Imports are done inside test methods to avoid Taichi initialization issues.
"""

import numpy as np
import pytest


def _sky(direction):
    """Closed-form background for a direction."""
    d = np.asarray(direction, dtype=np.float64)
    a = 0.5 * (d[1] / np.linalg.norm(d) + 1.0)
    return (1.0 - a) * np.array([1.0, 1.0, 1.0]) + a * np.array([0.5, 0.7, 1.0])


class TestBackground:
    """Tests for the sky gradient."""

    @pytest.mark.parametrize(
        "direction",
        [(0.0, 1.0, 0.0), (0.0, -1.0, 0.0), (1.0, 0.0, 0.0), (0.3, 0.4, -2.0)],
    )
    def test_sky_color_matches_gradient(self, direction):
        from pathtracer.core.integrator import sky_color

        assert sky_color(direction) == pytest.approx(tuple(_sky(direction)), abs=1e-6)

    def test_sky_color_ignores_direction_length(self):
        from pathtracer.core.integrator import sky_color

        assert sky_color((0.0, 5.0, 0.0)) == pytest.approx((0.5, 0.7, 1.0), abs=1e-6)


class TestRayColor:
    """Tests for ray_color via trace_ray."""

    def test_depth_zero_is_black(self):
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=0) == (0.0, 0.0, 0.0)

    def test_negative_depth_is_black(self):
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=-3) == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize("depth", [1, 5, 50])
    def test_empty_scene_returns_background(self, depth):
        from pathtracer.core.integrator import trace_ray

        direction = (0.2, -0.4, -1.0)
        assert trace_ray((0.0, 0.0, 0.0), direction, depth=depth) == pytest.approx(
            tuple(_sky(direction)), abs=1e-6
        )

    def test_depth_one_hit_is_black(self):
        """A hit consumes the last bounce; the scattered ray is never traced."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.9, 0.9, 0.9))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=1) == (0.0, 0.0, 0.0)

    def test_mirror_attenuates_background(self):
        """A fuzz-free mirror reflects straight back: albedo times the sky behind."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -2.0), 1.0, (0.5, 0.25, 1.0), fuzz=0.0)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=5)
        expected = np.array([0.5, 0.25, 1.0]) * _sky((0.0, 0.0, 1.0))
        assert color == pytest.approx(tuple(expected), abs=1e-5)

    def test_clear_glass_passes_background(self):
        """IOR 1 glass does not bend or reflect at normal incidence."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -3.0), 1.0, ior=1.0)

        direction = (0.0, 0.0, -1.0)
        color = trace_ray((0.0, 0.0, 0.0), direction, depth=10)
        assert color == pytest.approx(tuple(_sky(direction)), abs=1e-5)

    def test_absorbing_material_is_black(self):
        """A zero-albedo surface contributes nothing, whatever the path does next."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.0, 0.0, 0.0))
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=50)
        assert color == (0.0, 0.0, 0.0)

    def test_color_bounded_by_background(self):
        """Albedos in [0, 1] never amplify light beyond the brightest sky value."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager
        from pathtracer.scene.scenes import create_simple_scene

        create_simple_scene(SceneManager())
        for _ in range(20):
            color = trace_ray((0.0, 0.0, 0.0), (0.1, -0.3, -1.0), depth=10)
            assert all(0.0 <= c <= 1.0 + 1e-6 for c in color)


class TestRenderRows:
    """Tests for the parallel row kernel."""

    def test_background_rows_with_centered_samples(self, pinhole_camera):
        from pathtracer.config import JitterMode
        from pathtracer.core.integrator import render_rows

        width, height, spp = 4, 4, 3
        out = np.zeros((2, width, 3), dtype=np.float32)
        render_rows(1, 2, width, height, spp, 5, int(JitterMode.NONE), out)

        for k in range(2):
            row = 1 + k
            for col in range(width):
                # Pixel-center target on the viewport [-1, 1]^2 at z = -1
                x = 2.0 * (col + 0.5) / width - 1.0
                y = 2.0 * (row + 0.5) / height - 1.0
                expected = spp * _sky((x, y, -1.0))
                assert tuple(out[k, col]) == pytest.approx(tuple(expected), abs=1e-4)

    def test_every_cell_of_band_written(self, pinhole_camera):
        from pathtracer.config import JitterMode
        from pathtracer.core.integrator import render_rows

        out = np.full((1, 3, 3), -1.0, dtype=np.float32)
        render_rows(0, 1, 3, 2, 1, 5, int(JitterMode.INDEPENDENT), out)
        assert np.all(out >= 0.0)
