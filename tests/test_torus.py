"""Tests for torus intersection through the quartic solver."""

import math

import pytest
import taichi as ti


def _add_torus():
    from whitted.scene.intersection import add_torus

    # Ring of radius 2 in the plane z = -10, tube radius 0.5
    add_torus((0.0, 0.0, -10.0), (0.0, 0.0, 1.0), 2.0, 0.5)


class TestTorusIntersection:
    def test_ray_through_hole_misses(self):
        from whitted.core.render import find_nearest_hit

        _add_torus()
        assert find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is None

    def test_front_of_tube(self):
        from whitted.core.render import find_nearest_hit

        _add_torus()
        rec = find_nearest_hit((2.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert rec is not None
        assert rec.t == pytest.approx(9.5, abs=1e-9)
        assert rec.normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-9)
        assert rec.entering is True

    def test_ray_in_ring_plane_hits_outer_equator(self):
        from whitted.core.render import find_nearest_hit

        _add_torus()
        rec = find_nearest_hit((-10.0, 0.0, -10.0), (1.0, 0.0, 0.0))
        assert rec is not None
        assert rec.t == pytest.approx(7.5, abs=1e-9)
        assert rec.normal == pytest.approx((-1.0, 0.0, 0.0), abs=1e-9)

    def test_start_inside_tube(self):
        from whitted.core.render import find_nearest_hit

        _add_torus()
        rec = find_nearest_hit((2.0, 0.0, -10.0), (1.0, 0.0, 0.0))
        assert rec is not None
        assert rec.t == pytest.approx(0.5, abs=1e-9)
        assert rec.normal == pytest.approx((1.0, 0.0, 0.0), abs=1e-9)
        assert rec.entering is False

    def test_oblique_hit_lies_on_surface(self):
        """The hit point satisfies (rho - R)^2 + z^2 = r^2 in the torus frame."""
        from whitted.core.render import find_nearest_hit

        _add_torus()
        rec = find_nearest_hit((0.0, 0.0, 0.0), (0.18, 0.05, -1.0))
        assert rec is not None
        x, y, z = rec.point
        rho = math.hypot(x, y)
        assert (rho - 2.0) ** 2 + (z + 10.0) ** 2 == pytest.approx(0.25, abs=1e-8)
        assert math.hypot(*rec.normal) == pytest.approx(1.0, abs=1e-12)

    def test_tilted_axis(self):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_torus

        # Ring lying flat (axis +y); looking straight down through the tube
        add_torus((0.0, 0.0, -10.0), (0.0, 1.0, 0.0), 2.0, 0.5)
        rec = find_nearest_hit((2.0, 5.0, -10.0), (0.0, -1.0, 0.0))
        assert rec is not None
        assert rec.t == pytest.approx(4.5, abs=1e-9)
        assert rec.normal == pytest.approx((0.0, 1.0, 0.0), abs=1e-9)

    @pytest.mark.parametrize("distance", [1000.0, 2000.0, 3000.0])
    def test_far_origin_lands_on_surface(self, distance):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_torus

        add_torus((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 2.0, 0.5)
        rec = find_nearest_hit((distance, 0.1, 0.0), (-1.0, 0.0, 0.0))
        assert rec is not None
        # Outer equator at x = sqrt(2.5^2 - 0.1^2)
        assert rec.t == pytest.approx(distance - math.sqrt(6.24), abs=1e-6)
        x, y, z = rec.point
        assert (math.hypot(x, y) - 2.0) ** 2 + z**2 == pytest.approx(0.25, abs=1e-8)

    def test_far_origin_missing_ring_reports_no_hit(self):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_torus

        add_torus((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 2.0, 0.5)
        assert find_nearest_hit((2000.0, 3.0, 0.0), (-1.0, 0.0, 0.0)) is None


class TestTorusNormal:
    def test_local_normal_on_axis_falls_back(self):
        from whitted.core.config import default_tolerances
        from whitted.core.vector import vec3
        from whitted.geometry.torus import torus_local_normal

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = torus_local_normal(vec3(0.0, 0.0, 0.3), 2.0, default_tolerances())

        test_kernel()
        n = result[None]
        assert (n[0], n[1], n[2]) == pytest.approx((0.0, 0.0, 1.0))

    def test_local_normal_outer_equator(self):
        from whitted.core.config import default_tolerances
        from whitted.core.vector import vec3
        from whitted.geometry.torus import torus_local_normal

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = torus_local_normal(vec3(0.0, 2.5, 0.0), 2.0, default_tolerances())

        test_kernel()
        n = result[None]
        assert (n[0], n[1], n[2]) == pytest.approx((0.0, 1.0, 0.0))
