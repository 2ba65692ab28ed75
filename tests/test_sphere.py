"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere
- Ray starting inside sphere (exit hit, outward normal, not entering)
- Ray tangent to sphere
- Sphere behind the ray origin
"""

import math

import pytest
import taichi as ti


class TestSphereBasics:
    def test_make_sphere(self):
        """Test make_sphere convenience function."""
        from whitted.core.vector import vec3
        from whitted.geometry.sphere import make_sphere

        center_result = ti.Vector.field(3, dtype=ti.f64, shape=())
        radius_result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius

        test_kernel()
        c = center_result[None]
        assert (c[0], c[1], c[2]) == pytest.approx((1.0, 2.0, 3.0))
        assert radius_result[None] == pytest.approx(0.5)


class TestSphereIntersection:
    """Tests for hit_sphere called directly from a kernel."""

    def test_hit_sphere_direct_hit(self):
        """Ray from z=5 toward a unit sphere at the origin hits at t=4."""
        from whitted.core.config import default_tolerances
        from whitted.core.vector import vec3
        from whitted.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())
        point = ti.Vector.field(3, dtype=ti.f64, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        entering = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
                rec = hit_sphere(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0), sphere, default_tolerances())
                hit[None] = rec.hit
                t_val[None] = rec.t
                point[None] = rec.point
                normal[None] = rec.normal
                entering[None] = rec.entering

        test_kernel()
        assert hit[None] == 1
        assert t_val[None] == pytest.approx(4.0, abs=1e-12)
        p = point[None]
        assert (p[0], p[1], p[2]) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)
        n = normal[None]
        assert (n[0], n[1], n[2]) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)
        assert entering[None] == 1

    def test_hit_sphere_zero_radius_misses(self):
        from whitted.core.config import default_tolerances
        from whitted.core.vector import vec3
        from whitted.geometry.sphere import Sphere, hit_sphere

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            for _ in range(1):
                sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=0.0)
                rec = hit_sphere(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0), sphere, default_tolerances())
                hit[None] = rec.hit

        test_kernel()
        assert hit[None] == 0


class TestSphereInScene:
    """Sphere queries through the scene's nearest-hit search."""

    def test_miss(self):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, 0.0), 1.0)
        assert find_nearest_hit((5.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is None

    def test_inside_hits_far_side_with_outward_normal(self):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, 0.0), 1.0)
        rec = find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        assert rec is not None
        assert rec.t == pytest.approx(1.0)
        assert rec.normal == pytest.approx((0.0, 0.0, 1.0))
        assert rec.entering is False

    def test_tangent_ray_grazes(self):
        """A ray touching the sphere at one point still reports a hit."""
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, 0.0), 1.0)
        rec = find_nearest_hit((1.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert rec is not None
        assert rec.t == pytest.approx(5.0, abs=1e-6)
        assert rec.normal == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)

    def test_sphere_behind_origin_misses(self):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_sphere

        add_sphere((0.0, 0.0, 5.0), 1.0)
        assert find_nearest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is None

    def test_oblique_hit_normal_is_unit(self):
        from whitted.core.render import find_nearest_hit
        from whitted.scene.intersection import add_sphere

        add_sphere((-3.0, 0.0, -16.0), 2.0)
        rec = find_nearest_hit((0.0, 0.0, 0.0), (-3.0, 1.0, -16.0))
        assert rec is not None
        assert math.dist(rec.point, (-3.0, 0.0, -16.0)) == pytest.approx(2.0, abs=1e-9)
        assert math.hypot(*rec.normal) == pytest.approx(1.0, abs=1e-12)
        assert rec.entering is True
