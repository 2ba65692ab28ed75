"""Tests for the Whitted shading engine.

Tests cover:
- Background color on a miss
- Ambient, diffuse and specular terms
- Shadow rays
- Recursion depth bound and the size of the recursion tree
- Reflection and refraction weights
"""

import math

import pytest

BACKGROUND = (0.2, 0.7, 0.8)


def _matte(**overrides):
    from whitted.materials.phong import add_phong_material

    params = dict(color=(0.5, 0.5, 0.5), ambient=0.0, diffuse=1.0, specular=0.0)
    params.update(overrides)
    return add_phong_material(**params)


class TestBackground:
    def test_miss_returns_background(self):
        from whitted.core.render import trace_ray_stats

        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result.color == pytest.approx(BACKGROUND)
        assert result.nodes == 1
        assert result.deepest == 0

    def test_custom_background(self):
        from whitted.core.render import trace_ray
        from whitted.scene.lights import set_background

        set_background((0.1, 0.0, 0.3))
        assert trace_ray((0.0, 0.0, 0.0), (1.0, 2.0, 3.0)) == pytest.approx((0.1, 0.0, 0.3))


class TestLocalIllumination:
    def test_ambient_only(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere

        mat = _matte(color=(0.5, 0.4, 0.3), ambient=0.2, diffuse=0.0)
        add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.1, 0.08, 0.06))

    def test_ambient_light_scales_ambient_term(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import set_ambient_light

        mat = _matte(color=(0.5, 0.4, 0.3), ambient=0.2, diffuse=0.0)
        add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        set_ambient_light((0.5, 0.5, 0.5))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.05, 0.04, 0.03))

    def test_diffuse_head_on(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        add_light((0.0, 0.0, 0.0))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.5, 0.5, 0.5))

    def test_light_color_and_intensity(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        add_light((0.0, 0.0, 0.0), (1.0, 0.5, 0.25), 2.0)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((1.0, 0.5, 0.25))

    def test_lights_accumulate(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        add_light((0.0, 0.0, 0.0), intensity=0.5)
        add_light((0.0, 0.0, 10.0), intensity=0.25)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.375, 0.375, 0.375))

    def test_oblique_light(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        add_light((0.0, 5.0, 1.0))
        expected = 0.5 / math.sqrt(2.0)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((expected,) * 3)

    def test_shadowed_by_blocker(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        # Sits on the segment from the hit point (0, 0, -4) to the light
        add_sphere((0.0, 2.5, -1.5), 0.5, _matte())
        add_light((0.0, 5.0, 1.0))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.0, 0.0, 0.0))

    def test_blocker_beyond_light_casts_no_shadow(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        add_sphere((0.0, 10.0, 6.0), 1.0, _matte())
        add_light((0.0, 5.0, 1.0))
        expected = 0.5 / math.sqrt(2.0)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((expected,) * 3)

    def test_light_behind_surface(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte())
        add_light((0.0, 0.0, -20.0))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.0, 0.0, 0.0))

    def test_light_at_hit_point_is_skipped(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        add_sphere((0.0, 0.0, -5.0), 1.0, _matte(ambient=0.2))
        add_light((0.0, 0.0, -4.0))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.1, 0.1, 0.1))

    def test_specular_highlight_takes_surface_color(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        mat = _matte(color=(1.0, 0.0, 0.0), diffuse=0.0, specular=1.0, exponent=1.0)
        add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        add_light((0.0, 0.0, 0.0))
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((1.0, 0.0, 0.0))

    def test_diffuse_and_specular_share_surface_color(self):
        from whitted.core.render import trace_ray
        from whitted.scene.intersection import add_sphere
        from whitted.scene.lights import add_light

        mat = _matte(color=(0.5, 0.25, 1.0), diffuse=1.0, specular=1.0, exponent=1.0)
        add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        add_light((0.0, 0.0, 0.0), intensity=0.5)
        # 0.5 * base * (1 + 1)
        assert trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) == pytest.approx((0.5, 0.25, 1.0))


class TestRecursion:
    def _mirror_sphere(self):
        """A sphere that reflects everything, seen from its center."""
        from whitted.scene.intersection import add_sphere

        mat = _matte(ambient=0.0, diffuse=0.0, reflectivity=1.0)
        add_sphere((0.0, 0.0, 0.0), 5.0, mat)

    def test_depth_bound_with_default_config(self):
        from whitted.core.render import trace_ray_stats

        self._mirror_sphere()
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result.nodes == 5
        assert result.deepest == 4
        assert result.color == pytest.approx(BACKGROUND)

    @pytest.mark.parametrize("max_depth", [0, 1, 2, 6])
    def test_depth_bound_follows_config(self, max_depth):
        from whitted.core.config import TraceConfig, set_trace_config
        from whitted.core.render import trace_ray_stats

        set_trace_config(TraceConfig(max_depth=max_depth))
        self._mirror_sphere()
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result.nodes == max_depth + 1
        assert result.deepest == max_depth
        assert result.color == pytest.approx(BACKGROUND)

    def test_starting_depth_counts_toward_bound(self):
        from whitted.core.render import trace_ray_stats

        self._mirror_sphere()
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=3)
        assert result.nodes == 2
        assert result.deepest == 4

    def test_depth_beyond_bound_returns_background(self):
        from whitted.core.render import trace_ray_stats

        self._mirror_sphere()
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=5)
        assert result.color == pytest.approx(BACKGROUND)
        assert result.nodes == 0
        assert result.deepest == -1

    def test_partial_reflection_blends_with_local(self):
        from whitted.core.render import trace_ray_stats
        from whitted.scene.intersection import add_sphere

        mat = _matte(color=(1.0, 0.0, 0.0), ambient=1.0, diffuse=0.0, reflectivity=0.5)
        add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        # 0.5 * red + 0.5 * background seen by the reflected ray
        assert result.color == pytest.approx((0.6, 0.35, 0.4))
        assert result.nodes == 2
        assert result.deepest == 1

    def test_refraction_reaches_shape_behind(self):
        from whitted.core.render import trace_ray_stats
        from whitted.scene.intersection import add_cube, add_sphere

        glass = _matte(ambient=0.0, diffuse=0.0, transparency=1.0, ior=1.5)
        wall = _matte(color=(1.0, 0.0, 0.0), ambient=1.0, diffuse=0.0)
        add_sphere((0.0, 0.0, -5.0), 1.0, glass)
        add_cube((0.0, 0.0, -20.0), 2.0, wall)

        # Head-on rays pass straight through the sphere
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result.color == pytest.approx((1.0, 0.0, 0.0))
        assert result.nodes == 3
        assert result.deepest == 2

    def test_reflection_and_refraction_tree(self):
        from whitted.core.render import trace_ray_stats
        from whitted.scene.intersection import add_sphere

        mat = _matte(ambient=0.0, diffuse=0.0, reflectivity=0.25, transparency=0.5, ior=1.0)
        add_sphere((0.0, 0.0, -5.0), 1.0, mat)
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        # Every escaping branch sees the background. Inside the sphere the
        # ray bounces between the two poles until max_depth, where the last
        # node's reflected and refracted terms become background too.
        background_weight = 0.25 + 0.25 + 0.0625 + 0.015625 + 0.0078125 * 0.75
        assert result.color == pytest.approx(tuple(background_weight * c for c in BACKGROUND))
        assert result.nodes == 9
        assert result.deepest == 4


class TestTotalInternalReflection:
    def _glass_ball(self):
        """A clear sphere of radius 1 around the origin, red wall behind it."""
        from whitted.scene.intersection import add_cube, add_sphere

        glass = _matte(ambient=0.0, diffuse=0.0, transparency=1.0, ior=1.5)
        wall = _matte(color=(1.0, 0.0, 0.0), ambient=1.0, diffuse=0.0)
        add_sphere((0.0, 0.0, 0.0), 1.0, glass)
        add_cube((0.0, 0.0, -20.0), 2.0, wall)

    def test_past_critical_angle_stays_inside(self):
        from whitted.core.render import trace_ray_stats

        self._glass_ball()
        # Leaves the surface at sin(theta) = 0.8 > 1 / 1.5. Every chord of a
        # sphere meets the surface at the same angle, so the ray keeps
        # reflecting internally until max_depth and never reaches the wall.
        result = trace_ray_stats((0.0, 0.8, 0.0), (0.0, 0.0, -1.0))
        assert result.nodes == 5
        assert result.deepest == 4
        assert result.color == pytest.approx(BACKGROUND)

    def test_below_critical_angle_refracts_out(self):
        from whitted.core.render import trace_ray_stats

        self._glass_ball()
        # sin(theta) = 0.5 < 1 / 1.5: the ray exits bent downward and passes
        # below the wall.
        result = trace_ray_stats((0.0, 0.5, 0.0), (0.0, 0.0, -1.0))
        assert result.nodes == 2
        assert result.deepest == 1
        assert result.color == pytest.approx(BACKGROUND)

    def test_straight_exit_hits_wall(self):
        from whitted.core.render import trace_ray_stats

        self._glass_ball()
        result = trace_ray_stats((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert result.nodes == 2
        assert result.color == pytest.approx((1.0, 0.0, 0.0))
