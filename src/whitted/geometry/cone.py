"""Capped cone with an arbitrary axis.

The cone has its apex at ``apex`` and opens along ``axis`` until it reaches
the base disk at distance ``height``. With k = radius / height the lateral
surface is the set of points v (relative to the apex) where

    |v|^2 - (1 + k^2) (v . axis)^2 = 0

Substituting the ray gives a quadratic in t. That equation also describes the
mirrored nappe behind the apex, so lateral hits are kept only when the axial
coordinate h = v . axis lies in [0, height].
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances
from whitted.core.roots import solve_quadratic
from whitted.core.vector import real, safe_normalize, vec3
from whitted.geometry.cylinder import hit_disk
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Cone:
    """A cone given by its apex and base.

    Attributes:
        apex: Tip of the cone (vec3).
        axis: Unit vector from the apex toward the base (vec3).
        height: Distance from the apex to the base disk (positive).
        radius: Radius of the base disk (positive).
    """

    apex: vec3
    axis: vec3
    height: real
    radius: real


@ti.func
def cone_normal(point: vec3, cone: Cone, tol: Tolerances) -> vec3:
    """Outward lateral normal, falling back to -axis at the apex."""
    k = cone.radius / cone.height
    v = point - cone.apex
    h = tm.dot(v, cone.axis)
    n = safe_normalize(v - (1.0 + k * k) * h * cone.axis, tol.normalize_epsilon)
    if n.x == 0.0 and n.y == 0.0 and n.z == 0.0:
        n = -cone.axis
    return n


@ti.func
def hit_cone(ray_origin: vec3, ray_direction: vec3, cone: Cone, tol: Tolerances) -> Hit:
    best_t = ti.cast(0.0, ti.f64)
    best_normal = vec3(0.0, 0.0, 0.0)
    found = 0

    if cone.height > 0.0 and cone.radius > 0.0:
        axis = cone.axis
        k = cone.radius / cone.height
        kk = 1.0 + k * k
        w = ray_origin - cone.apex
        da = tm.dot(ray_direction, axis)
        wa = tm.dot(w, axis)

        a = tm.dot(ray_direction, ray_direction) - kk * da * da
        b = 2.0 * (tm.dot(w, ray_direction) - kk * wa * da)
        c = tm.dot(w, w) - kk * wa * wa

        roots, count = solve_quadratic(a, b, c, tol)
        for i in ti.static(range(2)):
            if found == 0 and i < count and roots[i] > tol.hit_epsilon:
                t = roots[i]
                h = wa + t * da
                if h >= 0.0 and h <= cone.height:
                    best_t = t
                    best_normal = cone_normal(ray_origin + t * ray_direction, cone, tol)
                    found = 1

        base_center = cone.apex + cone.height * axis
        t_base, hit_base = hit_disk(ray_origin, ray_direction, base_center, axis, cone.radius, tol)
        if hit_base == 1 and (found == 0 or t_base < best_t):
            best_t = t_base
            best_normal = axis
            found = 1

    result = make_miss()
    if found == 1:
        result = make_hit(ray_origin, ray_direction, best_t, best_normal)
    return result
