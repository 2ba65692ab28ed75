"""Capped cylinder with an arbitrary axis.

The lateral surface is the set of points whose distance from the axis line
equals the radius. Substituting the ray into it with the axial components
removed gives a quadratic in t. Lateral hits are kept only when their axial
coordinate h lies in [0, height]; the two end caps are disks at h = 0 and
h = height.

A height of zero or less means an infinite cylinder: no caps and no axial
range check.
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances
from whitted.core.roots import solve_quadratic
from whitted.core.vector import real, vec3
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Cylinder:
    """A cylinder standing on its base disk.

    Attributes:
        base_center: Center of the bottom cap (vec3).
        axis: Unit vector from the bottom cap toward the top cap (vec3).
        radius: Radius of the cylinder.
        height: Distance between the caps; <= 0 for an infinite cylinder.
    """

    base_center: vec3
    axis: vec3
    radius: real
    height: real


@ti.func
def hit_disk(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    normal: vec3,
    radius: real,
    tol: Tolerances,
):
    """Intersect a ray with a disk.

    Returns:
        A tuple (t, found). Rays parallel to the disk plane never hit it.
    """
    t = ti.cast(0.0, ti.f64)
    found = 0
    denom = tm.dot(ray_direction, normal)
    if ti.abs(denom) > tol.normalize_epsilon:
        t_plane = tm.dot(center - ray_origin, normal) / denom
        if t_plane > tol.hit_epsilon:
            offset = ray_origin + t_plane * ray_direction - center
            if tm.dot(offset, offset) <= radius * radius:
                t = t_plane
                found = 1
    return t, found


@ti.func
def hit_cylinder(ray_origin: vec3, ray_direction: vec3, cylinder: Cylinder, tol: Tolerances) -> Hit:
    axis = cylinder.axis
    finite = cylinder.height > 0.0
    w = ray_origin - cylinder.base_center

    d_perp = ray_direction - tm.dot(ray_direction, axis) * axis
    w_perp = w - tm.dot(w, axis) * axis
    a = tm.dot(d_perp, d_perp)
    b = 2.0 * tm.dot(d_perp, w_perp)
    c = tm.dot(w_perp, w_perp) - cylinder.radius * cylinder.radius

    best_t = ti.cast(0.0, ti.f64)
    best_normal = vec3(0.0, 0.0, 0.0)
    found = 0

    if cylinder.radius > 0.0:
        # Lateral surface: ray parallel to the axis reduces to no roots
        roots, count = solve_quadratic(a, b, c, tol)
        for k in ti.static(range(2)):
            if found == 0 and k < count and roots[k] > tol.hit_epsilon:
                t = roots[k]
                h = tm.dot(w + t * ray_direction, axis)
                if not finite or (h >= 0.0 and h <= cylinder.height):
                    point = ray_origin + t * ray_direction
                    best_t = t
                    best_normal = (point - cylinder.base_center - h * axis) / cylinder.radius
                    found = 1

        if finite:
            t_bottom, hit_bottom = hit_disk(
                ray_origin, ray_direction, cylinder.base_center, -axis, cylinder.radius, tol
            )
            if hit_bottom == 1 and (found == 0 or t_bottom < best_t):
                best_t = t_bottom
                best_normal = -axis
                found = 1

            top_center = cylinder.base_center + cylinder.height * axis
            t_top, hit_top = hit_disk(ray_origin, ray_direction, top_center, axis, cylinder.radius, tol)
            if hit_top == 1 and (found == 0 or t_top < best_t):
                best_t = t_top
                best_normal = axis
                found = 1

    result = make_miss()
    if found == 1:
        result = make_hit(ray_origin, ray_direction, best_t, tm.normalize(best_normal))
    return result
