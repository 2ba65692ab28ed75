"""Ovoid (axis-aligned ellipsoid) primitive.

The ray is scaled into the space where the ovoid is the unit sphere. Because
the scaling is linear the ray parameter t is unchanged, so the quadratic
solved there gives world-space distances directly. The outward normal is the
gradient of the implicit function, (p - c) / r^2 per axis.
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances
from whitted.core.roots import smallest_root_above, solve_quadratic
from whitted.core.vector import vec3
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Ovoid:
    """An ellipsoid with per-axis radii.

    Attributes:
        center: The center point (vec3).
        radii: Semi-axis lengths along x, y and z (vec3, all positive).
    """

    center: vec3
    radii: vec3


@ti.func
def hit_ovoid(ray_origin: vec3, ray_direction: vec3, ovoid: Ovoid, tol: Tolerances) -> Hit:
    result = make_miss()
    radii = ovoid.radii
    if radii.x > 0.0 and radii.y > 0.0 and radii.z > 0.0:
        local_origin = (ray_origin - ovoid.center) / radii
        local_direction = ray_direction / radii

        a = tm.dot(local_direction, local_direction)
        b = 2.0 * tm.dot(local_origin, local_direction)
        c = tm.dot(local_origin, local_origin) - 1.0

        roots, count = solve_quadratic(a, b, c, tol)
        t, found = smallest_root_above(roots, count, tol.hit_epsilon)
        if found == 1:
            point = ray_origin + t * ray_direction
            outward_normal = tm.normalize((point - ovoid.center) / (radii * radii))
            result = make_hit(ray_origin, ray_direction, t, outward_normal)
    return result
