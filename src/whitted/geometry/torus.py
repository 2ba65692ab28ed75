"""Torus primitive solved with the quartic solver.

The ray is moved into a frame centered on the torus whose z axis is the
torus axis. There the surface is

    (|p|^2 + R^2 - r^2)^2 = 4 R^2 (x^2 + y^2)

with R the major (ring) radius and r the minor (tube) radius. Substituting
p = o + t d and writing e = |o|^2 - R^2 - r^2, f = o . d gives

    c4 = (d.d)^2
    c3 = 4 (d.d) f
    c2 = 2 (d.d) e + 4 f^2 + 4 R^2 dz^2
    c1 = 4 f e + 8 R^2 oz dz
    c0 = e^2 - 4 R^2 (r^2 - oz^2)

Up to four real roots; the smallest one past hit_epsilon is the hit. Before
the coefficients are formed, a distant origin is advanced along the ray to
the bounding sphere of radius R + r and the root is shifted back.
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances
from whitted.core.roots import smallest_root_above, solve_quartic
from whitted.core.vector import build_onb_from_axis, local_to_world, real, vec3, world_to_local
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Torus:
    """A ring torus.

    Attributes:
        center: Center of the ring (vec3).
        axis: Unit axis of rotational symmetry (vec3).
        major_radius: Distance from the center to the tube center line.
        minor_radius: Radius of the tube.
    """

    center: vec3
    axis: vec3
    major_radius: real
    minor_radius: real


@ti.func
def torus_local_normal(q: vec3, major_radius: real, tol: Tolerances) -> vec3:
    """Outward normal at a local point q on the torus surface.

    The normal points from the nearest point on the tube center line to q.
    On the axis itself that point is undefined and the axis is returned.
    """
    rho = ti.sqrt(q.x * q.x + q.y * q.y)
    n = vec3(0.0, 0.0, 1.0)
    if rho > tol.normalize_epsilon:
        ring_point = major_radius * vec3(q.x / rho, q.y / rho, 0.0)
        diff = q - ring_point
        if tm.length(diff) > tol.normalize_epsilon:
            n = tm.normalize(diff)
    return n


@ti.func
def hit_torus(ray_origin: vec3, ray_direction: vec3, torus: Torus, tol: Tolerances) -> Hit:
    result = make_miss()
    major = torus.major_radius
    minor = torus.minor_radius
    if major > 0.0 and minor > 0.0:
        tangent, bitangent, axis = build_onb_from_axis(torus.axis)
        o = world_to_local(ray_origin - torus.center, tangent, bitangent, axis)
        d = world_to_local(ray_direction, tangent, bitangent, axis)
        dd = tm.dot(d, d)

        # Start the quartic at the bounding sphere; no surface point lies
        # closer to a far origin than |o| - (R + r)
        t_start = ti.max(0.0, (tm.length(o) - (major + minor)) / ti.sqrt(dd))
        o = o + t_start * d

        e = tm.dot(o, o) - major * major - minor * minor
        f = tm.dot(o, d)
        four_r2 = 4.0 * major * major

        c4 = dd * dd
        c3 = 4.0 * dd * f
        c2 = 2.0 * dd * e + 4.0 * f * f + four_r2 * d.z * d.z
        c1 = 4.0 * f * e + 2.0 * four_r2 * o.z * d.z
        c0 = e * e - four_r2 * (minor * minor - o.z * o.z)

        roots, count = solve_quartic(c4, c3, c2, c1, c0, tol)
        t, found = smallest_root_above(roots, count, tol.hit_epsilon - t_start)
        if found == 1:
            local_normal = torus_local_normal(o + t * d, major, tol)
            normal = local_to_world(local_normal, tangent, bitangent, axis)
            result = make_hit(ray_origin, ray_direction, t_start + t, normal)
    return result
