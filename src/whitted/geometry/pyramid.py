"""Square pyramid: one base square and four triangular faces.

The base is an axis-aligned square in the plane y = base_center.y, facing -y.
Each side face is the triangle (apex, corner_i, corner_i+1) tested with the
Moller-Trumbore algorithm. Side normals are oriented away from a point inside
the pyramid, so they are outward regardless of vertex winding.
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances
from whitted.core.vector import real, vec3
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Pyramid:
    """A right square pyramid standing on the xz plane.

    Attributes:
        base_center: Center of the base square (vec3).
        height: Distance from the base up to the apex (positive).
        half_base: Half of the base side length (positive).
    """

    base_center: vec3
    height: real
    half_base: real


@ti.func
def hit_triangle(ray_origin: vec3, ray_direction: vec3, v0: vec3, v1: vec3, v2: vec3, tol: Tolerances):
    """Moller-Trumbore ray/triangle test.

    Returns:
        A tuple (t, found).
    """
    t = ti.cast(0.0, ti.f64)
    found = 0
    edge1 = v1 - v0
    edge2 = v2 - v0
    p = tm.cross(ray_direction, edge2)
    det = tm.dot(edge1, p)
    if ti.abs(det) > tol.normalize_epsilon:
        inv_det = 1.0 / det
        s = ray_origin - v0
        u = tm.dot(s, p) * inv_det
        if u >= 0.0 and u <= 1.0:
            q = tm.cross(s, edge1)
            v = tm.dot(ray_direction, q) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t_candidate = tm.dot(edge2, q) * inv_det
                if t_candidate > tol.hit_epsilon:
                    t = t_candidate
                    found = 1
    return t, found


# (x, z) signs of the base corners, counter-clockwise seen from above
_CORNER_SIGNS = ((-1.0, -1.0), (1.0, -1.0), (1.0, 1.0), (-1.0, 1.0))


@ti.func
def _base_corner(pyramid: Pyramid, index: ti.template()) -> vec3:
    sign = ti.static(_CORNER_SIGNS[index])
    h = pyramid.half_base
    return pyramid.base_center + vec3(sign[0] * h, 0.0, sign[1] * h)


@ti.func
def hit_pyramid(ray_origin: vec3, ray_direction: vec3, pyramid: Pyramid, tol: Tolerances) -> Hit:
    best_t = ti.cast(0.0, ti.f64)
    best_normal = vec3(0.0, -1.0, 0.0)
    found = 0

    if pyramid.height > 0.0 and pyramid.half_base > 0.0:
        base = pyramid.base_center
        h = pyramid.half_base

        # Base square
        if ti.abs(ray_direction.y) > tol.normalize_epsilon:
            t_base = (base.y - ray_origin.y) / ray_direction.y
            if t_base > tol.hit_epsilon:
                p = ray_origin + t_base * ray_direction
                if ti.abs(p.x - base.x) <= h and ti.abs(p.z - base.z) <= h:
                    best_t = t_base
                    best_normal = vec3(0.0, -1.0, 0.0)
                    found = 1

        apex = base + vec3(0.0, pyramid.height, 0.0)
        interior = base + vec3(0.0, 0.25 * pyramid.height, 0.0)
        for i in ti.static(range(4)):
            c0 = _base_corner(pyramid, i)
            c1 = _base_corner(pyramid, (i + 1) % 4)
            t_face, hit_face = hit_triangle(ray_origin, ray_direction, apex, c0, c1, tol)
            if hit_face == 1 and (found == 0 or t_face < best_t):
                n = tm.normalize(tm.cross(c0 - apex, c1 - apex))
                if tm.dot(n, c0 - interior) < 0.0:
                    n = -n
                best_t = t_face
                best_normal = n
                found = 1

    result = make_miss()
    if found == 1:
        result = make_hit(ray_origin, ray_direction, best_t, best_normal)
    return result
