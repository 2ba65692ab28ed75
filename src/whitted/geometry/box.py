"""Axis-aligned boxes: rectangular prisms and cubes.

Both use the slab test. For each axis the ray enters and leaves the slab
between the two bounding planes; the box interval is the intersection of the
three slab intervals. The normal is the outward normal of the face where the
interval starts, or where it ends when the ray starts inside the box.
"""

import taichi as ti

from whitted.core.config import Tolerances
from whitted.core.vector import real, vec3
from whitted.geometry.hit import Hit, make_hit, make_miss

# Stand-in for an unbounded slab interval
SLAB_INFINITY = 1e300


@ti.dataclass
class RectPrism:
    """An axis-aligned box given by two opposite corners.

    Attributes:
        min_corner: Corner with the smallest coordinates (vec3).
        max_corner: Corner with the largest coordinates (vec3).
    """

    min_corner: vec3
    max_corner: vec3


@ti.func
def make_cube(center: vec3, side_length: real) -> RectPrism:
    half = 0.5 * side_length
    offset = vec3(half, half, half)
    return RectPrism(min_corner=center - offset, max_corner=center + offset)


@ti.func
def hit_box(ray_origin: vec3, ray_direction: vec3, box: RectPrism, tol: Tolerances) -> Hit:
    t_near = -SLAB_INFINITY
    t_far = SLAB_INFINITY
    n_near = vec3(0.0, 0.0, 0.0)
    n_far = vec3(0.0, 0.0, 0.0)
    missed = 0

    for i in ti.static(range(3)):
        face_normal = vec3(0.0, 0.0, 0.0)
        face_normal[i] = 1.0
        if ti.abs(ray_direction[i]) <= tol.normalize_epsilon:
            # Parallel to this slab: inside it or never
            if ray_origin[i] < box.min_corner[i] or ray_origin[i] > box.max_corner[i]:
                missed = 1
        else:
            t_min_face = (box.min_corner[i] - ray_origin[i]) / ray_direction[i]
            t_max_face = (box.max_corner[i] - ray_origin[i]) / ray_direction[i]
            t_enter = t_min_face
            t_exit = t_max_face
            n_enter = -face_normal
            n_exit = face_normal
            if t_enter > t_exit:
                t_enter = t_max_face
                t_exit = t_min_face
                n_enter = face_normal
                n_exit = -face_normal
            if t_enter > t_near:
                t_near = t_enter
                n_near = n_enter
            if t_exit < t_far:
                t_far = t_exit
                n_far = n_exit

    result = make_miss()
    if missed == 0 and t_near <= t_far:
        if t_near > tol.hit_epsilon:
            result = make_hit(ray_origin, ray_direction, t_near, n_near)
        elif t_far > tol.hit_epsilon and t_far < SLAB_INFINITY:
            result = make_hit(ray_origin, ray_direction, t_far, n_far)
    return result


@ti.func
def hit_cube(ray_origin: vec3, ray_direction: vec3, center: vec3, side_length: real, tol: Tolerances) -> Hit:
    return hit_box(ray_origin, ray_direction, make_cube(center, side_length), tol)
