"""Finite horizontal floor rectangle.

The floor lies in the plane y = height and spans [x_min, x_max] x [z_min, z_max].
Its normal is +y; rays coming from below still hit it, with entering == 0.
A checkerboard look comes from the material pattern, not from the geometry.
"""

import taichi as ti

from whitted.core.config import Tolerances
from whitted.core.vector import real, vec3
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Floor:
    """Axis-aligned rectangle in a horizontal plane.

    Attributes:
        height: The y coordinate of the plane.
        x_min, x_max: Extent along x.
        z_min, z_max: Extent along z.
    """

    height: real
    x_min: real
    x_max: real
    z_min: real
    z_max: real


@ti.func
def hit_floor(ray_origin: vec3, ray_direction: vec3, floor: Floor, tol: Tolerances) -> Hit:
    result = make_miss()
    if ti.abs(ray_direction.y) > tol.normalize_epsilon:
        t = (floor.height - ray_origin.y) / ray_direction.y
        if t > tol.hit_epsilon:
            p = ray_origin + t * ray_direction
            if p.x >= floor.x_min and p.x <= floor.x_max and p.z >= floor.z_min and p.z <= floor.z_max:
                result = make_hit(ray_origin, ray_direction, t, vec3(0.0, 1.0, 0.0))
    return result
