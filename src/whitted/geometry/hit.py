"""Intersection record shared by every primitive.

The normal stored on a Hit is always the outward unit normal of the surface.
Whether the ray arrived from outside is carried separately in ``entering`` so
the shading engine can pick the facing side and the refraction ratio.
"""

import taichi as ti
import taichi.math as tm

from whitted.core.vector import real, vec3


@ti.dataclass
class Hit:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: Intersection point. Only valid if hit == 1.
        normal: Outward unit surface normal. Only valid if hit == 1.
        entering: 1 if the ray hit the outside of the surface
            (dot(direction, normal) < 0), 0 if it hit from inside.
        material_id: Material of the primitive, -1 until the scene fills it in.
        shape_index: Index of the primitive in the scene table, -1 until the
            scene fills it in.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    entering: ti.i32
    material_id: ti.i32
    shape_index: ti.i32


@ti.func
def make_miss() -> Hit:
    return Hit(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        entering=0,
        material_id=-1,
        shape_index=-1,
    )


@ti.func
def make_hit(ray_origin: vec3, ray_direction: vec3, t: real, outward_normal: vec3) -> Hit:
    """Build a hit record at parameter t with the given outward normal."""
    return Hit(
        hit=1,
        t=t,
        point=ray_origin + t * ray_direction,
        normal=outward_normal,
        entering=ti.select(tm.dot(ray_direction, outward_normal) < 0.0, 1, 0),
        material_id=-1,
        shape_index=-1,
    )
