"""Sphere primitive.

The ray-sphere intersection is found by solving:
    |ray_origin + t * ray_direction - center|^2 = radius^2

which expands to the quadratic a*t^2 + b*t + c = 0 with
    a = dot(direction, direction)
    b = 2 * dot(direction, oc)
    c = dot(oc, oc) - radius^2
    oc = origin - center

The roots come from the shared solver, so tangent rays (zero discriminant)
return a single grazing hit and the numerically stable form is used for the
two-root case.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from whitted.core.config import Tolerances
from whitted.core.roots import smallest_root_above, solve_quadratic
from whitted.core.vector import real, vec3
from whitted.geometry.hit import Hit, make_hit, make_miss


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive).
    """

    center: vec3
    radius: real


@ti.func
def make_sphere(center: vec3, radius: real) -> Sphere:
    return Sphere(center=center, radius=radius)


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere, tol: Tolerances) -> Hit:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        sphere: The sphere to test against.
        tol: Numeric tolerances; roots at or below hit_epsilon are ignored.

    Returns:
        The nearest hit in front of the origin, or a miss record. A ray
        starting inside the sphere hits the far side with entering == 0.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    b = 2.0 * tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    result = make_miss()
    if sphere.radius > 0.0:
        roots, count = solve_quadratic(a, b, c, tol)
        t, found = smallest_root_above(roots, count, tol.hit_epsilon)
        if found == 1:
            point = ray_origin + t * ray_direction
            outward_normal = (point - sphere.center) / sphere.radius
            result = make_hit(ray_origin, ray_direction, t, outward_normal)
    return result
