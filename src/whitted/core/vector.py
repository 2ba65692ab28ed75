"""Ray data structure and vector utilities.

This module provides the Ray dataclass and the vector operations used by the
intersection layer and the shading engine. Everything here is a Taichi
function so it can be inlined into the render kernels.

All vectors are double precision. Producers of rays (camera, reflection,
refraction, shadow rays) are expected to hand out unit-length directions.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.core.vector import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Scalar and 3D vector types shared by every kernel in the package
real = ti.f64
vec3 = ti.types.vector(3, ti.f64)


@ti.dataclass
class Ray:
    """A ray with an origin point and a unit direction.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3, unit length).
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> real:
    """Compute the dot product of two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        The scalar a.x*b.x + a.y*b.y + a.z*b.z.
    """
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        A vector perpendicular to both a and b, following the right-hand rule.
    """
    return tm.cross(a, b)


@ti.func
def length(v: vec3) -> real:
    """Compute the length (magnitude) of a vector.

    Args:
        v: The input vector.

    Returns:
        The Euclidean length of the vector.
    """
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing distances.

    Args:
        v: The input vector.

    Returns:
        The dot product of v with itself.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector. Must be non-zero; use safe_normalize otherwise.

    Returns:
        A unit vector in the same direction as v.
    """
    return tm.normalize(v)


@ti.func
def safe_normalize(v: vec3, eps: real) -> vec3:
    """Normalize a vector, returning the zero vector when it has no direction.

    Callers receiving the zero vector must treat it as "no well-defined
    direction" and fall back to a default of their own.

    Args:
        v: The input vector.
        eps: Lengths at or below this value are treated as zero.

    Returns:
        A unit vector along v, or vec3(0, 0, 0).
    """
    result = vec3(0.0, 0.0, 0.0)
    len_v = tm.length(v)
    if len_v > eps:
        result = v / len_v
    return result


@ti.func
def is_zero_vector(v: vec3) -> ti.i32:
    return v.x == 0.0 and v.y == 0.0 and v.z == 0.0


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident direction about a unit normal: d - 2 (d.n) n."""
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: real):
    """Refract a unit direction through a surface using Snell's law.

    ``eta`` is the ratio n_incident / n_transmitted for a ray arriving on the
    side the normal points to. When the ray arrives from the other side
    (cos(theta_i) < 0) the normal is flipped and the ratio inverted.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal (unit length).
        eta: Ratio of refractive indices.

    Returns:
        A tuple (direction, total_internal_reflection). When total internal
        reflection occurs the flag is 1 and direction is the zero vector; the
        caller must substitute a reflected ray.
    """
    n = normal
    ratio = eta
    cos_i = -tm.dot(incident, normal)
    if cos_i < 0.0:
        n = -normal
        ratio = 1.0 / eta
        cos_i = -cos_i

    sin2_t = ratio * ratio * (1.0 - cos_i * cos_i)

    direction = vec3(0.0, 0.0, 0.0)
    total_internal = 0
    if sin2_t > 1.0:
        total_internal = 1
    else:
        cos_t = ti.sqrt(1.0 - sin2_t)
        direction = tm.normalize(ratio * incident + (ratio * cos_i - cos_t) * n)
    return direction, total_internal


@ti.func
def offset_origin(point: vec3, normal: vec3, direction: vec3, bias: real) -> vec3:
    """Push a secondary ray origin off the surface on the side it travels to.

    Above the surface for reflected and shadow rays, below it for rays that
    continue into the material.
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + bias * offset_dir


@ti.func
def build_onb_from_axis(axis: vec3):
    """Build an orthonormal frame whose third vector is ``axis``.

    Args:
        axis: Unit vector that becomes the local z axis.

    Returns:
        A tuple (tangent, bitangent, axis).
    """
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(axis.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(a, axis))
    bitangent = tm.cross(axis, tangent)
    return tangent, bitangent, axis


@ti.func
def world_to_local(v: vec3, tangent: vec3, bitangent: vec3, axis: vec3) -> vec3:
    return vec3(tm.dot(v, tangent), tm.dot(v, bitangent), tm.dot(v, axis))


@ti.func
def local_to_world(v: vec3, tangent: vec3, bitangent: vec3, axis: vec3) -> vec3:
    return v.x * tangent + v.y * bitangent + v.z * axis
