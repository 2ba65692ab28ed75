"""Scene-level primitive intersection testing.

All shapes live in one table, in the order they were added, so the nearest-hit
search can apply a single deterministic tie-break across every shape kind.
Each row stores the shape kind, two vector parameters, two scalar parameters
and a material id (Structure of Arrays layout):

    kind        vec_a        vec_b      scalar_a     scalar_b
    SPHERE      center       -          radius       -
    CUBE        center       -          side length  -
    RECT_PRISM  min corner   max corner -            -
    CONE        apex         axis       height       base radius
    CYLINDER    base center  axis       radius       height (<= 0: infinite)
    PYRAMID     base center  -          height       half base length
    OVOID       center       radii      -            -
    TORUS       center       axis       major radius minor radius
    FLOOR       (x0, y, z0)  (x1, y, z1) -           -

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -16.0), 2.0, material_id=0)
    >>> # Use intersect_nearest within a Taichi kernel
"""

import math
from enum import IntEnum

import taichi as ti

from whitted.core.config import Tolerances
from whitted.core.vector import real, vec3
from whitted.geometry.box import RectPrism, hit_box, hit_cube
from whitted.geometry.cone import Cone, hit_cone
from whitted.geometry.cylinder import Cylinder, hit_cylinder
from whitted.geometry.floor import Floor, hit_floor
from whitted.geometry.hit import Hit, make_miss
from whitted.geometry.ovoid import Ovoid, hit_ovoid
from whitted.geometry.pyramid import Pyramid, hit_pyramid
from whitted.geometry.sphere import Sphere, hit_sphere
from whitted.geometry.torus import Torus, hit_torus


class ShapeKind(IntEnum):
    """Closed set of shape kinds stored in the shape table."""

    SPHERE = 0
    CUBE = 1
    RECT_PRISM = 2
    CONE = 3
    CYLINDER = 4
    PYRAMID = 5
    OVOID = 6
    TORUS = 7
    FLOOR = 8


# Maximum number of shapes supported in the scene
MAX_SHAPES = 1024

# Larger than any real intersection distance
FAR_DISTANCE = 1e300

shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_vec_a = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SHAPES)
shape_vec_b = ti.Vector.field(3, dtype=ti.f64, shape=MAX_SHAPES)
shape_scalar_a = ti.field(dtype=ti.f64, shape=MAX_SHAPES)
shape_scalar_b = ti.field(dtype=ti.f64, shape=MAX_SHAPES)
shape_material_ids = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all shapes.

    Resets the shape count to zero. The actual field data is not cleared but
    will be overwritten when new shapes are added.
    """
    num_shapes[None] = 0


def get_shape_count() -> int:
    """Get the number of shapes in the scene."""
    return int(num_shapes[None])


def _unit(v) -> list[float]:
    x, y, z = (float(c) for c in v)
    length = math.sqrt(x * x + y * y + z * z)
    if length == 0.0:
        raise ValueError("Axis must be a non-zero vector")
    return [x / length, y / length, z / length]


def _add_shape(
    kind: ShapeKind,
    material_id: int,
    vec_a=(0.0, 0.0, 0.0),
    vec_b=(0.0, 0.0, 0.0),
    scalar_a: float = 0.0,
    scalar_b: float = 0.0,
) -> int:
    idx = num_shapes[None]
    if idx >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
    shape_kinds[idx] = int(kind)
    shape_vec_a[idx] = [float(c) for c in vec_a]
    shape_vec_b[idx] = [float(c) for c in vec_b]
    shape_scalar_a[idx] = float(scalar_a)
    shape_scalar_b[idx] = float(scalar_b)
    shape_material_ids[idx] = material_id
    num_shapes[None] = idx + 1
    return idx


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Returns:
        The index of the added shape.

    Raises:
        RuntimeError: If the maximum number of shapes is exceeded.
    """
    return _add_shape(ShapeKind.SPHERE, material_id, vec_a=center, scalar_a=radius)


def add_cube(center, side_length: float, material_id: int = 0) -> int:
    return _add_shape(ShapeKind.CUBE, material_id, vec_a=center, scalar_a=side_length)


def add_rect_prism(min_corner, max_corner, material_id: int = 0) -> int:
    return _add_shape(ShapeKind.RECT_PRISM, material_id, vec_a=min_corner, vec_b=max_corner)


def add_cone(apex, axis, height: float, radius: float, material_id: int = 0) -> int:
    """Add a cone opening from ``apex`` along ``axis`` (normalized here)."""
    return _add_shape(ShapeKind.CONE, material_id, vec_a=apex, vec_b=_unit(axis), scalar_a=height, scalar_b=radius)


def add_cylinder(base_center, axis, radius: float, height: float, material_id: int = 0) -> int:
    """Add a cylinder; a height <= 0 makes it infinite along its axis."""
    return _add_shape(
        ShapeKind.CYLINDER, material_id, vec_a=base_center, vec_b=_unit(axis), scalar_a=radius, scalar_b=height
    )


def add_pyramid(base_center, height: float, half_base: float, material_id: int = 0) -> int:
    return _add_shape(ShapeKind.PYRAMID, material_id, vec_a=base_center, scalar_a=height, scalar_b=half_base)


def add_ovoid(center, radii, material_id: int = 0) -> int:
    return _add_shape(ShapeKind.OVOID, material_id, vec_a=center, vec_b=radii)


def add_torus(center, axis, major_radius: float, minor_radius: float, material_id: int = 0) -> int:
    return _add_shape(
        ShapeKind.TORUS,
        material_id,
        vec_a=center,
        vec_b=_unit(axis),
        scalar_a=major_radius,
        scalar_b=minor_radius,
    )


def add_floor(height: float, x_range, z_range, material_id: int = 0) -> int:
    """Add a horizontal rectangle at y = height over the given x and z ranges."""
    x0, x1 = (float(v) for v in x_range)
    z0, z1 = (float(v) for v in z_range)
    return _add_shape(ShapeKind.FLOOR, material_id, vec_a=(x0, height, z0), vec_b=(x1, height, z1))


# =============================================================================
# Kernel-side queries
# =============================================================================


@ti.func
def hit_shape(index: ti.i32, ray_origin: vec3, ray_direction: vec3, tol: Tolerances) -> Hit:
    """Intersect one row of the shape table, dispatching on its kind."""
    kind = shape_kinds[index]
    a = shape_vec_a[index]
    b = shape_vec_b[index]
    sa = shape_scalar_a[index]
    sb = shape_scalar_b[index]

    rec = make_miss()
    if kind == int(ShapeKind.SPHERE):
        rec = hit_sphere(ray_origin, ray_direction, Sphere(center=a, radius=sa), tol)
    elif kind == int(ShapeKind.CUBE):
        rec = hit_cube(ray_origin, ray_direction, a, sa, tol)
    elif kind == int(ShapeKind.RECT_PRISM):
        rec = hit_box(ray_origin, ray_direction, RectPrism(min_corner=a, max_corner=b), tol)
    elif kind == int(ShapeKind.CONE):
        rec = hit_cone(ray_origin, ray_direction, Cone(apex=a, axis=b, height=sa, radius=sb), tol)
    elif kind == int(ShapeKind.CYLINDER):
        rec = hit_cylinder(
            ray_origin, ray_direction, Cylinder(base_center=a, axis=b, radius=sa, height=sb), tol
        )
    elif kind == int(ShapeKind.PYRAMID):
        rec = hit_pyramid(ray_origin, ray_direction, Pyramid(base_center=a, height=sa, half_base=sb), tol)
    elif kind == int(ShapeKind.OVOID):
        rec = hit_ovoid(ray_origin, ray_direction, Ovoid(center=a, radii=b), tol)
    elif kind == int(ShapeKind.TORUS):
        rec = hit_torus(
            ray_origin, ray_direction, Torus(center=a, axis=b, major_radius=sa, minor_radius=sb), tol
        )
    elif kind == int(ShapeKind.FLOOR):
        rec = hit_floor(
            ray_origin, ray_direction, Floor(height=a.y, x_min=a.x, x_max=b.x, z_min=a.z, z_max=b.z), tol
        )
    return rec


@ti.func
def intersect_nearest(ray_origin: vec3, ray_direction: vec3, tol: Tolerances) -> Hit:
    """Test the ray against every shape and keep the nearest hit.

    Shapes are visited in insertion order. A later shape replaces the current
    winner only when it is nearer by more than tie_epsilon, so coincident
    surfaces resolve to the shape added first.

    Returns:
        The nearest Hit with material_id and shape_index filled in, or a miss
        record if nothing was hit.
    """
    closest_t = ti.cast(FAR_DISTANCE, ti.f64)
    result = make_miss()

    n = num_shapes[None]
    for i in range(n):
        rec = hit_shape(i, ray_origin, ray_direction, tol)
        if rec.hit == 1 and rec.t < closest_t - tol.tie_epsilon:
            closest_t = rec.t
            result = Hit(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                entering=rec.entering,
                material_id=shape_material_ids[i],
                shape_index=i,
            )
    return result


@ti.func
def occludes(rec: Hit, max_distance: real) -> ti.i32:
    """Whether a shadow ray's nearest hit lies before the light."""
    blocked = 0
    if rec.hit == 1 and rec.t < max_distance:
        blocked = 1
    return blocked


@ti.func
def is_occluded(ray_origin: vec3, ray_direction: vec3, max_distance: real, tol: Tolerances) -> ti.i32:
    """Test if any shape blocks the ray before max_distance (shadow query)."""
    return occludes(intersect_nearest(ray_origin, ray_direction, tol), max_distance)
