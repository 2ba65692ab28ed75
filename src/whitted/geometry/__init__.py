"""Geometry module for shape primitives.

Components:
    hit: Intersection record shared by all primitives
    sphere: Sphere
    ovoid: Axis-aligned ellipsoid (scaled sphere)
    cylinder: Capped or infinite cylinder with arbitrary axis
    cone: Capped cone with arbitrary axis
    torus: Torus via the quartic solver
    box: Rectangular prism and cube (slab test)
    pyramid: Square pyramid (base square plus four triangles)
    floor: Finite horizontal rectangle

All intersection routines are Taichi functions following the pattern:
    hit = hit_<shape>(ray_origin, ray_direction, shape, tol)
"""

from .box import RectPrism, hit_box, hit_cube, make_cube
from .cone import Cone, hit_cone
from .cylinder import Cylinder, hit_cylinder, hit_disk
from .floor import Floor, hit_floor
from .hit import Hit, make_hit, make_miss
from .ovoid import Ovoid, hit_ovoid
from .pyramid import Pyramid, hit_pyramid, hit_triangle
from .sphere import Sphere, hit_sphere, make_sphere
from .torus import Torus, hit_torus

__all__ = [
    "Hit",
    "make_hit",
    "make_miss",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Ovoid",
    "hit_ovoid",
    "Cylinder",
    "hit_cylinder",
    "hit_disk",
    "Cone",
    "hit_cone",
    "Torus",
    "hit_torus",
    "RectPrism",
    "hit_box",
    "hit_cube",
    "make_cube",
    "Pyramid",
    "hit_pyramid",
    "hit_triangle",
    "Floor",
    "hit_floor",
]
