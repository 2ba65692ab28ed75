"""Core tracing module.

Components:
    vector: Ray data structure and vector utilities
    roots: Closed-form polynomial root solver up to degree four
    config: Tracing parameters and numeric tolerances
    shading: Whitted shading engine (local illumination, reflection, refraction)
    render: Image buffer and parallel render kernels

All compute-intensive operations use Taichi functions so they can be inlined
into the render kernels.
"""

from .vector import (
    Ray,
    build_onb_from_axis,
    cross,
    dot,
    length,
    length_squared,
    local_to_world,
    make_ray,
    normalize,
    offset_origin,
    ray_at,
    real,
    reflect,
    refract,
    safe_normalize,
    vec3,
    world_to_local,
)

# Note: shading and render are NOT imported here since they pull in the scene
# tables. Import them directly from whitted.core.shading / whitted.core.render.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "real",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "safe_normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "offset_origin",
    "build_onb_from_axis",
    "world_to_local",
    "local_to_world",
]
