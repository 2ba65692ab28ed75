"""Whitted-style recursive ray tracer built on Taichi.

This package renders analytically defined scenes with the classic Whitted
model: Phong local illumination with shadow rays, plus recursive mirror
reflection and Snell refraction bounded by a maximum depth.

Subpackages:
    core: Vector math, polynomial root solving, tracing configuration,
        the shading engine and the render kernels
    geometry: Per-primitive ray intersection (sphere, box, cone, cylinder,
        pyramid, ovoid, torus, floor)
    materials: Phong material registry with checkerboard patterns
    scene: Shape and light tables, nearest-hit queries, scene manager
    camera: Pinhole camera producing one ray per pixel center
    preview: Image export (PNG, PPM) and matplotlib preview

Taichi must be initialised before any submodule that allocates fields is
imported. All kernels assume double precision::

    import taichi as ti
    ti.init(arch=ti.cpu, default_fp=ti.f64)
"""

__version__ = "0.1.0"
