"""Image buffer and render kernels.

The render kernel maps every pixel to one deterministic camera ray through
its center, traces it with the Whitted shading engine and stores the color
clamped per channel to [0, 1]. The outermost pixel loop is Taichi's parallel
loop; each iteration writes only its own buffer cell and the scene is only
read, so repeated renders of the same scene are bit-identical.

Host-side wrappers (render_pixel, trace_ray, trace_ray_stats,
find_nearest_hit) run the same Taichi functions for a single ray, for tests
and debugging tools.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.core.render import render_image, setup_render_target, get_image_numpy
    >>> from whitted.scene.showcase import create_showcase_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene(320, 240)
    >>> setup_camera(camera)
    >>> setup_render_target(320, 240)
    >>> render_image()
    >>> image = get_image_numpy()  # (240, 320, 3), row 0 at the top
"""

import logging
import math
import time
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import get_pixel_ray
from whitted.core.config import active_tolerances, get_trace_config
from whitted.core.shading import trace, trace_with_stats
from whitted.core.vector import make_ray, vec3
from whitted.scene.intersection import intersect_nearest

logger = logging.getLogger(__name__)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

DEBUG_MODES = ("normals", "depth")

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Indexed [column, row] with row 0 at the top of the image
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to zero."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Forget the render target; rendering raises until it is set up again."""
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Returns (width, height) of the active render target."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the full preallocated color buffer, indexed [column, row].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32):
    for i, j in ti.ndrange(width, height):
        ray = get_pixel_ray(i, j, width, height)
        color = trace(ray, 0, active_tolerances())
        _color_buffer[i, j] = ti.cast(tm.clamp(color, 0.0, 1.0), ti.f32)


@ti.kernel
def _render_debug_kernel(width: ti.i32, height: ti.i32, mode: ti.i32, far: ti.f64):
    for i, j in ti.ndrange(width, height):
        ray = get_pixel_ray(i, j, width, height)
        rec = intersect_nearest(ray.origin, ray.direction, active_tolerances())
        color = vec3(0.0, 0.0, 0.0)
        if rec.hit == 1:
            if mode == 0:
                color = 0.5 * (rec.normal + 1.0)
            else:
                shade = tm.clamp(1.0 - rec.t / far, 0.0, 1.0)
                color = vec3(shade, shade, shade)
        _color_buffer[i, j] = ti.cast(color, ti.f32)


# Single-ray probes, written into fields for the host wrappers
_probe_color = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_nodes = ti.field(dtype=ti.i32, shape=())
_probe_deepest = ti.field(dtype=ti.i32, shape=())
_probe_hit = ti.field(dtype=ti.i32, shape=())
_probe_t = ti.field(dtype=ti.f64, shape=())
_probe_point = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_normal = ti.Vector.field(3, dtype=ti.f64, shape=())
_probe_entering = ti.field(dtype=ti.i32, shape=())
_probe_material_id = ti.field(dtype=ti.i32, shape=())
_probe_shape_index = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _probe_pixel_kernel(col: ti.i32, row: ti.i32, width: ti.i32, height: ti.i32):
    # Single iteration keeps the scene loops out of the parallel scope
    for _ in range(1):
        ray = get_pixel_ray(col, row, width, height)
        color = trace(ray, 0, active_tolerances())
        _probe_color[None] = tm.clamp(color, 0.0, 1.0)


@ti.kernel
def _probe_trace_kernel(origin: vec3, direction: vec3, depth: ti.i32):
    for _ in range(1):
        color, nodes, deepest = trace_with_stats(make_ray(origin, direction), depth, active_tolerances())
        _probe_color[None] = color
        _probe_nodes[None] = nodes
        _probe_deepest[None] = deepest


@ti.kernel
def _probe_hit_kernel(origin: vec3, direction: vec3):
    for _ in range(1):
        rec = intersect_nearest(origin, direction, active_tolerances())
        _probe_hit[None] = rec.hit
        _probe_t[None] = rec.t
        _probe_point[None] = rec.point
        _probe_normal[None] = rec.normal
        _probe_entering[None] = rec.entering
        _probe_material_id[None] = rec.material_id
        _probe_shape_index[None] = rec.shape_index


# =============================================================================
# Public Rendering API
# =============================================================================


@dataclass
class TraceResult:
    """Color of one traced ray plus the size of its recursion tree."""

    color: tuple[float, float, float]
    nodes: int
    deepest: int


@dataclass
class HitInfo:
    """Host-side copy of a nearest-hit query."""

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    entering: bool
    material_id: int
    shape_index: int


def _vec(value) -> tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))


def _unit_direction(direction) -> list[float]:
    x, y, z = (float(c) for c in direction)
    length = math.sqrt(x * x + y * y + z * z)
    if length == 0.0:
        raise ValueError("Ray direction must be non-zero")
    return [x / length, y / length, z / length]


def render_image() -> None:
    """Render the whole image into the color buffer.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    config = get_trace_config()
    logger.info("Rendering %dx%d image (max depth %d)", width, height, config.max_depth)

    start = time.perf_counter()
    _render_kernel(width, height)
    ti.sync()
    logger.info("Rendered in %.2fs", time.perf_counter() - start)


def render_debug(mode: str = "normals", far: float = 50.0) -> None:
    """Render a visualisation of the nearest-hit query.

    Args:
        mode: "normals" maps the outward normal to RGB as (n + 1) / 2;
            "depth" shades by distance, white at the camera fading to black
            at ``far``. Misses are black in both modes.
        far: Distance mapped to black in depth mode.

    Raises:
        ValueError: If mode is unknown or far is not positive.
        RuntimeError: If render target has not been set up.
    """
    if mode not in DEBUG_MODES:
        raise ValueError(f"Unknown debug mode '{mode}', expected one of {DEBUG_MODES}")
    if far <= 0.0:
        raise ValueError(f"far must be positive, got {far}")
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    logger.info("Rendering %s debug view %dx%d", mode, width, height)
    _render_debug_kernel(width, height, DEBUG_MODES.index(mode), far)


def render_pixel(col: int, row: int) -> tuple[float, float, float]:
    """Render a single pixel (row 0 at the top) and return its clamped color.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    if not (0 <= col < width and 0 <= row < height):
        raise ValueError(f"Pixel ({col}, {row}) outside {width}x{height} image")
    _probe_pixel_kernel(col, row, width, height)
    return _vec(_probe_color[None])


def trace_ray_stats(origin, direction, depth: int = 0) -> TraceResult:
    """Trace one ray with the active scene and configuration.

    The direction is normalized before tracing. The color is not clamped.

    Raises:
        ValueError: If depth is negative or the direction is zero.
    """
    if depth < 0:
        raise ValueError(f"depth must be >= 0, got {depth}")
    _probe_trace_kernel(
        vec3([float(c) for c in origin]), vec3(_unit_direction(direction)), depth
    )
    return TraceResult(
        color=_vec(_probe_color[None]),
        nodes=int(_probe_nodes[None]),
        deepest=int(_probe_deepest[None]),
    )


def trace_ray(origin, direction, depth: int = 0) -> tuple[float, float, float]:
    """Unclamped color seen along a ray."""
    return trace_ray_stats(origin, direction, depth).color


def find_nearest_hit(origin, direction) -> HitInfo | None:
    """Nearest shape hit by a ray, or None when it hits nothing."""
    _probe_hit_kernel(vec3([float(c) for c in origin]), vec3(_unit_direction(direction)))
    if _probe_hit[None] == 0:
        return None
    return HitInfo(
        t=float(_probe_t[None]),
        point=_vec(_probe_point[None]),
        normal=_vec(_probe_normal[None]),
        entering=bool(_probe_entering[None]),
        material_id=int(_probe_material_id[None]),
        shape_index=int(_probe_shape_index[None]),
    )


def get_image_numpy() -> np.ndarray:
    """Get the rendered image as a NumPy array.

    Returns:
        Float32 array of shape (height, width, 3) in row-major order with
        row 0 at the top, values in [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]
    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))
    return np.ascontiguousarray(image, dtype=np.float32)
