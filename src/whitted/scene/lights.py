"""Point lights and scene-wide colors.

Lights are stored in insertion order; the shading engine visits them in that
order. The background color is returned for rays that miss every shape and
the ambient light color scales every material's ambient term.
"""

import taichi as ti

from whitted.core.vector import vec3

MAX_LIGHTS = 64

DEFAULT_BACKGROUND = (0.2, 0.7, 0.8)
DEFAULT_AMBIENT_LIGHT = (1.0, 1.0, 1.0)

light_positions = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f64, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())

_background = ti.Vector.field(3, dtype=ti.f64, shape=())
_ambient_light = ti.Vector.field(3, dtype=ti.f64, shape=())


def clear_lights() -> None:
    """Remove all lights and restore the default background and ambient colors."""
    num_lights[None] = 0
    set_background(DEFAULT_BACKGROUND)
    set_ambient_light(DEFAULT_AMBIENT_LIGHT)


def add_light(position, color=(1.0, 1.0, 1.0), intensity: float = 1.0) -> int:
    """Add a point light.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = [float(c) for c in position]
    light_colors[idx] = [float(c) for c in color]
    light_intensities[idx] = float(intensity)
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    return int(num_lights[None])


def set_background(color) -> None:
    _background[None] = [float(c) for c in color]


def set_ambient_light(color) -> None:
    _ambient_light[None] = [float(c) for c in color]


def get_background_python() -> tuple[float, float, float]:
    c = _background[None]
    return (float(c[0]), float(c[1]), float(c[2]))


def get_ambient_light_python() -> tuple[float, float, float]:
    c = _ambient_light[None]
    return (float(c[0]), float(c[1]), float(c[2]))


@ti.func
def get_background() -> vec3:
    return _background[None]


@ti.func
def get_ambient_light() -> vec3:
    return _ambient_light[None]


@ti.func
def get_light(index: ti.i32):
    """Returns (position, radiance) where radiance is color * intensity."""
    return light_positions[index], light_colors[index] * light_intensities[index]


clear_lights()
