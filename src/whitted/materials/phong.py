"""Phong material registry.

Materials are stored in Taichi fields indexed by material id and are shared
by any number of shapes. Each material carries:

    - ambient, diffuse and specular coefficients
    - a base color and a specular exponent
    - reflectivity and transparency weights used by the shading engine
    - a refractive index for transparent materials
    - an optional xz checkerboard pattern (second color and tile size)

The local color at a point is the base color, or the pattern color on every
other checkerboard tile:

    tile parity = (floor(x / size) + floor(z / size)) mod 2

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.materials.phong import add_phong_material
    >>> glass = add_phong_material(color=(0.6, 0.7, 0.8), diffuse=0.0,
    ...                            specular=0.9, exponent=125.0,
    ...                            reflectivity=0.1, transparency=0.8, ior=1.5)
"""

import math

import taichi as ti
import taichi.math as tm

from whitted.core.vector import real, vec3


@ti.dataclass
class PhongMaterial:
    """Kernel-side view of one material."""

    ambient: real
    diffuse: real
    specular: real
    color: vec3
    exponent: real
    reflectivity: real
    transparency: real
    ior: real
    pattern: ti.i32
    pattern_color: vec3
    pattern_scale: real


# Pattern kinds
PATTERN_NONE = 0
PATTERN_CHECKER = 1

# =============================================================================
# Material Field Storage
# =============================================================================

MAX_MATERIALS = 256

material_ambient = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_diffuse = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_specular = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_colors = ti.Vector.field(3, dtype=ti.f64, shape=MAX_MATERIALS)
material_exponents = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_reflectivity = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_transparency = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_iors = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
material_patterns = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_pattern_colors = ti.Vector.field(3, dtype=ti.f64, shape=MAX_MATERIALS)
material_pattern_scales = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def _validate_color(name: str, color) -> tuple[float, float, float]:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    values = tuple(float(c) for c in color)
    for c in values:
        if not math.isfinite(c) or c < 0.0:
            raise ValueError(f"{name} components must be finite and non-negative, got {color}")
    return values


def validate_material(
    color,
    ambient: float,
    diffuse: float,
    specular: float,
    exponent: float,
    reflectivity: float,
    transparency: float,
    ior: float,
    pattern_color=None,
    pattern_scale: float = 1.0,
) -> None:
    """Check material parameters, raising ValueError on the first bad one."""
    _validate_color("color", color)
    for name, value in (("ambient", ambient), ("diffuse", diffuse), ("specular", specular), ("exponent", exponent)):
        if not math.isfinite(value) or value < 0.0:
            raise ValueError(f"{name} = {value} must be finite and non-negative")
    for name, value in (("reflectivity", reflectivity), ("transparency", transparency)):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} = {value} must be in [0, 1]")
    if not math.isfinite(ior) or ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "IOR must be >= 1.0 for physically meaningful materials."
        )
    if pattern_color is not None:
        _validate_color("pattern_color", pattern_color)
        if not pattern_scale > 0.0:
            raise ValueError(f"pattern_scale = {pattern_scale} must be positive")


def add_phong_material(
    color=(1.0, 1.0, 1.0),
    ambient: float = 0.1,
    diffuse: float = 0.9,
    specular: float = 0.0,
    exponent: float = 1.0,
    reflectivity: float = 0.0,
    transparency: float = 0.0,
    ior: float = 1.0,
    pattern_color=None,
    pattern_scale: float = 1.0,
) -> int:
    """Add a material to the registry.

    Args:
        color: Base RGB color.
        ambient: Ambient coefficient.
        diffuse: Diffuse coefficient.
        specular: Specular coefficient.
        exponent: Specular (shininess) exponent.
        reflectivity: Weight of the mirror-reflected color, in [0, 1].
        transparency: Weight of the refracted color, in [0, 1].
        ior: Refractive index, >= 1.
        pattern_color: Second checkerboard color; None disables the pattern.
        pattern_scale: Checkerboard tile size in world units.

    Returns:
        The id of the added material.

    Raises:
        ValueError: If any parameter is out of range.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    validate_material(
        color, ambient, diffuse, specular, exponent, reflectivity, transparency, ior, pattern_color, pattern_scale
    )

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_ambient[idx] = ambient
    material_diffuse[idx] = diffuse
    material_specular[idx] = specular
    material_colors[idx] = [float(c) for c in color]
    material_exponents[idx] = exponent
    material_reflectivity[idx] = reflectivity
    material_transparency[idx] = transparency
    material_iors[idx] = ior
    if pattern_color is None:
        material_patterns[idx] = PATTERN_NONE
        material_pattern_colors[idx] = [float(c) for c in color]
        material_pattern_scales[idx] = 1.0
    else:
        material_patterns[idx] = PATTERN_CHECKER
        material_pattern_colors[idx] = [float(c) for c in pattern_color]
        material_pattern_scales[idx] = pattern_scale
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> PhongMaterial:
    return PhongMaterial(
        ambient=material_ambient[material_id],
        diffuse=material_diffuse[material_id],
        specular=material_specular[material_id],
        color=material_colors[material_id],
        exponent=material_exponents[material_id],
        reflectivity=material_reflectivity[material_id],
        transparency=material_transparency[material_id],
        ior=material_iors[material_id],
        pattern=material_patterns[material_id],
        pattern_color=material_pattern_colors[material_id],
        pattern_scale=material_pattern_scales[material_id],
    )


@ti.func
def checker_parity(point: vec3, scale: real) -> ti.i32:
    ix = ti.cast(tm.floor(point.x / scale), ti.i64)
    iz = ti.cast(tm.floor(point.z / scale), ti.i64)
    return ti.cast((ix + iz) & 1, ti.i32)


@ti.func
def surface_color(material: PhongMaterial, point: vec3) -> vec3:
    """Base color of the material at a world-space point."""
    color = material.color
    if material.pattern == PATTERN_CHECKER:
        if checker_parity(point, material.pattern_scale) == 1:
            color = material.pattern_color
    return color


# =============================================================================
# Presets
# =============================================================================

# Keyword arguments for add_phong_material
MATERIAL_PRESETS = {
    "ivory": dict(
        color=(0.4, 0.4, 0.3), ambient=0.1, diffuse=0.9, specular=0.5,
        exponent=50.0, reflectivity=0.1, transparency=0.0, ior=1.0,
    ),
    "glass": dict(
        color=(0.6, 0.7, 0.8), ambient=0.0, diffuse=0.0, specular=0.9,
        exponent=125.0, reflectivity=0.1, transparency=0.8, ior=1.5,
    ),
    "red_rubber": dict(
        color=(0.3, 0.1, 0.1), ambient=0.1, diffuse=1.4, specular=0.3,
        exponent=10.0, reflectivity=0.0, transparency=0.0, ior=1.0,
    ),
    "mirror": dict(
        color=(1.0, 1.0, 1.0), ambient=0.0, diffuse=0.0, specular=16.0,
        exponent=1425.0, reflectivity=0.8, transparency=0.0, ior=1.0,
    ),
    "checker_floor": dict(
        color=(0.3, 0.3, 0.3), ambient=0.1, diffuse=1.0, specular=0.0,
        exponent=1.0, reflectivity=0.0, transparency=0.0, ior=1.0,
        pattern_color=(0.3, 0.2, 0.1), pattern_scale=2.0,
    ),
}


def add_preset_material(name: str) -> int:
    """Add one of MATERIAL_PRESETS by name."""
    try:
        params = MATERIAL_PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown material preset '{name}', expected one of {sorted(MATERIAL_PRESETS)}") from None
    return add_phong_material(**params)
