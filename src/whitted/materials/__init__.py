"""Materials module.

Components:
    phong: Phong material registry (ambient, diffuse, specular terms plus
        reflectivity, transparency and refractive index) with an optional
        procedural checkerboard

All lookups are Taichi functions so the shading engine can read materials
inside the render kernels.
"""

from .phong import (
    MATERIAL_PRESETS,
    MAX_MATERIALS,
    PATTERN_CHECKER,
    PATTERN_NONE,
    PhongMaterial,
    add_phong_material,
    add_preset_material,
    checker_parity,
    clear_materials,
    get_material,
    get_material_count,
    surface_color,
    validate_material,
)

__all__ = [
    "PhongMaterial",
    "MAX_MATERIALS",
    "MATERIAL_PRESETS",
    "PATTERN_NONE",
    "PATTERN_CHECKER",
    "add_phong_material",
    "add_preset_material",
    "clear_materials",
    "get_material",
    "get_material_count",
    "checker_parity",
    "surface_color",
    "validate_material",
]
