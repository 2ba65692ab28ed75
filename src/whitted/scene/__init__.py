"""Scene module for scene storage and ray-scene queries.

Components:
    intersection: Ordered shape table, nearest-hit and occlusion queries
    lights: Point lights, background and ambient light colors
    manager: Validated scene building and JSON serialization
    showcase: Demo scene with one of every shape

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for shape parameters
    - Contiguous material ID arrays
    - Insertion order preserved for deterministic tie-breaks
"""

from .intersection import (
    MAX_SHAPES,
    ShapeKind,
    add_cone,
    add_cube,
    add_cylinder,
    add_floor,
    add_ovoid,
    add_pyramid,
    add_rect_prism,
    add_sphere,
    add_torus,
    clear_scene,
    get_shape_count,
    hit_shape,
    intersect_nearest,
    is_occluded,
    occludes,
)
from .lights import (
    MAX_LIGHTS,
    add_light,
    clear_lights,
    get_ambient_light,
    get_background,
    get_light_count,
    set_ambient_light,
    set_background,
)
from .manager import (
    LightInfo,
    MaterialInfo,
    SceneConfig,
    SceneManager,
    ShapeInfo,
    load_scene_file,
    save_scene_file,
)
from .showcase import create_showcase_scene

__all__ = [
    # Intersection module
    "MAX_SHAPES",
    "ShapeKind",
    "add_sphere",
    "add_cube",
    "add_rect_prism",
    "add_cone",
    "add_cylinder",
    "add_pyramid",
    "add_ovoid",
    "add_torus",
    "add_floor",
    "clear_scene",
    "get_shape_count",
    "hit_shape",
    "intersect_nearest",
    "is_occluded",
    "occludes",
    # Lights module
    "MAX_LIGHTS",
    "add_light",
    "clear_lights",
    "get_light_count",
    "get_background",
    "get_ambient_light",
    "set_background",
    "set_ambient_light",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "ShapeInfo",
    "LightInfo",
    "SceneConfig",
    "load_scene_file",
    "save_scene_file",
    # Showcase
    "create_showcase_scene",
]
