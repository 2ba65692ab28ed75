"""Scene manager coordinating shapes, materials and lights.

This module provides the host-side scene building API. It validates every
parameter before anything is written to the Taichi fields, so a malformed
scene (a shape referencing a missing material, a negative radius, a zero
axis) fails at construction time and the render kernels never see it.

The SceneManager maintains:
- The material registry, with the parameters each material was created with
- The ordered shape table, one ShapeInfo per shape
- The ordered light table, background color and ambient light color
- Scene serialization to and from plain dictionaries and JSON files

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_preset_material("glass")
    >>> scene.add_sphere(center=(-3.0, 0.0, -16.0), radius=2.0, material_id=glass)
    >>> scene.add_light(position=(-20.0, 20.0, 20.0), intensity=1.5)
"""

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from whitted.camera.pinhole import PinholeCamera
from whitted.materials.phong import (
    MATERIAL_PRESETS,
    MAX_MATERIALS,
    add_phong_material,
    clear_materials,
    get_material_count,
)
from whitted.scene import intersection
from whitted.scene.intersection import MAX_SHAPES, ShapeKind, clear_scene, get_shape_count
from whitted.scene.lights import (
    DEFAULT_AMBIENT_LIGHT,
    DEFAULT_BACKGROUND,
    MAX_LIGHTS,
    add_light,
    clear_lights,
    get_light_count,
    set_ambient_light,
    set_background,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material ID used by shapes.
        params: The material parameters as provided during creation.
    """

    material_id: int
    params: dict[str, Any]


@dataclass
class ShapeInfo:
    """Information about a shape in the scene.

    Attributes:
        shape_index: The index in the shape table (scene order).
        kind: The shape kind.
        params: The geometric parameters as provided during creation.
        material_id: The material ID assigned to the shape.
    """

    shape_index: int
    kind: ShapeKind
    params: dict[str, Any]
    material_id: int


@dataclass
class LightInfo:
    """Information about a point light.

    Attributes:
        light_index: The index in the light table.
        position: World-space position.
        color: RGB color.
        intensity: Scalar intensity multiplying the color.
    """

    light_index: int
    position: tuple[float, float, float]
    color: tuple[float, float, float]
    intensity: float


@dataclass
class SceneConfig:
    """Configuration for scene serialization."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    shapes: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    background: tuple[float, float, float] = DEFAULT_BACKGROUND
    ambient_light: tuple[float, float, float] = DEFAULT_AMBIENT_LIGHT


def _as_vec3(name: str, value) -> tuple[float, float, float]:
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {value!r}")
    result = (float(value[0]), float(value[1]), float(value[2]))
    if not all(math.isfinite(c) for c in result):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def _require_positive(name: str, value: float) -> float:
    value = float(value)
    if not (math.isfinite(value) and value > 0.0):
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _require_axis(name: str, value) -> tuple[float, float, float]:
    axis = _as_vec3(name, value)
    length = math.sqrt(sum(c * c for c in axis))
    if length < 1e-12:
        raise ValueError(f"{name} must be a non-zero vector, got {value!r}")
    return (axis[0] / length, axis[1] / length, axis[2] / length)


class SceneManager:
    """Host-side scene builder.

    Creating a SceneManager clears the global shape, material and light
    tables; only one scene is active at a time.

    Attributes:
        materials: MaterialInfo for every registered material, by id.
        shapes: ShapeInfo for every shape, in scene order.
        lights: LightInfo for every light, in scene order.
        background: Color returned for rays that hit nothing.
        ambient_light: Color scaling every material's ambient term.

    Example:
        >>> scene = SceneManager()
        >>> ivory = scene.add_preset_material("ivory")
        >>> scene.add_sphere((-3.0, 0.0, -16.0), 2.0, ivory)
        >>> scene.add_torus((0.0, 0.0, -12.0), (0.0, 0.0, 1.0), 1.5, 0.4, ivory)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.shapes: list[ShapeInfo] = []
        self.lights: list[LightInfo] = []
        self.background: tuple[float, float, float] = DEFAULT_BACKGROUND
        self.ambient_light: tuple[float, float, float] = DEFAULT_AMBIENT_LIGHT
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.shapes.clear()
        self.lights.clear()
        self.background = DEFAULT_BACKGROUND
        self.ambient_light = DEFAULT_AMBIENT_LIGHT

    def clear(self) -> None:
        """Clear the entire scene (shapes, materials and lights)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(
        self,
        color: tuple[float, float, float] = (1.0, 1.0, 1.0),
        ambient: float = 0.1,
        diffuse: float = 0.9,
        specular: float = 0.0,
        exponent: float = 1.0,
        reflectivity: float = 0.0,
        transparency: float = 0.0,
        ior: float = 1.0,
        pattern_color: tuple[float, float, float] | None = None,
        pattern_scale: float = 1.0,
    ) -> int:
        """Add a Phong material.

        Returns:
            The material ID to pass to the shape methods.

        Raises:
            ValueError: If a parameter is out of range.
            RuntimeError: If the maximum number of materials is exceeded.
        """
        params: dict[str, Any] = {
            "color": list(color),
            "ambient": ambient,
            "diffuse": diffuse,
            "specular": specular,
            "exponent": exponent,
            "reflectivity": reflectivity,
            "transparency": transparency,
            "ior": ior,
        }
        if pattern_color is not None:
            params["pattern_color"] = list(pattern_color)
            params["pattern_scale"] = pattern_scale

        material_id = add_phong_material(
            color=color,
            ambient=ambient,
            diffuse=diffuse,
            specular=specular,
            exponent=exponent,
            reflectivity=reflectivity,
            transparency=transparency,
            ior=ior,
            pattern_color=pattern_color,
            pattern_scale=pattern_scale,
        )
        self.materials.append(MaterialInfo(material_id=material_id, params=params))
        logger.debug("Added material %d: %s", material_id, params)
        return material_id

    def add_preset_material(self, name: str) -> int:
        """Add one of the named presets (ivory, glass, red_rubber, mirror, checker_floor)."""
        if name not in MATERIAL_PRESETS:
            raise ValueError(f"Unknown material preset '{name}', expected one of {sorted(MATERIAL_PRESETS)}")
        return self.add_material(**MATERIAL_PRESETS[name])

    def get_material_count(self) -> int:
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material(self, material_id: int) -> int:
        if not isinstance(material_id, int) or material_id < 0 or material_id >= get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")
        return material_id

    # =========================================================================
    # Shape Management
    # =========================================================================

    def _record_shape(self, shape_index: int, kind: ShapeKind, params: dict[str, Any], material_id: int) -> int:
        self.shapes.append(ShapeInfo(shape_index=shape_index, kind=kind, params=params, material_id=material_id))
        logger.debug("Added %s %d (material %d): %s", kind.name.lower(), shape_index, material_id, params)
        return shape_index

    def add_sphere(self, center, radius: float, material_id: int) -> int:
        """Add a sphere.

        Raises:
            ValueError: If the radius is not positive or material_id is invalid.
            RuntimeError: If the maximum number of shapes is exceeded.
        """
        self._check_material(material_id)
        center = _as_vec3("center", center)
        radius = _require_positive("radius", radius)
        idx = intersection.add_sphere(center, radius, material_id)
        return self._record_shape(idx, ShapeKind.SPHERE, {"center": list(center), "radius": radius}, material_id)

    def add_cube(self, center, side_length: float, material_id: int) -> int:
        self._check_material(material_id)
        center = _as_vec3("center", center)
        side_length = _require_positive("side_length", side_length)
        idx = intersection.add_cube(center, side_length, material_id)
        return self._record_shape(
            idx, ShapeKind.CUBE, {"center": list(center), "side_length": side_length}, material_id
        )

    def add_rect_prism(self, min_corner, max_corner, material_id: int) -> int:
        """Add an axis-aligned box; every min coordinate must be below its max."""
        self._check_material(material_id)
        min_corner = _as_vec3("min_corner", min_corner)
        max_corner = _as_vec3("max_corner", max_corner)
        if any(lo >= hi for lo, hi in zip(min_corner, max_corner)):
            raise ValueError(f"min_corner {min_corner} must be below max_corner {max_corner} on every axis")
        idx = intersection.add_rect_prism(min_corner, max_corner, material_id)
        return self._record_shape(
            idx,
            ShapeKind.RECT_PRISM,
            {"min_corner": list(min_corner), "max_corner": list(max_corner)},
            material_id,
        )

    def add_cone(self, apex, axis, height: float, radius: float, material_id: int) -> int:
        """Add a cone whose apex is at ``apex`` and whose base is ``height`` along ``axis``."""
        self._check_material(material_id)
        apex = _as_vec3("apex", apex)
        axis = _require_axis("axis", axis)
        height = _require_positive("height", height)
        radius = _require_positive("radius", radius)
        idx = intersection.add_cone(apex, axis, height, radius, material_id)
        return self._record_shape(
            idx,
            ShapeKind.CONE,
            {"apex": list(apex), "axis": list(axis), "height": height, "radius": radius},
            material_id,
        )

    def add_cylinder(self, base_center, axis, radius: float, height: float, material_id: int) -> int:
        """Add a capped cylinder; a height <= 0 gives an infinite one."""
        self._check_material(material_id)
        base_center = _as_vec3("base_center", base_center)
        axis = _require_axis("axis", axis)
        radius = _require_positive("radius", radius)
        height = float(height)
        idx = intersection.add_cylinder(base_center, axis, radius, height, material_id)
        return self._record_shape(
            idx,
            ShapeKind.CYLINDER,
            {"base_center": list(base_center), "axis": list(axis), "radius": radius, "height": height},
            material_id,
        )

    def add_pyramid(self, base_center, height: float, half_base: float, material_id: int) -> int:
        self._check_material(material_id)
        base_center = _as_vec3("base_center", base_center)
        height = _require_positive("height", height)
        half_base = _require_positive("half_base", half_base)
        idx = intersection.add_pyramid(base_center, height, half_base, material_id)
        return self._record_shape(
            idx,
            ShapeKind.PYRAMID,
            {"base_center": list(base_center), "height": height, "half_base": half_base},
            material_id,
        )

    def add_ovoid(self, center, radii, material_id: int) -> int:
        self._check_material(material_id)
        center = _as_vec3("center", center)
        radii = tuple(_require_positive("radii", r) for r in _as_vec3("radii", radii))
        idx = intersection.add_ovoid(center, radii, material_id)
        return self._record_shape(idx, ShapeKind.OVOID, {"center": list(center), "radii": list(radii)}, material_id)

    def add_torus(self, center, axis, major_radius: float, minor_radius: float, material_id: int) -> int:
        self._check_material(material_id)
        center = _as_vec3("center", center)
        axis = _require_axis("axis", axis)
        major_radius = _require_positive("major_radius", major_radius)
        minor_radius = _require_positive("minor_radius", minor_radius)
        idx = intersection.add_torus(center, axis, major_radius, minor_radius, material_id)
        return self._record_shape(
            idx,
            ShapeKind.TORUS,
            {
                "center": list(center),
                "axis": list(axis),
                "major_radius": major_radius,
                "minor_radius": minor_radius,
            },
            material_id,
        )

    def add_floor(self, height: float, x_range, z_range, material_id: int) -> int:
        """Add a horizontal rectangle at y = height."""
        self._check_material(material_id)
        height = float(height)
        x0, x1 = (float(v) for v in x_range)
        z0, z1 = (float(v) for v in z_range)
        if x0 >= x1 or z0 >= z1:
            raise ValueError(f"Floor ranges must be increasing, got x={x_range} z={z_range}")
        idx = intersection.add_floor(height, (x0, x1), (z0, z1), material_id)
        return self._record_shape(
            idx, ShapeKind.FLOOR, {"height": height, "x_range": [x0, x1], "z_range": [z0, z1]}, material_id
        )

    def add_shape(self, kind: str, material_id: int, **params) -> int:
        """Add a shape by kind name, e.g. ``add_shape("sphere", 0, center=..., radius=...)``."""
        adders = {
            "sphere": self.add_sphere,
            "cube": self.add_cube,
            "rect_prism": self.add_rect_prism,
            "cone": self.add_cone,
            "cylinder": self.add_cylinder,
            "pyramid": self.add_pyramid,
            "ovoid": self.add_ovoid,
            "torus": self.add_torus,
            "floor": self.add_floor,
        }
        adder = adders.get(kind.lower())
        if adder is None:
            raise ValueError(f"Unknown shape type: {kind}")
        try:
            return adder(material_id=material_id, **params)
        except TypeError as exc:
            raise ValueError(f"Bad parameters for {kind}: {exc}") from exc

    def get_shape_count(self) -> int:
        return get_shape_count()

    # =========================================================================
    # Lights and Scene Colors
    # =========================================================================

    def add_light(self, position, color=(1.0, 1.0, 1.0), intensity: float = 1.0) -> int:
        """Add a point light.

        Raises:
            ValueError: If the color or intensity is negative.
            RuntimeError: If the maximum number of lights is exceeded.
        """
        position = _as_vec3("position", position)
        color = _as_vec3("color", color)
        intensity = float(intensity)
        if any(c < 0.0 for c in color) or not (math.isfinite(intensity) and intensity >= 0.0):
            raise ValueError(f"Light color and intensity must be non-negative, got {color} x {intensity}")
        idx = add_light(position, color, intensity)
        self.lights.append(LightInfo(light_index=idx, position=position, color=color, intensity=intensity))
        logger.debug("Added light %d at %s (intensity %.3g)", idx, position, intensity)
        return idx

    def get_light_count(self) -> int:
        return get_light_count()

    def set_background(self, color) -> None:
        self.background = _as_vec3("background", color)
        set_background(self.background)

    def set_ambient_light(self, color) -> None:
        self.ambient_light = _as_vec3("ambient_light", color)
        set_ambient_light(self.ambient_light)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        return SceneConfig(
            materials=[dict(mat.params) for mat in self.materials],
            shapes=[
                {"type": shape.kind.name.lower(), "material_id": shape.material_id, **shape.params}
                for shape in self.shapes
            ],
            lights=[
                {"position": list(light.position), "color": list(light.color), "intensity": light.intensity}
                for light in self.lights
            ],
            background=self.background,
            ambient_light=self.ambient_light,
        )

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Materials are loaded before shapes so
        material ids refer to the order of the materials list.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for mat_config in config.materials:
            mat_config = dict(mat_config)
            preset = mat_config.pop("preset", None)
            if preset is not None:
                if mat_config:
                    raise ValueError(f"Preset material '{preset}' takes no other parameters")
                self.add_preset_material(preset)
            else:
                try:
                    self.add_material(**mat_config)
                except TypeError as exc:
                    raise ValueError(f"Bad material parameters: {exc}") from exc

        for shape_config in config.shapes:
            shape_config = dict(shape_config)
            kind = shape_config.pop("type", "")
            material_id = shape_config.pop("material_id", 0)
            self.add_shape(kind, material_id, **shape_config)

        for light_config in config.lights:
            self.add_light(
                light_config["position"],
                light_config.get("color", (1.0, 1.0, 1.0)),
                light_config.get("intensity", 1.0),
            )

        self.set_background(config.background)
        self.set_ambient_light(config.ambient_light)

        logger.info(
            "Loaded scene: %d materials, %d shapes, %d lights",
            len(self.materials),
            len(self.shapes),
            len(self.lights),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "shapes": config.shapes,
            "lights": config.lights,
            "background": list(config.background),
            "ambient_light": list(config.ambient_light),
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with materials/shapes/lights keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            shapes=data.get("shapes", []),
            lights=data.get("lights", []),
            background=tuple(data.get("background", DEFAULT_BACKGROUND)),
            ambient_light=tuple(data.get("ambient_light", DEFAULT_AMBIENT_LIGHT)),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_shapes() -> int:
        return MAX_SHAPES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS

    @staticmethod
    def get_max_lights() -> int:
        return MAX_LIGHTS


def save_scene_file(path: str | Path, scene: SceneManager, camera: PinholeCamera | None = None) -> None:
    """Write the scene (and optionally a camera) as JSON."""
    data = scene.to_dict()
    if camera is not None:
        data["camera"] = camera.to_dict()
    Path(path).write_text(json.dumps(data, indent=2))
    logger.info("Saved scene to %s", path)


def load_scene_file(path: str | Path) -> tuple[SceneManager, PinholeCamera | None]:
    """Build a scene from a JSON file written by save_scene_file.

    Returns:
        The scene and the camera stored in the file, or None if it has none.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Scene file {path} is not valid JSON: {exc}") from exc

    scene = SceneManager()
    scene.from_dict(data)
    camera = None
    if "camera" in data:
        camera = PinholeCamera.from_dict(data["camera"])
    return scene, camera
