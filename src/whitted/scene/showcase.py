"""Showcase scene with one of every shape.

The scene is the classic four-sphere arrangement (ivory, glass, red rubber and
mirror) over a checkerboard floor, lit by three point lights, with a cube, a
rectangular prism, a cone, a cylinder, a pyramid, an ovoid and a torus placed
around it. The camera sits at the origin looking down -z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from whitted.scene.showcase import create_showcase_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene()
    >>> setup_camera(camera)
"""

from whitted.camera.pinhole import PinholeCamera
from whitted.scene.manager import SceneManager

# =============================================================================
# Showcase Constants
# =============================================================================

BACKGROUND_COLOR = (0.2, 0.7, 0.8)

# (position, intensity); all lights are white
LIGHTS = (
    ((-20.0, 20.0, 20.0), 1.5),
    ((30.0, 50.0, -25.0), 1.8),
    ((30.0, 20.0, 30.0), 1.7),
)

FLOOR_HEIGHT = -4.0
FLOOR_X_RANGE = (-10.0, 10.0)
FLOOR_Z_RANGE = (-30.0, -10.0)

DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 768


def create_showcase_camera(width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> PinholeCamera:
    return PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=60.0,
        aspect_ratio=width / height,
    )


def create_showcase_scene(
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the showcase scene.

    Args:
        width: Intended image width, used for the camera aspect ratio.
        height: Intended image height.

    Returns:
        Tuple of (scene_manager, camera).
    """
    scene = SceneManager()

    ivory = scene.add_preset_material("ivory")
    glass = scene.add_preset_material("glass")
    red_rubber = scene.add_preset_material("red_rubber")
    mirror = scene.add_preset_material("mirror")
    checker = scene.add_preset_material("checker_floor")

    scene.add_sphere((-3.0, 0.0, -16.0), 2.0, ivory)
    scene.add_sphere((-1.0, -1.5, -12.0), 2.0, glass)
    scene.add_sphere((1.5, -0.5, -18.0), 3.0, red_rubber)
    scene.add_sphere((7.0, 5.0, -18.0), 4.0, mirror)

    scene.add_cube((-8.0, -3.0, -22.0), 2.0, ivory)
    scene.add_rect_prism((4.0, -4.0, -14.0), (6.0, -2.5, -12.0), red_rubber)
    scene.add_cone(apex=(-6.5, 3.0, -14.0), axis=(0.0, -1.0, 0.0), height=3.0, radius=1.2, material_id=ivory)
    scene.add_cylinder(base_center=(8.0, -4.0, -24.0), axis=(0.0, 1.0, 0.0), radius=1.0, height=3.0,
                       material_id=glass)
    scene.add_pyramid(base_center=(-4.0, -4.0, -24.0), height=3.0, half_base=1.5, material_id=red_rubber)
    scene.add_ovoid((3.0, 3.5, -24.0), (1.5, 0.8, 1.0), ivory)
    scene.add_torus(center=(-1.0, 4.5, -20.0), axis=(0.0, 0.0, 1.0), major_radius=1.6, minor_radius=0.4,
                    material_id=mirror)

    scene.add_floor(FLOOR_HEIGHT, FLOOR_X_RANGE, FLOOR_Z_RANGE, checker)

    for position, intensity in LIGHTS:
        scene.add_light(position, (1.0, 1.0, 1.0), intensity)
    scene.set_background(BACKGROUND_COLOR)

    return scene, create_showcase_camera(width, height)
