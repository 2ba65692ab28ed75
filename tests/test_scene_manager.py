"""Unit tests for the SceneManager.

Tests cover:
- Material registration and presets
- Validated shape addition
- Lights, background and ambient colors
- Scene serialization (to_dict / from_dict, JSON files)
- The showcase scene
"""

import json

import pytest


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from whitted.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterials:
    def test_add_material(self, fresh_scene):
        mat_id = fresh_scene.add_material(color=(0.4, 0.4, 0.3), specular=0.5, exponent=50.0)
        assert mat_id == 0
        assert fresh_scene.get_material_count() == 1
        info = fresh_scene.get_material_info(mat_id)
        assert info.params["specular"] == 0.5

    def test_add_preset_material(self, fresh_scene):
        mirror = fresh_scene.add_preset_material("mirror")
        info = fresh_scene.get_material_info(mirror)
        assert info.params["reflectivity"] == 0.8

    def test_invalid_material_rejected(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_material(ior=0.5)
        assert fresh_scene.get_material_count() == 0

    def test_get_material_info_unknown(self, fresh_scene):
        assert fresh_scene.get_material_info(3) is None


class TestShapes:
    def test_shape_requires_existing_material(self, fresh_scene):
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, 0)

    def test_add_each_shape(self, fresh_scene):
        m = fresh_scene.add_preset_material("ivory")
        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, m)
        fresh_scene.add_cube((2.0, 0.0, -5.0), 1.0, m)
        fresh_scene.add_rect_prism((3.0, 0.0, -5.0), (4.0, 1.0, -4.0), m)
        fresh_scene.add_cone((0.0, 3.0, -5.0), (0.0, -1.0, 0.0), 1.0, 0.5, m)
        fresh_scene.add_cylinder((5.0, 0.0, -5.0), (0.0, 1.0, 0.0), 0.5, 1.0, m)
        fresh_scene.add_pyramid((-3.0, 0.0, -5.0), 1.0, 0.5, m)
        fresh_scene.add_ovoid((-5.0, 0.0, -5.0), (1.0, 0.5, 0.5), m)
        fresh_scene.add_torus((0.0, -3.0, -5.0), (0.0, 0.0, 1.0), 1.0, 0.2, m)
        fresh_scene.add_floor(-4.0, (-10.0, 10.0), (-30.0, -10.0), m)
        assert fresh_scene.get_shape_count() == 9
        assert [s.shape_index for s in fresh_scene.shapes] == list(range(9))

    @pytest.mark.parametrize(
        "method, args",
        [
            ("add_sphere", ((0.0, 0.0, -5.0), 0.0)),
            ("add_cube", ((0.0, 0.0, -5.0), -1.0)),
            ("add_rect_prism", ((1.0, 0.0, 0.0), (0.0, 1.0, 1.0))),
            ("add_cone", ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0, 1.0)),
            ("add_cylinder", ((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), -1.0, 1.0)),
            ("add_pyramid", ((0.0, 0.0, 0.0), 1.0, 0.0)),
            ("add_ovoid", ((0.0, 0.0, 0.0), (1.0, 0.0, 1.0))),
            ("add_torus", ((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 1.0, 0.0)),
            ("add_floor", (-4.0, (10.0, -10.0), (-30.0, -10.0))),
        ],
    )
    def test_invalid_shape_parameters(self, fresh_scene, method, args):
        m = fresh_scene.add_material()
        with pytest.raises(ValueError):
            getattr(fresh_scene, method)(*args, m)
        assert fresh_scene.get_shape_count() == 0

    def test_axis_stored_normalized(self, fresh_scene):
        m = fresh_scene.add_material()
        fresh_scene.add_cylinder((0.0, 0.0, 0.0), (0.0, 3.0, 0.0), 1.0, 2.0, m)
        assert fresh_scene.shapes[0].params["axis"] == pytest.approx([0.0, 1.0, 0.0])

    def test_add_shape_by_name(self, fresh_scene):
        m = fresh_scene.add_material()
        idx = fresh_scene.add_shape("sphere", m, center=(0.0, 0.0, -3.0), radius=1.0)
        assert idx == 0

    def test_add_shape_unknown_kind(self, fresh_scene):
        m = fresh_scene.add_material()
        with pytest.raises(ValueError, match="Unknown shape type"):
            fresh_scene.add_shape("teapot", m)

    def test_add_shape_bad_parameters(self, fresh_scene):
        m = fresh_scene.add_material()
        with pytest.raises(ValueError, match="Bad parameters"):
            fresh_scene.add_shape("sphere", m, centre=(0.0, 0.0, 0.0), radius=1.0)


class TestLightsAndColors:
    def test_add_light(self, fresh_scene):
        assert fresh_scene.add_light((-20.0, 20.0, 20.0), intensity=1.5) == 0
        assert fresh_scene.get_light_count() == 1

    def test_negative_intensity_rejected(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_light((0.0, 0.0, 0.0), intensity=-1.0)

    def test_background_reaches_fields(self, fresh_scene):
        from whitted.scene.lights import get_background_python

        fresh_scene.set_background((0.1, 0.2, 0.3))
        assert get_background_python() == pytest.approx((0.1, 0.2, 0.3))

    def test_clear_restores_default_colors(self, fresh_scene):
        from whitted.scene.lights import DEFAULT_AMBIENT_LIGHT, DEFAULT_BACKGROUND, get_ambient_light_python, get_background_python

        fresh_scene.set_background((0.0, 0.0, 0.0))
        fresh_scene.set_ambient_light((0.5, 0.5, 0.5))
        fresh_scene.clear()
        assert get_background_python() == pytest.approx(DEFAULT_BACKGROUND)
        assert get_ambient_light_python() == pytest.approx(DEFAULT_AMBIENT_LIGHT)

    def test_light_capacity(self, fresh_scene):
        from whitted.scene.lights import MAX_LIGHTS

        for i in range(MAX_LIGHTS):
            fresh_scene.add_light((float(i), 10.0, 0.0))
        with pytest.raises(RuntimeError):
            fresh_scene.add_light((0.0, 10.0, 0.0))


class TestSerialization:
    def _build(self, scene):
        glass = scene.add_preset_material("glass")
        checker = scene.add_preset_material("checker_floor")
        scene.add_sphere((-1.0, -1.5, -12.0), 2.0, glass)
        scene.add_torus((0.0, 0.0, -20.0), (0.0, 1.0, 0.0), 1.5, 0.4, glass)
        scene.add_floor(-4.0, (-10.0, 10.0), (-30.0, -10.0), checker)
        scene.add_light((30.0, 50.0, -25.0), (1.0, 0.9, 0.8), 1.8)
        scene.set_background((0.2, 0.7, 0.8))

    def test_dict_round_trip(self, fresh_scene):
        self._build(fresh_scene)
        data = fresh_scene.to_dict()

        from whitted.scene.manager import SceneManager

        other = SceneManager()
        other.from_dict(data)
        assert other.to_dict() == data
        assert other.get_shape_count() == 3
        assert other.get_material_count() == 2
        assert other.get_light_count() == 1

    def test_json_file_round_trip(self, fresh_scene, tmp_path):
        from whitted.camera.pinhole import PinholeCamera
        from whitted.scene.manager import load_scene_file, save_scene_file

        self._build(fresh_scene)
        camera = PinholeCamera(
            lookfrom=(0.0, 1.0, 2.0), lookat=(0.0, 0.0, -10.0), vup=(0.0, 1.0, 0.0), vfov=45.0, aspect_ratio=1.5
        )
        path = tmp_path / "scene.json"
        save_scene_file(path, fresh_scene, camera)

        data = json.loads(path.read_text())
        assert data["shapes"][1]["type"] == "torus"

        loaded, loaded_camera = load_scene_file(path)
        assert loaded.get_shape_count() == 3
        assert loaded_camera == camera

    def test_load_without_camera(self, fresh_scene, tmp_path):
        from whitted.scene.manager import load_scene_file, save_scene_file

        self._build(fresh_scene)
        path = tmp_path / "scene.json"
        save_scene_file(path, fresh_scene)
        _, camera = load_scene_file(path)
        assert camera is None

    def test_preset_reference_in_file(self, fresh_scene):
        fresh_scene.from_dict(
            {
                "materials": [{"preset": "red_rubber"}],
                "shapes": [{"type": "cube", "material_id": 0, "center": [0, 0, -5], "side_length": 1}],
            }
        )
        assert fresh_scene.get_material_info(0).params["diffuse"] == 1.4
        assert fresh_scene.get_shape_count() == 1

    def test_invalid_json(self, tmp_path):
        from whitted.scene.manager import load_scene_file

        path = tmp_path / "broken.json"
        path.write_text("{ not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_scene_file(path)

    def test_bad_material_reference(self, fresh_scene):
        with pytest.raises(ValueError, match="Invalid material_id"):
            fresh_scene.from_dict(
                {"materials": [], "shapes": [{"type": "sphere", "material_id": 0, "center": [0, 0, 0], "radius": 1}]}
            )


class TestShowcase:
    def test_showcase_contents(self):
        from whitted.scene.showcase import LIGHTS, create_showcase_scene

        scene, camera = create_showcase_scene(320, 240)
        assert scene.get_material_count() == 5
        assert scene.get_light_count() == len(LIGHTS)
        kinds = {shape.kind.name for shape in scene.shapes}
        assert kinds == {
            "SPHERE",
            "CUBE",
            "RECT_PRISM",
            "CONE",
            "CYLINDER",
            "PYRAMID",
            "OVOID",
            "TORUS",
            "FLOOR",
        }
        assert camera.aspect_ratio == pytest.approx(320 / 240)
