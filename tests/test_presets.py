"""Tests for the ready-made scenes and JSON scene files.

Tests cover:
- Sphere and material counts of each preset
- Random scene determinism under a seed
- Camera settings of the cover scene
- Preset registry lookup
- Scene file save/load
"""

import json
import math

import pytest


class TestPresetScenes:
    """Tests for the scene factories."""

    def test_hit_test_scene(self):
        from weekend_tracer.camera import Camera
        from weekend_tracer.scene.presets import create_hit_test_scene

        scene, camera = create_hit_test_scene()

        assert scene.get_sphere_count() == 1
        assert scene.spheres[0].center == (0.0, 0.0, -1.0)
        assert scene.spheres[0].radius == 0.5
        assert camera == Camera.default()

    def test_diffuse_scene_shares_material(self):
        from weekend_tracer.scene.presets import create_diffuse_scene

        scene, _ = create_diffuse_scene()

        assert scene.get_sphere_count() == 2
        assert scene.get_material_count() == 1
        assert scene.spheres[1].radius == 100.0

    def test_metal_scene(self):
        from weekend_tracer.scene.manager import MaterialType
        from weekend_tracer.scene.presets import create_metal_scene

        scene, _ = create_metal_scene()

        assert scene.get_sphere_count() == 4
        types = [scene.get_material_type_python(s.material_id) for s in scene.spheres]
        assert types.count(MaterialType.METAL) == 2
        assert scene.get_material_info(3).params["fuzz"] == 1.0

    def test_dielectric_scene_hollow_glass(self):
        from weekend_tracer.scene.presets import create_dielectric_scene

        scene, _ = create_dielectric_scene()

        assert scene.get_sphere_count() == 5
        assert scene.get_material_count() == 4
        outer, inner = scene.spheres[3], scene.spheres[4]
        assert outer.material_id == inner.material_id
        assert inner.radius == -0.45

    def test_aspect_ratio_passed_to_camera(self):
        from weekend_tracer.scene.presets import create_metal_scene

        _, camera = create_metal_scene(aspect_ratio=1.5)
        assert camera.aspect_ratio == 1.5


class TestRandomScene:
    """Tests for the cover scene."""

    def test_seed_is_deterministic(self):
        from weekend_tracer.scene.presets import create_random_scene

        first, _ = create_random_scene(seed=7)
        first_dict = first.to_dict()
        second, _ = create_random_scene(seed=7)

        assert second.to_dict() == first_dict

    def test_different_seeds_differ(self):
        from weekend_tracer.scene.presets import create_random_scene

        first, _ = create_random_scene(seed=1)
        first_dict = first.to_dict()
        second, _ = create_random_scene(seed=2)

        assert second.to_dict() != first_dict

    def test_layout(self):
        from weekend_tracer.scene.presets import CLEARANCE_POINT, create_random_scene

        scene, _ = create_random_scene(seed=3)
        count = scene.get_sphere_count()

        # Ground + at most 22 * 22 small spheres + 3 large ones
        assert 4 < count <= 1 + 22 * 22 + 3
        assert scene.spheres[0].radius == 1000.0
        assert [s.radius for s in scene.spheres[-3:]] == [1.0, 1.0, 1.0]

        for sphere in scene.spheres[1:-3]:
            assert sphere.radius == 0.2
            assert sphere.center[1] == pytest.approx(0.2)
            distance = math.dist(sphere.center, CLEARANCE_POINT.tolist())
            assert distance > 0.9

    def test_small_sphere_materials_in_range(self):
        from weekend_tracer.scene.manager import MaterialType
        from weekend_tracer.scene.presets import create_random_scene

        scene, _ = create_random_scene(seed=11)

        for info in scene.materials:
            if info.material_type == MaterialType.METAL:
                assert all(0.5 <= c <= 1.0 for c in info.params["albedo"])
                assert 0.0 <= info.params["fuzz"] <= 0.5
            elif info.material_type == MaterialType.DIELECTRIC:
                assert info.params["ior"] == 1.5

    def test_camera(self):
        from weekend_tracer.scene.presets import create_random_scene

        _, camera = create_random_scene(seed=0)

        assert camera.look_from == pytest.approx((20.0 * math.cos(0.47), 9.4, 3.0))
        assert camera.look_at == (0.0, 0.0, 1.0)
        assert camera.vfov == 20.0
        assert camera.aperture == 0.3
        assert camera.focus_dist == pytest.approx(
            math.dist(camera.look_from, camera.look_at)
        )


class TestPresetRegistry:
    """Tests for PRESETS and get_preset."""

    def test_names(self):
        from weekend_tracer.scene.presets import PRESETS

        assert set(PRESETS) == {"hit_test", "diffuse", "metal", "dielectric", "random"}

    def test_get_preset(self):
        from weekend_tracer.scene.presets import get_preset

        preset = get_preset("random")
        assert preset.seeded
        assert (preset.width, preset.height) == (400, 200)

    def test_hit_test_defaults(self):
        from weekend_tracer.scene.presets import get_preset

        preset = get_preset("hit_test")
        assert preset.hit_mask
        assert preset.samples == 1

    def test_unknown_preset(self):
        from weekend_tracer.scene.presets import get_preset

        with pytest.raises(ValueError, match="Unknown scene preset"):
            get_preset("teapot")

    def test_create_passes_seed(self):
        from weekend_tracer.scene.presets import get_preset

        scene, _ = get_preset("random").create(seed=5)
        first_dict = scene.to_dict()
        scene, _ = get_preset("random").create(seed=5)

        assert scene.to_dict() == first_dict

    def test_create_ignores_seed_for_fixed_scenes(self):
        from weekend_tracer.scene.presets import get_preset

        scene, camera = get_preset("metal").create(aspect_ratio=1.0, seed=5)
        assert scene.get_sphere_count() == 4
        assert camera.aspect_ratio == 1.0


class TestSceneFiles:
    """Tests for JSON scene files."""

    def test_save_and_load(self, tmp_path):
        from weekend_tracer.scene.files import load_scene_file, save_scene_file
        from weekend_tracer.scene.presets import create_dielectric_scene

        scene, camera = create_dielectric_scene()
        expected = scene.to_dict()
        path = tmp_path / "scene.json"
        save_scene_file(path, scene, camera)

        loaded, loaded_camera = load_scene_file(path)

        assert loaded.to_dict() == expected
        assert loaded_camera == camera

    def test_file_layout(self, tmp_path):
        from weekend_tracer.scene.files import save_scene_file
        from weekend_tracer.scene.presets import create_hit_test_scene

        scene, camera = create_hit_test_scene()
        path = tmp_path / "scene.json"
        save_scene_file(path, scene, camera)

        data = json.loads(path.read_text())
        assert set(data) == {"camera", "materials", "spheres"}
        assert data["camera"]["look_at"] == [0.0, 0.0, -1.0]
        assert data["materials"][0]["type"] == "lambertian"

    def test_missing_camera_uses_default(self):
        from weekend_tracer.camera import Camera
        from weekend_tracer.scene.files import scene_from_dict

        scene, camera = scene_from_dict(
            {
                "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
                "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}],
            }
        )

        assert camera == Camera.default()
        assert scene.get_sphere_count() == 1

    def test_not_an_object(self):
        from weekend_tracer.scene.files import scene_from_dict

        with pytest.raises(ValueError, match="JSON object"):
            scene_from_dict([1, 2, 3])

    def test_invalid_json(self, tmp_path):
        from weekend_tracer.scene.files import load_scene_file

        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_scene_file(path)

    def test_missing_file(self, tmp_path):
        from weekend_tracer.scene.files import load_scene_file

        with pytest.raises(FileNotFoundError):
            load_scene_file(tmp_path / "nope.json")

    def test_invalid_data_keeps_callers_scene(self):
        from weekend_tracer.scene.files import scene_from_dict
        from weekend_tracer.scene.presets import create_metal_scene

        scene, _ = create_metal_scene()
        before = scene.to_dict()

        with pytest.raises(ValueError, match="Invalid material_id"):
            scene_from_dict(
                {
                    "materials": [{"type": "lambertian"}],
                    "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 3}],
                },
                scene,
            )

        assert scene.get_sphere_count() == 4
        assert scene.to_dict() == before
