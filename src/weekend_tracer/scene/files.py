"""JSON scene files.

A scene file holds a camera together with the scene's materials and spheres:

    {
        "camera": {"look_from": [0, 0, 0], "look_at": [0, 0, -1], "vfov": 90, ...},
        "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}, ...],
        "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}, ...]
    }

Sphere material_ids index the materials list. A missing camera section
means the default camera; missing camera keys take their defaults.
"""

import json
import logging
from pathlib import Path
from typing import Any

from weekend_tracer.camera.thin_lens import Camera
from weekend_tracer.scene.manager import SceneConfig, SceneManager

logger = logging.getLogger(__name__)


def scene_to_dict(scene: SceneManager, camera: Camera) -> dict[str, Any]:
    """Combine scene and camera into one JSON-ready dictionary."""
    data: dict[str, Any] = {"camera": camera.to_dict()}
    data.update(scene.to_dict())
    return data


def scene_from_dict(
    data: dict[str, Any], scene: SceneManager | None = None
) -> tuple[SceneManager, Camera]:
    """Load scene contents and camera from a dictionary.

    Args:
        data: Dictionary with optional "camera", "materials" and "spheres".
        scene: Manager to load into. A new one is created if omitted.

    Raises:
        ValueError: If the data is not a dictionary or holds invalid values.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Scene data must be a JSON object, got {type(data).__name__}")

    camera = Camera.from_dict(data.get("camera", {}))
    config = SceneConfig(
        materials=data.get("materials", []),
        spheres=data.get("spheres", []),
    )
    # A new SceneManager clears the global scene, so check the config first
    config.parse()

    if scene is None:
        scene = SceneManager()
    scene.from_config(config)
    return scene, camera


def load_scene_file(path: str | Path) -> tuple[SceneManager, Camera]:
    """Load a JSON scene file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or holds invalid values.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in scene file {path}: {exc}") from exc

    scene, camera = scene_from_dict(data)
    logger.info(
        "Loaded scene %s: %d spheres, %d materials",
        path,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, camera


def save_scene_file(path: str | Path, scene: SceneManager, camera: Camera) -> None:
    """Write the scene and camera to a JSON file."""
    path = Path(path)
    path.write_text(json.dumps(scene_to_dict(scene, camera), indent=2), encoding="utf-8")
    logger.info("Saved scene to %s", path)
