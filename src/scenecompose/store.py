"""Scene persistence — the four canonical JSON documents on disk.

Layout of a saved scene:

  <root>/<scene_id>/
    data.json       SceneData
    template.json   Template
    theme.json      Theme
    scene.json      {id, name, data, template, theme}, file names relative
                    to the scene directory
    preview.html    optional, written by write_preview
"""

import json
from dataclasses import dataclass
from pathlib import Path

from .errors import FileSystemError, ValidationError
from .model import (
    Scene,
    SceneData,
    SceneMetadata,
    Template,
    Theme,
    parse_document,
    to_document,
)
from .renderer import render_preview_html


DATA_FILE = "data.json"
TEMPLATE_FILE = "template.json"
THEME_FILE = "theme.json"
SCENE_FILE = "scene.json"
PREVIEW_FILE = "preview.html"


@dataclass
class SavedScene:
    scene_dir: Path
    files: list[Path]


def _write_json(path: Path, document: dict) -> None:
    try:
        path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n")
    except OSError as exc:
        raise FileSystemError(f"Failed to write {path}: {exc}") from exc


def save_scene(
    root: str | Path,
    scene: Scene,
    scene_id: str,
    scene_name: str | None = None,
) -> SavedScene:
    """Write a scene as four JSON documents under <root>/<scene_id>/.

    Existing files are overwritten.

    Args:
        root: Parent directory of all scenes (created if needed).
        scene: Scene to persist.
        scene_id: Directory name and metadata id.
        scene_name: Metadata display name; defaults to scene_id.

    Returns:
        SavedScene with the scene directory and the written paths
        (data, template, theme, scene metadata).

    Raises:
        FileSystemError: Directory creation or a write failed.
    """
    scene_dir = Path(root) / scene_id
    try:
        scene_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(f"Failed to create scene directory {scene_dir}: {exc}") from exc

    documents = [
        (DATA_FILE, to_document(scene.data)),
        (TEMPLATE_FILE, to_document(scene.template)),
        (THEME_FILE, to_document(scene.theme)),
    ]
    metadata = SceneMetadata(
        id=scene_id,
        name=scene_name or scene_id,
        data=DATA_FILE,
        template=TEMPLATE_FILE,
        theme=THEME_FILE,
    )
    documents.append((SCENE_FILE, to_document(metadata)))

    files = []
    for name, document in documents:
        path = scene_dir / name
        _write_json(path, document)
        files.append(path)

    return SavedScene(scene_dir=scene_dir, files=files)


def _read_json(path: Path):
    try:
        text = path.read_text()
    except OSError as exc:
        raise FileSystemError(f"Failed to read {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc


def load_scene(path: str | Path) -> tuple[SceneMetadata, Scene]:
    """Load a saved scene from its directory or its scene.json.

    Returns:
        (metadata, scene).

    Raises:
        FileSystemError: A document is missing or unreadable.
        ValidationError: A document is not valid JSON or has the wrong shape.
    """
    path = Path(path)
    scene_file = path / SCENE_FILE if path.is_dir() else path
    if not scene_file.exists():
        raise FileSystemError(f"Scene metadata not found: {scene_file}")

    metadata = parse_document(SceneMetadata, _read_json(scene_file), "scene")
    base = scene_file.parent

    scene = Scene(
        data=parse_document(SceneData, _read_json(base / metadata.data), "data"),
        template=parse_document(Template, _read_json(base / metadata.template), "template"),
        theme=parse_document(Theme, _read_json(base / metadata.theme), "theme"),
    )
    return metadata, scene


def write_preview(scene_dir: str | Path, scene: Scene, title: str) -> Path:
    """Render the scene into <scene_dir>/preview.html."""
    path = Path(scene_dir) / PREVIEW_FILE
    try:
        path.write_text(render_preview_html(scene, title))
    except OSError as exc:
        raise FileSystemError(f"Failed to write {path}: {exc}") from exc
    return path
