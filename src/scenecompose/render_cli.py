"""CLI for rendering a saved scene to a standalone preview page.

Usage:
    scenecompose render --scene scenes/birthday
    scenecompose render --scene scenes/birthday/scene.json --output out.html
"""

import argparse
from pathlib import Path

from .renderer import render_preview_html
from .store import PREVIEW_FILE, load_scene


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render a saved scene to HTML.",
    )
    parser.add_argument(
        "--scene", required=True,
        help="Scene directory or its scene.json",
    )
    parser.add_argument(
        "--output", default=None,
        help=f"Output HTML path (default: {PREVIEW_FILE} in the scene directory)",
    )
    parsed = parser.parse_args(args)

    metadata, scene = load_scene(parsed.scene)

    scene_path = Path(parsed.scene)
    scene_dir = scene_path if scene_path.is_dir() else scene_path.parent
    output = Path(parsed.output) if parsed.output else scene_dir / PREVIEW_FILE
    output.parent.mkdir(parents=True, exist_ok=True)

    output.write_text(render_preview_html(scene, metadata.id))
    print(f"Done: {output}")


if __name__ == "__main__":
    main()
