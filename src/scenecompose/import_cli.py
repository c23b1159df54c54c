"""CLI for generating a scene from a text-layout description.

Usage:
    scenecompose import invitation.txt
    scenecompose import invitation.txt --scene-id birthday --scene-name "Birthday Card"
"""

import argparse

from .importer import extract_variables, import_layout
from .store import save_scene, write_preview


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Generate a scene from a text-layout file.",
    )
    parser.add_argument("layout", help="Path to the text-layout file")
    parser.add_argument(
        "--scene-id", default=None,
        help="Scene id (default: the layout file name)",
    )
    parser.add_argument(
        "--scene-name", default=None,
        help="Scene display name (default: the scene id)",
    )
    parser.add_argument(
        "--output-dir", default="scenes",
        help="Directory that receives <scene_id>/ (default: scenes)",
    )
    parsed = parser.parse_args(args)

    layout, scene = import_layout(parsed.layout, parsed.scene_id, parsed.scene_name)
    scene_id = scene.data.scene_id

    print(f"Parsed {len(layout.entries)} text entries from {parsed.layout}")
    if layout.source_url:
        print(f"  Source: {layout.source_url}")
    variables = extract_variables(layout.entries)
    if variables:
        print(f"  Variables: {', '.join('$' + v for v in variables)}")

    saved = save_scene(parsed.output_dir, scene, scene_id, parsed.scene_name or scene_id)
    preview = write_preview(saved.scene_dir, scene, scene_id)
    for path in [*saved.files, preview]:
        print(f"  WROTE  {path}")


if __name__ == "__main__":
    main()
