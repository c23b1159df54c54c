"""CLI for building a scene from an operation manifest.

Usage:
    scenecompose build --operations ops.yaml
    scenecompose build --operations ops.yaml --output-dir scenes/ --scene-id birthday
"""

import argparse
import sys
from pathlib import Path

from .executor import PrintChannel, directory_store, execute_operations
from .operations import load_operations
from .store import write_preview


DEFAULT_OUTPUT_DIR = "scenes"


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Run an operation manifest and save the resulting scene.",
    )
    parser.add_argument(
        "--operations", required=True,
        help="Path to the operations YAML/JSON manifest",
    )
    parser.add_argument(
        "--output-dir", default=DEFAULT_OUTPUT_DIR,
        help=f"Directory that receives <scene_id>/ (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--scene-id", default=None,
        help="Scene id (default: manifest scene.id, else the manifest file name)",
    )
    parser.add_argument(
        "--scene-name", default=None,
        help="Scene display name (default: manifest scene.name, else the id)",
    )
    parsed = parser.parse_args(args)

    manifest = load_operations(parsed.operations)
    scene_id = parsed.scene_id or manifest["scene"]["id"] or Path(parsed.operations).stem
    scene_name = parsed.scene_name or manifest["scene"]["name"] or scene_id
    operations = manifest["operations"]

    print(f"Building {scene_id}: {len(operations)} operations")
    report = execute_operations(
        operations, scene_id, scene_name,
        channel=PrintChannel(),
        store=directory_store(parsed.output_dir),
    )
    if not report.ok:
        sys.exit(1)

    preview = write_preview(report.saved.scene_dir, report.scene, scene_id)
    for path in [*report.saved.files, preview]:
        print(f"  WROTE  {path}")


if __name__ == "__main__":
    main()
