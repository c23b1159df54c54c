"""CLI for checking a saved scene.

Usage:
    scenecompose validate --scene scenes/birthday
"""

import argparse
import sys

from .store import load_scene
from .validate import find_scene_problems


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Load a saved scene and report unresolved references.",
    )
    parser.add_argument(
        "--scene", required=True,
        help="Scene directory or its scene.json",
    )
    parsed = parser.parse_args(args)

    metadata, scene = load_scene(parsed.scene)
    problems = find_scene_problems(scene)

    if problems:
        print(f"{metadata.id}: {len(problems)} problem(s)")
        for problem in problems:
            print(f"  - {problem}")
        sys.exit(1)

    print(f"{metadata.id}: OK")


if __name__ == "__main__":
    main()
