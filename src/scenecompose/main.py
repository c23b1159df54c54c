"""Subcommand dispatcher for scenecompose.

Usage:
    scenecompose build     --operations ops.yaml --output-dir scenes/
    scenecompose render    --scene scenes/birthday --output preview.html
    scenecompose import    layout.txt --scene-id birthday
    scenecompose validate  --scene scenes/birthday
"""

import argparse
import logging
import sys


COMMANDS = {"build", "render", "import", "validate"}


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecompose",
        description="Operation-driven scene composition and HTML/CSS rendering.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug output to stderr",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("build", help="Build a scene from an operation manifest")
    subparsers.add_parser("render", help="Render a saved scene to a preview page")
    subparsers.add_parser("import", help="Generate a scene from a text-layout file")
    subparsers.add_parser("validate", help="Check a saved scene for broken references")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None or parsed.command not in COMMANDS:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if parsed.command == "build":
        from .build_cli import main as build_main
        build_main(remaining)
    elif parsed.command == "render":
        from .render_cli import main as render_main
        render_main(remaining)
    elif parsed.command == "import":
        from .import_cli import main as import_main
        import_main(remaining)
    elif parsed.command == "validate":
        from .validate_cli import main as validate_main
        validate_main(remaining)


if __name__ == "__main__":
    main()
