"""Structural scene validation.

validate_scene is the strict gate the build pipeline runs once, after the
last operation and before anything is persisted. find_scene_problems is
the lenient, report-everything variant used by ``scenecompose validate``
on scenes loaded from disk; it also checks that style references to
colors and fonts resolve.
"""

from .errors import ValidationError
from .model import (
    COLOR_REFERENCE_PROPERTIES,
    FONT_REFERENCE_PROPERTY,
    MAX_COLORS,
    MAX_FONTS,
    DataItemElement,
    Scene,
)
from .tree import iter_elements


def _duplicates(label: str, ids) -> list[str]:
    seen = set()
    reported = set()
    problems = []
    for id_ in ids:
        if id_ in seen and id_ not in reported:
            problems.append(f"{label} {id_} is used more than once")
            reported.add(id_)
        seen.add(id_)
    return problems


def _structural_problems(scene: Scene) -> list[str]:
    problems = []
    canvas = scene.template.canvas
    if canvas.width <= 0 or canvas.height <= 0:
        problems.append(
            f"Canvas must have positive width and height, got {canvas.width}x{canvas.height}"
        )

    n_colors = len(scene.theme.color_palette)
    if n_colors > MAX_COLORS:
        problems.append(f"Color palette has {n_colors} colors (max {MAX_COLORS})")
    n_fonts = len(scene.theme.font_palette)
    if n_fonts > MAX_FONTS:
        problems.append(f"Font palette has {n_fonts} fonts (max {MAX_FONTS})")

    problems += _duplicates("Data item id", (item.id for item in scene.data.data_items))
    problems += _duplicates(
        "Element id", (element.element_id for element in iter_elements(scene.template.elements)),
    )

    item_ids = {item.id for item in scene.data.data_items}
    for element in iter_elements(scene.template.elements):
        if isinstance(element, DataItemElement) and element.data_item_id not in item_ids:
            problems.append(
                f"Element {element.element_id} references missing data item "
                f"{element.data_item_id}"
            )
    return problems


def validate_scene(scene: Scene) -> None:
    """Raise ValidationError on the first structural violation.

    Checks: positive canvas size, palette capacities, unique data item
    ids, element ids unique across the whole tree, and that every
    data_item element (at any depth) references an existing DataItem.
    """
    problems = _structural_problems(scene)
    if problems:
        raise ValidationError(problems[0])


def find_scene_problems(scene: Scene) -> list[str]:
    """All structural violations plus unresolved style references."""
    problems = _structural_problems(scene)

    color_ids = {color.id for color in scene.theme.color_palette}
    font_ids = {font.font_id for font in scene.theme.font_palette}

    for element in iter_elements(scene.template.elements):
        style = element.style or {}
        for prop in COLOR_REFERENCE_PROPERTIES:
            # Literal CSS colors are allowed; only id-shaped values must resolve.
            value = style.get(prop)
            if value is not None and value.startswith("color_") and value not in color_ids:
                problems.append(
                    f"Element {element.element_id}: {prop} references unknown color {value}"
                )
        font = style.get(FONT_REFERENCE_PROPERTY)
        if font is not None and font not in font_ids:
            problems.append(
                f"Element {element.element_id}: font references unknown font {font}"
            )
    return problems
