"""Deterministic renderer: Scene → (HTML markup, CSS stylesheet).

Pure function of the scene. No I/O, no clocks, no randomness: rendering
the same scene twice gives byte-identical output. Every element with a
style gets one CSS rule; its class name is the element id prefixed by its
ancestors' class names (joined with '-'), so nested ids never collide.

Text content and SVG markup are emitted verbatim. Scenes are operator
authored; callers embedding untrusted content must sanitize it first.
"""

import logging
from dataclasses import dataclass

from .common import format_number
from .model import (
    COLOR_REFERENCE_PROPERTIES,
    FONT_REFERENCE_PROPERTY,
    Color,
    ContainerElement,
    DataItem,
    DataItemElement,
    Font,
    ImageElement,
    Scene,
    ShapeElement,
    SvgElement,
)


logger = logging.getLogger(__name__)

INDENT = "  "


@dataclass(frozen=True)
class RenderResult:
    html: str
    css: str


@dataclass(frozen=True)
class _Lookups:
    data_items: dict[str, DataItem]
    colors: dict[str, Color]
    fonts: dict[str, Font]


def _class_name(element_id: str, prefix: str) -> str:
    return f"{prefix}-{element_id}" if prefix else element_id


# ── CSS ───────────────────────────────────────────────────────────


def _rgba(color: Color) -> str:
    return f"rgba({color.r}, {color.g}, {color.b}, {format_number(color.a)})"


def style_to_css(style: dict[str, str], colors: dict[str, Color], fonts: dict[str, Font]) -> str:
    """Declaration block body for one element style (two-space indented lines).

    Elements without an explicit ``position`` get a layering default:
    exactly 100% x 100% means background (absolute, z-index 0), anything
    else stacks above it (relative, z-index 1).
    """
    lines = []

    if "position" not in style:
        if style.get("width") == "100%" and style.get("height") == "100%":
            lines += ["position: absolute;", "top: 0;", "left: 0;", "z-index: 0;"]
        else:
            lines += ["position: relative;", "z-index: 1;"]

    for key, value in style.items():
        if key == FONT_REFERENCE_PROPERTY and value in fonts:
            lines.append(f"font-family: '{fonts[value].font_name}', serif;")
            continue

        prop = "background-color" if key == "fill" else key.replace("_", "-")
        if key in COLOR_REFERENCE_PROPERTIES and value in colors:
            value = _rgba(colors[value])
        lines.append(f"{prop}: {value};")

    return "".join(f"{INDENT}{line}\n" for line in lines)


def _element_css(element, lookups: _Lookups, prefix: str = "") -> str:
    class_name = _class_name(element.element_id, prefix)
    css = ""
    if element.style:
        body = style_to_css(element.style, lookups.colors, lookups.fonts)
        if body:
            css += f".{class_name} {{\n{body}}}\n\n"
    if isinstance(element, ContainerElement):
        for child in element.children:
            css += _element_css(child, lookups, class_name)
    return css


def _render_css(scene: Scene, lookups: _Lookups) -> str:
    canvas = scene.template.canvas
    imports = "\n".join(f"@import url('{font.font_url}');" for font in scene.theme.font_palette)

    css = imports + "\n\n"
    css += (
        ".scene-container {\n"
        f"{INDENT}width: {canvas.width}px;\n"
        f"{INDENT}height: {canvas.height}px;\n"
        f"{INDENT}position: relative;\n"
        f"{INDENT}overflow: hidden;\n"
        f"{INDENT}box-sizing: border-box;\n"
        "}\n\n"
    )
    css += ".scene-container * {\n" f"{INDENT}box-sizing: border-box;\n" "}\n\n"
    for element in scene.template.elements:
        css += _element_css(element, lookups)
    return css


# ── HTML ──────────────────────────────────────────────────────────


def _element_html(element, lookups: _Lookups, level: int, prefix: str = "") -> str:
    indent = INDENT * level
    class_name = _class_name(element.element_id, prefix)

    if isinstance(element, DataItemElement):
        item = lookups.data_items.get(element.data_item_id)
        if item is None:
            logger.warning("Data item not found: %s", element.data_item_id)
            return ""
        if item.type == "text":
            return f'{indent}<div class="{class_name}">{item.content or ""}</div>\n'
        return (
            f'{indent}<img class="{class_name}" src="{item.image_url or ""}" '
            f'alt="{item.display_name}" />\n'
        )

    if isinstance(element, ShapeElement):
        return f'{indent}<div class="{class_name}"></div>\n'

    if isinstance(element, ContainerElement):
        html = f'{indent}<div class="{class_name}">\n'
        for child in element.children:
            html += _element_html(child, lookups, level + 1, class_name)
        return html + f"{indent}</div>\n"

    if isinstance(element, ImageElement):
        return f'{indent}<img class="{class_name}" src="{element.image_url}" alt="" />\n'

    if isinstance(element, SvgElement):
        return f'{indent}<div class="{class_name}">{element.svg_content}</div>\n'

    raise TypeError(f"Unknown element type: {type(element).__name__}")


def _render_html(scene: Scene, lookups: _Lookups) -> str:
    html = '<div class="scene-container">\n'
    for element in scene.template.elements:
        html += _element_html(element, lookups, 1)
    return html + "</div>"


# ── Entry points ──────────────────────────────────────────────────


def render_scene(scene: Scene) -> RenderResult:
    """Render a scene to markup and stylesheet text.

    A data_item element whose DataItem is missing renders nothing (a
    warning is logged); the strict check lives in validate_scene.
    """
    lookups = _Lookups(
        data_items={item.id: item for item in scene.data.data_items},
        colors={color.id: color for color in scene.theme.color_palette},
        fonts={font.font_id: font for font in scene.theme.font_palette},
    )
    return RenderResult(html=_render_html(scene, lookups), css=_render_css(scene, lookups))


PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - Preview</title>
  <style>
    body {{ margin: 0; display: flex; justify-content: center; padding: 40px; background: #e0e0e0; }}
{css}
  </style>
</head>
<body>
{html}
</body>
</html>"""


def render_preview_html(scene: Scene, title: str) -> str:
    """Standalone HTML page showing the rendered scene centered on a gray page."""
    result = render_scene(scene)
    return PREVIEW_TEMPLATE.format(title=title, css=result.css, html=result.html)
