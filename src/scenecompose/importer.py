"""Text-layout import — turn an exported text layout into a scene.

Input is a plain-text description of a print design's text boxes:

  https://www.canva.com/design/...        (optional source URL)

  Text -
  Please join us for a - Montserrat 7.4, x 19.57 mm, y 36.87 mm, centered
  $name's Birthday - Holiday 42, x 18.02 mm, y 47.27 mm, centered, -5.6 angle
  Saturday\\nJune 7th - Arial 9, x 20 mm, y 80 mm, left, color #4B6DAA, line-spacing 1.4

Each definition line is ``<text> - <Font> <size pt>, <properties>``.
Non-definition lines right before a definition are extra lines of its
text, and a literal ``\\n`` is a line break too.

Positions are in millimeters at 300 DPI and refer to the top of the
capital letters; the generated CSS ``top`` is corrected for font metrics
so the rendered text lands where the designer put it (see metrics.py).
The generated scene has a full-canvas background image slot
(``bg.png``) and one absolutely positioned text element per entry.
"""

import functools
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from .common import format_number, parse_hex_color
from .errors import ValidationError
from .fonts import FontResolver, resolve_font_url
from .metrics import (
    corrected_top_px,
    get_font_metrics,
    measure_font_metrics,
    mm_to_px,
    pt_to_px,
)
from .model import (
    MAX_COLORS,
    MAX_FONTS,
    Canvas,
    Color,
    DataItem,
    DataItemElement,
    Font,
    Scene,
    SceneData,
    Template,
    Theme,
)


logger = logging.getLogger(__name__)

CANVAS_WIDTH_PX = 1240      # A5 at 300 DPI
CANVAS_HEIGHT_PX = 1748

IMPORT_FONT_WEIGHTS = "300;400;500;600;700"
DEFAULT_LINE_SPACING = 1.2
DISPLAY_NAME_LIMIT = 40

BACKGROUND_ITEM_ID = "background_image"
BACKGROUND_ELEMENT_ID = "background_element"
BACKGROUND_IMAGE_URL = "bg.png"

DEFINITION_RE = re.compile(r"^(.+?)\s*-\s*(\w+)\s+([\d.]+),\s*(.+)$")
VARIABLE_RE = re.compile(r"\$([a-zA-Z_][a-zA-Z0-9_]*)")


@dataclass
class TextEntry:
    text: str
    font_name: str
    font_size_pt: float
    x_mm: float
    y_mm: float
    alignment: str              # "centered", "left" or "right"
    color: str = "#000000"
    angle: float | None = None
    letter_spacing: float = 0   # tracking units, 1/1000 em
    line_spacing: float = DEFAULT_LINE_SPACING


@dataclass
class ParsedLayout:
    source_url: str | None = None
    canvas_width: int = CANVAS_WIDTH_PX
    canvas_height: int = CANVAS_HEIGHT_PX
    entries: list[TextEntry] = field(default_factory=list)


# ── Parsing ───────────────────────────────────────────────────────


def _search_float(pattern: str, text: str, default):
    match = re.search(pattern, text)
    return float(match.group(1)) if match else default


def _parse_properties(props: str) -> dict:
    if "centered" in props:
        alignment = "centered"
    elif "right" in props:
        alignment = "right"
    else:
        alignment = "left"

    color_match = re.search(r"color\s+(#[0-9A-Fa-f]+)", props)

    # Letter-spacing given in mm is ignored; only tracking units are used.
    letter_spacing = 0
    if not re.search(r"letter-spacing\s+[\d.]+\s*mm", props):
        letter_spacing = _search_float(r"letter-spacing\s+([\d.]+)", props, 0)

    return {
        "x_mm": _search_float(r"x\s+([\d.]+)\s*mm", props, 0),
        "y_mm": _search_float(r"y\s+([\d.]+)\s*mm", props, 0),
        "alignment": alignment,
        "angle": _search_float(r"([-\d.]+)\s*angle", props, None),
        "color": color_match.group(1) if color_match else "#000000",
        "letter_spacing": letter_spacing,
        "line_spacing": _search_float(r"line-spacing\s+([\d.]+)", props, DEFAULT_LINE_SPACING),
    }


def parse_layout_text(content: str) -> ParsedLayout:
    """Parse a text-layout description.

    Lines before the ``Text -`` header are ignored except a source URL
    (any line starting with ``http``). Trailing text lines that never
    get a definition are dropped with a warning.
    """
    layout = ParsedLayout()
    pending: list[str] = []
    in_text_section = False

    for line in content.split("\n"):
        stripped = line.strip()

        if not in_text_section:
            if stripped.startswith("http"):
                layout.source_url = stripped
            elif stripped.lower() in ("text -", "text-"):
                in_text_section = True
            continue

        match = DEFINITION_RE.match(stripped)
        if match is None:
            if stripped:
                pending.append(stripped)
            continue

        text = "\n".join([*pending, match.group(1).strip()]).replace("\\n", "\n")
        layout.entries.append(TextEntry(
            text=text,
            font_name=match.group(2),
            font_size_pt=float(match.group(3)),
            **_parse_properties(match.group(4)),
        ))
        pending = []

    if pending:
        logger.warning(
            "%d trailing text line(s) without a definition: %s", len(pending), pending,
        )
    return layout


def extract_variables(entries: list[TextEntry]) -> list[str]:
    """Unique ``$identifier`` names across all entries, in first-seen order."""
    seen = {}
    for entry in entries:
        for name in VARIABLE_RE.findall(entry.text):
            seen.setdefault(name, None)
    return list(seen)


# ── Scene generation ──────────────────────────────────────────────


def sanitize_id(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def _display_name(text: str) -> str:
    flat = text.replace("\n", " ")
    if len(flat) > DISPLAY_NAME_LIMIT:
        return flat[:DISPLAY_NAME_LIMIT] + "..."
    return flat


def _color_id(hex_color: str) -> str:
    return "color_" + hex_color.lstrip("#").lower()


def _text_style(entry: TextEntry, metrics) -> dict[str, str]:
    font_size_px = pt_to_px(entry.font_size_pt)
    top = corrected_top_px(entry.y_mm, metrics, font_size_px, entry.line_spacing)

    style = {
        "position": "absolute",
        "font": f"font_{sanitize_id(entry.font_name)}",
        "font_size": f"{format_number(font_size_px)}px",
        "color": _color_id(entry.color),
        "line_height": format_number(entry.line_spacing),
        "letter_spacing": f"{format_number(round(entry.letter_spacing / 1000, 3))}em",
    }
    rotate = f"rotate({format_number(entry.angle)}deg)" if entry.angle else None

    if entry.alignment == "centered":
        style["left"] = "50%"
        style["text_align"] = "center"
        style["top"] = f"{format_number(top)}px"
        style["transform"] = " ".join(t for t in ("translateX(-50%)", rotate) if t)
    else:
        style["left"] = f"{mm_to_px(entry.x_mm)}px"
        style["top"] = f"{format_number(top)}px"
        style["text_align"] = "right" if entry.alignment == "right" else "left"
        if rotate:
            style["transform"] = rotate
    return style


def build_scene(
    layout: ParsedLayout,
    scene_id: str,
    scene_name: str | None = None,
    resolve_font: FontResolver | None = None,
    font_files: dict[str, str | Path] | None = None,
) -> Scene:
    """Generate a scene from a parsed layout.

    Args:
        layout: Output of parse_layout_text.
        scene_id: Scene id (also prefixes template / theme ids).
        scene_name: Display name; defaults to scene_id.
        resolve_font: Font name -> URL. Defaults to the hosted catalog
            lookup with the full 300-700 weight range.
        font_files: Optional font name -> local font file. Fonts listed
            here have their metrics measured from the file instead of the
            built-in table.

    Returns:
        The generated Scene.
    """
    name = scene_name or scene_id
    resolve_font = resolve_font or functools.partial(
        resolve_font_url, weights=IMPORT_FONT_WEIGHTS,
    )
    font_files = {k.lower(): v for k, v in (font_files or {}).items()}

    fonts: dict[str, Font] = {}
    colors: dict[str, Color] = {}
    for entry in layout.entries:
        font_id = f"font_{sanitize_id(entry.font_name)}"
        if font_id not in fonts:
            fonts[font_id] = Font(
                font_id=font_id,
                font_name=entry.font_name,
                font_url=resolve_font(entry.font_name),
            )
        color_id = _color_id(entry.color)
        if color_id not in colors:
            r, g, b = parse_hex_color(entry.color)
            colors[color_id] = Color(
                id=color_id, name=entry.color.lower(), r=r, g=g, b=b, a=1.0,
            )
    colors.setdefault("color_000000", Color(id="color_000000", name="Black", r=0, g=0, b=0))
    if len(colors) > MAX_COLORS or len(fonts) > MAX_FONTS:
        raise ValidationError(
            f"Layout uses {len(colors)} colors and {len(fonts)} fonts "
            f"(max {MAX_COLORS} colors, {MAX_FONTS} fonts)"
        )

    data_items = [
        DataItem(
            id=BACKGROUND_ITEM_ID,
            type="image",
            display_name="Background Image",
            image_url=BACKGROUND_IMAGE_URL,
        ),
    ]
    elements = [
        DataItemElement(
            element_id=BACKGROUND_ELEMENT_ID,
            data_item_id=BACKGROUND_ITEM_ID,
            style={"width": "100%", "height": "100%", "object_fit": "cover"},
        ),
    ]

    measured = {}
    for i, entry in enumerate(layout.entries, start=1):
        key = entry.font_name.lower()
        if key in font_files:
            if key not in measured:
                measured[key] = measure_font_metrics(font_files[key])
            metrics = measured[key]
        else:
            metrics = get_font_metrics(entry.font_name)

        item_id = f"text_{i}"
        data_items.append(DataItem(
            id=item_id,
            type="text",
            display_name=_display_name(entry.text),
            content=entry.text.replace("\n", "<br>"),
        ))
        elements.append(DataItemElement(
            element_id=f"{item_id}_element",
            data_item_id=item_id,
            style=_text_style(entry, metrics),
        ))

    return Scene(
        data=SceneData(scene_id=scene_id, data_items=data_items),
        template=Template(
            template_id=f"{scene_id}_template",
            template_name=f"{name} Template",
            canvas=Canvas(width=layout.canvas_width, height=layout.canvas_height),
            elements=elements,
        ),
        theme=Theme(
            theme_id=f"{scene_id}_theme",
            theme_name=f"{name} Theme",
            color_palette=list(colors.values()),
            font_palette=list(fonts.values()),
        ),
    )


def import_layout(
    path: str | Path,
    scene_id: str | None = None,
    scene_name: str | None = None,
    **kwargs,
) -> tuple[ParsedLayout, Scene]:
    """Read a layout file and build its scene. scene_id defaults to the file stem."""
    path = Path(path)
    layout = parse_layout_text(path.read_text())
    scene = build_scene(layout, scene_id or path.stem, scene_name, **kwargs)
    return layout, scene
