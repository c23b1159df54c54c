"""Text metrics and anchor positioning.

Two independent pieces of numeric layout:

  - Anchor positioning: place a w×h box inside a W×H reference box at one
    of nine named anchors (top-left … bottom-right), then add an offset.
  - Cap-height baseline correction: imported text layouts give positions
    in millimeters (and sizes in points) measured to the visible top of
    capital letters, while CSS ``top`` positions the top of the line box.
    The gap between the two depends on font metrics and line height:

        offset     = half_leading + (ascent - cap_height) * font_size_px
        half_leading = (line_height - ascent - descent) * font_size_px / 2

    Everything is laid out at a 300 DPI reference resolution.
"""

import math
from pathlib import Path
from typing import NamedTuple

from PIL import ImageFont

from .errors import ValidationError


# ── Units ─────────────────────────────────────────────────────────

DPI = 300
MM_TO_PX = DPI / 25.4      # ~11.811 px per mm
PT_TO_PX = DPI / 72        # ~4.167 px per pt


def _round_half_up(value: float, ndigits: int = 0) -> float:
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def mm_to_px(mm: float) -> int:
    """Millimeters → whole pixels at the reference DPI."""
    return int(_round_half_up(mm * MM_TO_PX))


def pt_to_px(pt: float) -> float:
    """Points → pixels at the reference DPI, one decimal place."""
    return _round_half_up(pt * PT_TO_PX, 1)


# ── Anchors ───────────────────────────────────────────────────────

VALID_ANCHORS = {
    "top-left", "top-center", "top-right",
    "center-left", "center", "center-right",
    "bottom-left", "bottom-center", "bottom-right",
}


def normalize_anchor(anchor: str) -> str:
    """Lower-cased anchor name, or ValidationError if it is not one of the nine."""
    name = str(anchor).lower()
    if name not in VALID_ANCHORS:
        raise ValidationError(
            f"Unknown anchor point: '{anchor}'. Valid: {sorted(VALID_ANCHORS)}"
        )
    return name


def anchor_position(
    anchor: str,
    box_w: float,
    box_h: float,
    elem_w: float,
    elem_h: float,
    offset_x: float = 0,
    offset_y: float = 0,
) -> tuple[float, float]:
    """Compute (x, y) for an element anchored inside a reference box.

    Left/top-aligned anchors give 0, right/bottom-aligned give
    box - elem, centered ones give (box - elem) / 2. Offsets are added
    afterwards.

    Args:
        anchor: One of the 9 anchor names (case-insensitive).
        box_w: Reference box width (canvas or another element).
        box_h: Reference box height.
        elem_w: Width of the element being placed.
        elem_h: Height of the element being placed.
        offset_x: Added to x after anchoring.
        offset_y: Added to y after anchoring.

    Returns:
        (x, y) of the element's top-left corner relative to the box.

    Raises:
        ValidationError: Unknown anchor name.
    """
    name = normalize_anchor(anchor)
    if name == "center":
        vert, horiz = "center", "center"
    else:
        vert, horiz = name.split("-", 1)

    # Horizontal position.
    if horiz == "left":
        x = 0
    elif horiz == "right":
        x = box_w - elem_w
    else:  # center
        x = (box_w - elem_w) / 2

    # Vertical position.
    if vert == "top":
        y = 0
    elif vert == "bottom":
        y = box_h - elem_h
    else:  # center
        y = (box_h - elem_h) / 2

    return x + offset_x, y + offset_y


# ── Font metrics ──────────────────────────────────────────────────


class FontMetrics(NamedTuple):
    """Vertical font metrics as fractions of the em size."""
    ascent: float
    descent: float     # positive distance below the baseline
    cap_height: float


# sTypoAscender / sTypoDescender / sCapHeight over unitsPerEm.
FONT_METRICS = {
    "arial": FontMetrics(1854 / 2048, 434 / 2048, 1467 / 2048),
    "montserrat": FontMetrics(1006 / 1000, 194 / 1000, 700 / 1000),
}

DEFAULT_FONT_METRICS = FontMetrics(0.9, 0.2, 0.71)

MEASURE_SIZE = 1000


def get_font_metrics(font_name: str) -> FontMetrics:
    """Known metrics for a family, or the generic fallback triple."""
    return FONT_METRICS.get(font_name.lower(), DEFAULT_FONT_METRICS)


def measure_font_metrics(font_path: str | Path) -> FontMetrics:
    """Measure ascent / descent / cap height from a font file with Pillow.

    The font is loaded at MEASURE_SIZE px so the returned fractions keep
    three significant digits. Cap height is the ink height of 'H' above
    the baseline.
    """
    font = ImageFont.truetype(str(font_path), size=MEASURE_SIZE)
    ascent, descent = font.getmetrics()
    cap_top = font.getbbox("H", anchor="ls")[1]
    return FontMetrics(
        ascent / MEASURE_SIZE,
        descent / MEASURE_SIZE,
        -cap_top / MEASURE_SIZE,
    )


def cap_height_offset_px(
    metrics: FontMetrics,
    font_size_px: float,
    line_height: float,
) -> float:
    """Pixel distance from the CSS line-box top to the cap-height top."""
    half_leading = (line_height - metrics.ascent - metrics.descent) * font_size_px / 2
    return half_leading + (metrics.ascent - metrics.cap_height) * font_size_px


def corrected_top_px(
    y_mm: float,
    metrics: FontMetrics,
    font_size_px: float,
    line_height: float,
) -> float:
    """CSS ``top`` (px, one decimal) for text whose cap top sits at y_mm."""
    offset = cap_height_offset_px(metrics, font_size_px, line_height)
    return _round_half_up(mm_to_px(y_mm) - offset, 1)
