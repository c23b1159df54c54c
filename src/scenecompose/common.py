"""scenecompose.common — shared utilities for scene composition.

Contains: hex color parsing, CSS number/length formatting, id synthesis,
and ${name} path variable resolution for operation manifests.
"""

import re
import uuid

from .errors import ValidationError


_HEX_DIGITS = set("0123456789abcdefABCDEF")


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_rgba(hex_str: str) -> tuple[int, int, int, float]:
    """Convert '#RRGGBB' or '#RRGGBBAA' (hash optional) to (R, G, B, A).

    The 8-digit form's trailing byte is alpha / 255. 6-digit colors are
    fully opaque.

    Raises:
        ValidationError: Wrong length or non-hex characters.
    """
    if not isinstance(hex_str, str):
        raise ValidationError(f"Invalid hex color: {hex_str!r}")
    digits = hex_str.strip().lstrip("#")
    if len(digits) not in (6, 8) or not set(digits) <= _HEX_DIGITS:
        raise ValidationError(f"Invalid hex color: {hex_str!r}")

    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    a = int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0
    return r, g, b, a


def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    r, g, b, _ = parse_hex_rgba(hex_str)
    return r, g, b


# ── CSS formatting ─────────────────────────────────────────────────

def format_number(value: float) -> str:
    """Format a number the way it should appear in CSS (no trailing '.0')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def css_length(value: int | float | str) -> str:
    """Numbers become pixel lengths; strings ('50%', '2em') pass through."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{format_number(value)}px"
    return str(value)


def parse_css_number(value: str | None, default: float) -> float:
    """Leading numeric part of a CSS length ('120px' -> 120.0).

    Returns *default* when the value is missing or has no numeric prefix.
    """
    if value is None:
        return default
    match = re.match(r"\s*(-?\d+(?:\.\d+)?)", str(value))
    return float(match.group(1)) if match else default


# ── Ids ────────────────────────────────────────────────────────────

def generate_id(prefix: str) -> str:
    """Return a fresh id like 'elem_3f9a1c2b7d'."""
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValidationError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)
