"""Theme palette management — register colors and fonts on demand.

Both helpers are idempotent: asking for the same color value or the same
font family twice returns the existing palette id. Capacity limits
(16 colors, 8 fonts) are enforced at insertion time and a failed call
leaves the palette untouched.
"""

from .common import generate_id, parse_hex_rgba
from .errors import ValidationError
from .fonts import FontResolver, resolve_font_url
from .model import MAX_COLORS, MAX_FONTS, Color, Font, Theme


def find_color(theme: Theme, rgba: tuple[int, int, int, float]) -> Color | None:
    """Exact r/g/b/a match — names are irrelevant."""
    for color in theme.color_palette:
        if color.rgba() == rgba:
            return color
    return None


def find_font(theme: Theme, font_name: str) -> Font | None:
    """Case-insensitive family-name match."""
    wanted = font_name.lower()
    for font in theme.font_palette:
        if font.font_name.lower() == wanted:
            return font
    return None


def ensure_color_in_theme(theme: Theme, color_spec: str) -> str:
    """Return the palette id for a hex color, adding it if necessary.

    Args:
        theme: Theme whose color palette is searched / extended.
        color_spec: '#RRGGBB' or '#RRGGBBAA'.

    Returns:
        Id of the (possibly new) palette entry.

    Raises:
        ValidationError: Unparseable color, or the palette already holds
            MAX_COLORS entries and the color is not among them.
    """
    r, g, b, a = parse_hex_rgba(color_spec)

    existing = find_color(theme, (r, g, b, a))
    if existing is not None:
        return existing.id

    if len(theme.color_palette) >= MAX_COLORS:
        raise ValidationError(
            f"Color palette limit reached (max {MAX_COLORS} colors)"
        )

    color = Color(
        id=generate_id("color"),
        name=f"color_{len(theme.color_palette) + 1}",
        r=r, g=g, b=b, a=a,
    )
    theme.color_palette.append(color)
    return color.id


def ensure_font_in_theme(
    theme: Theme,
    font_name: str,
    resolver: FontResolver = resolve_font_url,
) -> str:
    """Return the palette id for a font family, adding it if necessary.

    The font URL comes from *resolver* (hosted catalog or local fallback)
    and is only looked up when the family is new.

    Raises:
        ValidationError: Empty name, or the palette already holds
            MAX_FONTS entries and the family is not among them.
    """
    if not font_name or not font_name.strip():
        raise ValidationError("Font name must be a non-empty string")

    existing = find_font(theme, font_name)
    if existing is not None:
        return existing.font_id

    if len(theme.font_palette) >= MAX_FONTS:
        raise ValidationError(
            f"Font palette limit reached (max {MAX_FONTS} fonts)"
        )

    font_url = resolver(font_name)
    font = Font(font_id=generate_id("font"), font_name=font_name, font_url=font_url)
    theme.font_palette.append(font)
    return font.font_id
