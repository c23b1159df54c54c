"""Scene model — data, template and theme documents.

A scene is three independently persisted documents:

  data      SceneData: the content (text and image data items).
  template  Template: canvas size plus the element tree (layout).
  theme     Theme: the color and font palettes.

Elements form a tree. Each element is one of five variants, told apart by
``element_type``; only containers have children:

  data_item  → references a DataItem by id
  shape      → styled box (rectangle / circle)
  svg        → raw embeddable markup
  image      → image with its own URL (not backed by a DataItem)
  container  → ordered list of child elements

Style maps are sparse ``{property: value}`` dicts over a fixed vocabulary.
``color``, ``fill``, ``background_color`` and ``border_color`` hold Color
ids and ``font`` holds a Font id; everything else is a literal CSS token.
"""

from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import BaseModel, Field, field_validator

from .errors import ValidationError


MAX_COLORS = 16
MAX_FONTS = 8

DEFAULT_CANVAS_SIZE = (800, 600)

COLOR_REFERENCE_PROPERTIES = ("color", "fill", "background_color", "border_color")
FONT_REFERENCE_PROPERTY = "font"

STYLE_PROPERTIES = {
    # Layout
    "width", "height", "min_width", "min_height", "max_width", "max_height",
    "margin", "margin_top", "margin_bottom", "margin_left", "margin_right",
    "padding", "display", "overflow", "opacity",
    # Positioning
    "position", "top", "left", "right", "bottom", "z_index", "transform",
    # Flex
    "flex_direction", "justify_content", "align_items", "gap", "flex_wrap",
    # Text
    "font", "font_size", "font_weight", "font_style", "text_align",
    "line_height", "letter_spacing", "text_transform", "text_shadow",
    "white_space",
    # Colors
    "color", "fill", "background_color", "border", "border_color",
    "border_radius",
    # Image
    "object_fit",
}


# ── Theme ─────────────────────────────────────────────────────────


class Color(BaseModel):
    id: str
    name: str
    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)
    a: float = Field(default=1.0, ge=0.0, le=1.0)

    def rgba(self) -> tuple[int, int, int, float]:
        return self.r, self.g, self.b, self.a


class Font(BaseModel):
    font_id: str
    font_name: str
    font_url: str


class Theme(BaseModel):
    theme_id: str
    theme_name: str
    color_palette: list[Color] = Field(default_factory=list, max_length=MAX_COLORS)
    font_palette: list[Font] = Field(default_factory=list, max_length=MAX_FONTS)


# ── Data ──────────────────────────────────────────────────────────


class DataItem(BaseModel):
    id: str
    type: Literal["text", "image"]
    display_name: str
    content: str | None = None
    image_url: str | None = None


class SceneData(BaseModel):
    scene_id: str
    data_items: list[DataItem] = Field(default_factory=list)

    def find_item(self, item_id: str) -> DataItem | None:
        for item in self.data_items:
            if item.id == item_id:
                return item
        return None


# ── Elements ──────────────────────────────────────────────────────


class _ElementBase(BaseModel):
    element_id: str
    style: dict[str, str] | None = None

    @field_validator("style", mode="before")
    @classmethod
    def _check_style(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("style must be a mapping")
        unknown = sorted(set(value) - STYLE_PROPERTIES)
        if unknown:
            raise ValueError(f"unknown style properties: {unknown}")
        # Numbers in hand-authored documents are kept as their CSS text.
        return {
            k: v if isinstance(v, str) else str(v)
            for k, v in value.items()
            if v is not None
        }


class DataItemElement(_ElementBase):
    element_type: Literal["data_item"] = "data_item"
    data_item_id: str


class ShapeElement(_ElementBase):
    element_type: Literal["shape"] = "shape"
    shape_type: Literal["rectangle", "circle"] = "rectangle"


class SvgElement(_ElementBase):
    element_type: Literal["svg"] = "svg"
    svg_content: str = ""


class ImageElement(_ElementBase):
    element_type: Literal["image"] = "image"
    image_url: str = ""


class ContainerElement(_ElementBase):
    element_type: Literal["container"] = "container"
    children: list["Element"] = Field(default_factory=list)


Element = Annotated[
    Union[DataItemElement, ShapeElement, SvgElement, ImageElement, ContainerElement],
    Field(discriminator="element_type"),
]

ContainerElement.model_rebuild()


# ── Template & scene ──────────────────────────────────────────────


class Canvas(BaseModel):
    width: int
    height: int


class Template(BaseModel):
    template_id: str
    template_name: str
    canvas: Canvas
    elements: list[Element] = Field(default_factory=list)


class SceneMetadata(BaseModel):
    """scene.json: points at the other three documents by relative path."""
    id: str
    name: str
    data: str
    template: str
    theme: str


class Scene(BaseModel):
    data: SceneData
    template: Template
    theme: Theme


def new_scene(scene_id: str, scene_name: str | None = None) -> Scene:
    """Empty scene with an 800x600 canvas and empty palettes."""
    name = scene_name or scene_id
    width, height = DEFAULT_CANVAS_SIZE
    return Scene(
        data=SceneData(scene_id=scene_id),
        template=Template(
            template_id=f"{scene_id}_template",
            template_name=f"{name} Template",
            canvas=Canvas(width=width, height=height),
        ),
        theme=Theme(
            theme_id=f"{scene_id}_theme",
            theme_name=f"{name} Theme",
        ),
    )


# ── Document conversion ───────────────────────────────────────────


def to_document(model: BaseModel) -> dict:
    """Model → JSON-ready dict with unset optional fields omitted."""
    return model.model_dump(mode="json", exclude_none=True)


def parse_document(model_cls: type[BaseModel], document: Any, label: str):
    """Validate a raw JSON document into *model_cls*.

    Raises:
        ValidationError: The document does not match the expected shape.
    """
    try:
        return model_cls.model_validate(document)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid {label} document: {describe_errors(exc)}"
        ) from exc


def describe_errors(exc: pydantic.ValidationError) -> str:
    """One-line "field.path: message; ..." summary of a pydantic error."""
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )
