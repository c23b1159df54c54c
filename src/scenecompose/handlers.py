"""Operation handlers — one function per build operation.

Every handler has the signature ``(context, params) -> StepSuccess`` where
*params* is the operation's validated parameter record. Handlers mutate
the context's scene and layer map directly and signal failure by raising
a SceneError; the executor turns that into a StepFailure and stops.
"""

from .common import css_length, format_number, generate_id, parse_css_number, parse_hex_color
from .context import ExecutionContext, StepSuccess
from .errors import SceneReferenceError, ValidationError
from .metrics import anchor_position, normalize_anchor
from .model import (
    Canvas,
    ContainerElement,
    DataItem,
    DataItemElement,
    ShapeElement,
)
from .operations import (
    AddImageLayerParams,
    AddLayerToContainerParams,
    AddTextLayerParams,
    CreateCanvasParams,
    CreateFlexContainerParams,
    DeleteLayerParams,
    EditImageParams,
    EditTextLayerParams,
    GenerateImageParams,
    SetFlexLayoutParams,
    SetLayerAnchorParams,
    SetLayerVisibilityParams,
    UnsupportedParams,
)
from .palette import ensure_color_in_theme, ensure_font_in_theme
from .tree import add_element_to_container, iter_elements, remove_element_from_template


# Text boxes size themselves in the browser; anchoring assumes this width.
ESTIMATED_TEXT_WIDTH = 100

# Element size assumed by set_layer_anchor when the style has none.
DEFAULT_LAYER_SIZE = 100


# ── Canvas & layers ───────────────────────────────────────────────


def handle_create_canvas(context: ExecutionContext, params: CreateCanvasParams) -> StepSuccess:
    """Set the canvas size; a background color becomes a full-size rectangle."""
    context.template.canvas = Canvas(width=params.width, height=params.height)

    if params.background_color:
        color_id = ensure_color_in_theme(context.theme, params.background_color)
        background = ShapeElement(
            element_id=generate_id("elem"),
            shape_type="rectangle",
            style={"width": "100%", "height": "100%", "background_color": color_id},
        )
        context.template.elements.insert(0, background)

    return StepSuccess({"width": params.width, "height": params.height})


def handle_add_image_layer(context: ExecutionContext, params: AddImageLayerParams) -> StepSuccess:
    context.claim_layer_name(params.layer_name)

    item = DataItem(
        id=generate_id("data"),
        type="image",
        display_name=params.layer_name,
        image_url=params.input_image,
    )

    style = {
        "position": "absolute",
        "left": css_length(params.x),
        "top": css_length(params.y),
    }
    if params.width is not None:
        style["width"] = css_length(params.width)
    if params.height is not None:
        style["height"] = css_length(params.height)
    if params.opacity != 1:
        style["opacity"] = format_number(params.opacity)

    element = DataItemElement(element_id=generate_id("elem"), data_item_id=item.id, style=style)

    context.data.data_items.append(item)
    context.template.elements.append(element)
    context.layer_map[params.layer_name] = element.element_id

    return StepSuccess({"element_id": element.element_id, "data_item_id": item.id})


def _text_position(context: ExecutionContext, params: AddTextLayerParams) -> dict[str, str]:
    """left / top / transform for a new text layer.

    Priority: anchor, then explicit x/y, then full centering on the canvas.
    Horizontally centered anchors use percentages and a CSS transform so
    the browser centers the text at its real width.
    """
    ox, oy = params.offset_x, params.offset_y

    if params.anchor is not None:
        anchor = normalize_anchor(params.anchor)

        if anchor == "center":
            if ox == 0 and oy == 0:
                transform = "translate(-50%, -50%)"
            else:
                transform = (
                    f"translate(calc(-50% + {format_number(ox)}px), "
                    f"calc(-50% + {format_number(oy)}px))"
                )
            return {"left": "50%", "top": "50%", "transform": transform}

        if anchor in ("top-center", "bottom-center"):
            if ox == 0:
                transform = "translateX(-50%)"
            else:
                transform = f"translateX(calc(-50% + {format_number(ox)}px))"
            if anchor == "top-center":
                top = css_length(oy)
            else:
                top = f"calc(100% - {format_number(oy)}px)"
            return {"left": "50%", "top": top, "transform": transform}

        canvas = context.template.canvas
        text_h = parse_css_number(params.size, 16)
        x, y = anchor_position(
            anchor, canvas.width, canvas.height, ESTIMATED_TEXT_WIDTH, text_h, ox, oy,
        )
        return {"left": css_length(x), "top": css_length(y)}

    if params.x is not None or params.y is not None:
        return {"left": css_length(params.x or 0), "top": css_length(params.y or 0)}

    return {"left": "50%", "top": "50%", "transform": "translate(-50%, -50%)"}


def _text_shadow(context: ExecutionContext, params: AddTextLayerParams) -> str:
    """CSS text-shadow: 'Xpx Ypx BLURpx COLOR'.

    The shadow color is registered in the palette like any other color,
    but the shadow itself carries the literal value so opacity < 1 can
    be expressed as rgba().
    """
    ensure_color_in_theme(context.theme, params.shadow_color)
    if params.shadow_opacity < 1:
        r, g, b = parse_hex_color(params.shadow_color)
        color = f"rgba({r}, {g}, {b}, {format_number(params.shadow_opacity)})"
    else:
        color = params.shadow_color
    return (
        f"{format_number(params.shadow_offset_x)}px "
        f"{format_number(params.shadow_offset_y)}px "
        f"{format_number(params.shadow_blur)}px {color}"
    )


def handle_add_text_layer(context: ExecutionContext, params: AddTextLayerParams) -> StepSuccess:
    context.claim_layer_name(params.layer_name)
    position = _text_position(context, params)

    font_id = ensure_font_in_theme(context.theme, params.font, context.resolve_font)
    color_id = ensure_color_in_theme(context.theme, params.color)

    style = {
        "position": "absolute",
        "left": position["left"],
        "top": position["top"],
        "font": font_id,
        "font_size": css_length(params.size),
        "color": color_id,
        "text_align": params.alignment,
    }
    if params.bold:
        style["font_weight"] = "bold"
    if params.italic:
        style["font_style"] = "italic"
    if "transform" in position:
        style["transform"] = position["transform"]
    if params.opacity != 1:
        style["opacity"] = format_number(params.opacity)
    if params.shadow_enabled:
        style["text_shadow"] = _text_shadow(context, params)

    item = DataItem(
        id=generate_id("data"),
        type="text",
        display_name=params.layer_name,
        content=params.text,
    )
    element = DataItemElement(element_id=generate_id("elem"), data_item_id=item.id, style=style)

    context.data.data_items.append(item)
    context.template.elements.append(element)
    context.layer_map[params.layer_name] = element.element_id

    return StepSuccess({"element_id": element.element_id, "data_item_id": item.id})


def handle_edit_text_layer(context: ExecutionContext, params: EditTextLayerParams) -> StepSuccess:
    """Patch an existing text layer in place; unset fields are left alone."""
    element = context.layer_element(params.layer_name)
    if not isinstance(element, DataItemElement):
        raise ValidationError(f"Layer {params.layer_name} is not a text layer")

    item = context.data.find_item(element.data_item_id)
    if item is None or item.type != "text":
        raise ValidationError(f"Layer {params.layer_name} is not a text layer")

    style = dict(element.style or {})
    if params.font_name is not None:
        style["font"] = ensure_font_in_theme(context.theme, params.font_name, context.resolve_font)
    if params.color is not None:
        style["color"] = ensure_color_in_theme(context.theme, params.color)
    if params.font_size is not None:
        style["font_size"] = css_length(params.font_size)
    if params.text_align is not None:
        style["text_align"] = params.text_align
    if params.opacity is not None:
        style["opacity"] = format_number(params.opacity)

    if params.text_content is not None:
        item.content = params.text_content
    element.style = style

    return StepSuccess({"element_id": element.element_id})


def handle_set_layer_visibility(
    context: ExecutionContext, params: SetLayerVisibilityParams,
) -> StepSuccess:
    element = context.layer_element(params.layer_name)
    element.style = {**(element.style or {}), "display": "block" if params.visible else "none"}
    return StepSuccess({"element_id": element.element_id, "visible": params.visible})


def handle_delete_layer(context: ExecutionContext, params: DeleteLayerParams) -> StepSuccess:
    """Remove a layer's element (and subtree) plus the data items behind it.

    Layer names bound to anything inside the removed subtree are dropped
    too, so they cannot dangle.
    """
    element = context.layer_element(params.layer_name)

    removed = remove_element_from_template(context.template, element.element_id)
    if removed is None:
        raise SceneReferenceError(f"Failed to remove element: {element.element_id}")

    removed_ids = set()
    backing_items = set()
    for node in iter_elements([removed]):
        removed_ids.add(node.element_id)
        if isinstance(node, DataItemElement):
            backing_items.add(node.data_item_id)

    context.data.data_items = [
        item for item in context.data.data_items if item.id not in backing_items
    ]
    context.layer_map = {
        name: eid for name, eid in context.layer_map.items() if eid not in removed_ids
    }

    return StepSuccess({"element_id": element.element_id})


# ── Image operations ──────────────────────────────────────────────


def handle_generate_image(context: ExecutionContext, params: GenerateImageParams) -> StepSuccess:
    """Text-to-image. The URL becomes this step's output; no layer is added."""
    url = context.image_generator(params.prompt, None, params.aspect_ratio, params.output_format)
    return StepSuccess(url)


def handle_edit_image(context: ExecutionContext, params: EditImageParams) -> StepSuccess:
    url = context.image_generator(
        params.prompt, params.input_images, params.aspect_ratio, params.output_format,
    )
    return StepSuccess(url)


def _unsupported(name: str):
    def handler(context: ExecutionContext, params: UnsupportedParams) -> StepSuccess:
        raise ValidationError(f"{name} operation is not implemented yet")
    handler.__name__ = f"handle_{name}"
    return handler


# ── Layout operations ─────────────────────────────────────────────


def handle_set_layer_anchor(context: ExecutionContext, params: SetLayerAnchorParams) -> StepSuccess:
    """Absolute-position a layer at an anchor of the canvas or another layer.

    Sizes come from the elements' own width/height styles (100 when
    unset); the reference layer's left/top shift the result.
    """
    element = context.layer_element(params.layer_name)
    style = element.style or {}
    elem_w = parse_css_number(style.get("width"), DEFAULT_LAYER_SIZE)
    elem_h = parse_css_number(style.get("height"), DEFAULT_LAYER_SIZE)

    canvas = context.template.canvas
    box_w, box_h = canvas.width, canvas.height
    base_x = base_y = 0.0

    if params.relative_to is not None:
        ref = context.layer_element(params.relative_to, kind="Relative layer")
        ref_style = ref.style or {}
        box_w = parse_css_number(ref_style.get("width"), DEFAULT_LAYER_SIZE)
        box_h = parse_css_number(ref_style.get("height"), DEFAULT_LAYER_SIZE)
        base_x = parse_css_number(ref_style.get("left"), 0)
        base_y = parse_css_number(ref_style.get("top"), 0)

    x, y = anchor_position(
        params.anchor, box_w, box_h, elem_w, elem_h, params.offset_x, params.offset_y,
    )
    x, y = base_x + x, base_y + y

    element.style = {
        **style,
        "position": "absolute",
        "left": css_length(x),
        "top": css_length(y),
    }
    return StepSuccess({"element_id": element.element_id, "x": x, "y": y})


def handle_create_flex_container(
    context: ExecutionContext, params: CreateFlexContainerParams,
) -> StepSuccess:
    context.claim_layer_name(params.container_name)

    style = {
        "position": "absolute",
        "left": css_length(params.x),
        "top": css_length(params.y),
        "display": "flex",
        "flex_direction": params.direction,
        "justify_content": params.justify,
        "align_items": params.align,
        "gap": css_length(params.gap),
    }
    if params.width is not None:
        style["width"] = css_length(params.width)
    if params.height is not None:
        style["height"] = css_length(params.height)

    container = ContainerElement(element_id=generate_id("elem"), style=style)
    context.template.elements.append(container)
    context.layer_map[params.container_name] = container.element_id

    return StepSuccess({"element_id": container.element_id})


def handle_add_layer_to_container(
    context: ExecutionContext, params: AddLayerToContainerParams,
) -> StepSuccess:
    layer = context.layer_element(params.layer_name)
    container = context.layer_element(params.container_name, kind="Container")
    add_element_to_container(context.template, layer.element_id, container.element_id)
    return StepSuccess({
        "layer_element_id": layer.element_id,
        "container_element_id": container.element_id,
    })


def handle_set_flex_layout(context: ExecutionContext, params: SetFlexLayoutParams) -> StepSuccess:
    container = context.layer_element(params.container_name, kind="Container")
    if not isinstance(container, ContainerElement):
        raise ValidationError(f"Element {params.container_name} is not a container")

    style = {**(container.style or {}), "display": "flex"}
    if params.direction is not None:
        style["flex_direction"] = params.direction
    if params.justify is not None:
        style["justify_content"] = params.justify
    if params.align is not None:
        style["align_items"] = params.align
    if params.gap is not None:
        style["gap"] = css_length(params.gap)
    container.style = style

    return StepSuccess({"container_element_id": container.element_id})


# ── Registry ──────────────────────────────────────────────────────
# Closed set: an operation name missing here is an "unknown operation".

HANDLERS = {
    "create_canvas": handle_create_canvas,
    "add_image_layer": handle_add_image_layer,
    "add_text_layer": handle_add_text_layer,
    "edit_text_layer": handle_edit_text_layer,
    "set_layer_visibility": handle_set_layer_visibility,
    "delete_layer": handle_delete_layer,
    "generate_image": handle_generate_image,
    "edit_image": handle_edit_image,
    "resize_image": _unsupported("resize_image"),
    "crop_image": _unsupported("crop_image"),
    "remove_background": _unsupported("remove_background"),
    "upscale": _unsupported("upscale"),
    "segment": _unsupported("segment"),
    "set_layer_anchor": handle_set_layer_anchor,
    "create_flex_container": handle_create_flex_container,
    "add_layer_to_container": handle_add_layer_to_container,
    "set_flex_layout": handle_set_flex_layout,
}
