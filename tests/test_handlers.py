"""Tests for individual operation handlers."""

import pytest

from scenecompose.errors import SceneReferenceError, ValidationError
from scenecompose.model import ContainerElement, DataItemElement, ShapeElement
from scenecompose.operations import parse_params


def _run(context, operation, **parameters):
    from scenecompose.handlers import HANDLERS

    return HANDLERS[operation](context, parse_params(operation, parameters))


def _style(context, layer_name):
    return context.layer_element(layer_name).style


class TestCreateCanvas:
    def test_sets_size(self, context):
        result = _run(context, "create_canvas", width=1240, height=1748)
        assert result.output == {"width": 1240, "height": 1748}
        assert context.template.canvas.width == 1240
        assert context.template.elements == []
        assert context.theme.color_palette == []

    def test_background_becomes_first_element(self, context):
        _run(context, "add_image_layer", layer_name="photo", input_image="p.png")
        _run(context, "create_canvas", width=100, height=100, background_color="#FFFF00")

        background = context.template.elements[0]
        assert isinstance(background, ShapeElement)
        assert background.style["width"] == "100%"
        assert background.style["height"] == "100%"
        color = context.theme.color_palette[0]
        assert background.style["background_color"] == color.id
        assert (color.r, color.g, color.b) == (255, 255, 0)


class TestCanvasWithCenteredTitle:
    def test_scenario(self, context):
        _run(context, "create_canvas", width=1240, height=1748, background_color="#FFFF00")
        palette_after_canvas = [c.id for c in context.theme.color_palette]
        _run(context, "add_text_layer", layer_name="title", text="Hello", anchor="center")

        elements = context.template.elements
        assert len(elements) == 2
        assert isinstance(elements[0], ShapeElement)
        assert isinstance(elements[1], DataItemElement)
        assert len(palette_after_canvas) == 1
        assert context.theme.color_palette[0].id == palette_after_canvas[0]

        style = elements[1].style
        assert style["left"] == "50%"
        assert style["top"] == "50%"
        assert style["transform"] == "translate(-50%, -50%)"


class TestAddImageLayer:
    def test_creates_item_and_element(self, context):
        result = _run(context, "add_image_layer", layer_name="photo", input_image="p.png",
                      x=10, y=20, width=300, height="50%")
        item = context.data.find_item(result.output["data_item_id"])
        assert item.type == "image"
        assert item.image_url == "p.png"
        assert item.display_name == "photo"
        assert context.layer_map["photo"] == result.output["element_id"]
        assert _style(context, "photo") == {
            "position": "absolute", "left": "10px", "top": "20px",
            "width": "300px", "height": "50%",
        }

    def test_defaults_to_origin(self, context):
        _run(context, "add_image_layer", layer_name="photo", input_image="p.png")
        style = _style(context, "photo")
        assert (style["left"], style["top"]) == ("0px", "0px")
        assert "width" not in style

    def test_duplicate_layer_name(self, context):
        _run(context, "add_image_layer", layer_name="photo", input_image="p.png")
        with pytest.raises(ValidationError, match="already in use"):
            _run(context, "add_image_layer", layer_name="photo", input_image="q.png")
        assert len(context.data.data_items) == 1


class TestAddTextLayer:
    def test_defaults_center_on_canvas(self, context):
        result = _run(context, "add_text_layer", layer_name="t", text="Hi")
        style = _style(context, "t")
        assert style["position"] == "absolute"
        assert style["transform"] == "translate(-50%, -50%)"
        assert style["font_size"] == "16px"
        assert style["text_align"] == "left"
        assert context.data.find_item(result.output["data_item_id"]).content == "Hi"

    def test_registers_font_and_color(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi", font="Lato", color="#336699")
        style = _style(context, "t")
        font = context.theme.font_palette[0]
        color = context.theme.color_palette[0]
        assert style["font"] == font.font_id
        assert font.font_url == "https://fonts.test/Lato"
        assert style["color"] == color.id

    def test_explicit_position(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi", x=15, y=25)
        style = _style(context, "t")
        assert (style["left"], style["top"]) == ("15px", "25px")
        assert "transform" not in style

    def test_center_anchor_with_offsets(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi", anchor="center",
             offset_x=10, offset_y=-5)
        assert _style(context, "t")["transform"] == (
            "translate(calc(-50% + 10px), calc(-50% + -5px))"
        )

    def test_top_center_anchor(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi", anchor="top-center",
             offset_y=40)
        style = _style(context, "t")
        assert style["left"] == "50%"
        assert style["top"] == "40px"
        assert style["transform"] == "translateX(-50%)"

    def test_bottom_center_anchor(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi", anchor="bottom-center",
             offset_y=30)
        assert _style(context, "t")["top"] == "calc(100% - 30px)"

    def test_corner_anchor_uses_estimated_box(self, context):
        # 800x600 canvas, estimated 100 x 20 text box
        _run(context, "add_text_layer", layer_name="t", text="Hi", anchor="bottom-right",
             size=20)
        style = _style(context, "t")
        assert (style["left"], style["top"]) == ("700px", "580px")

    def test_unknown_anchor(self, context):
        with pytest.raises(ValidationError, match="Unknown anchor point"):
            _run(context, "add_text_layer", layer_name="t", text="Hi", anchor="middle")
        assert "t" not in context.layer_map

    def test_bold_italic_shadow(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi", bold=True, italic=True,
             shadow_enabled=True, shadow_color="#000000", shadow_offset_x=2,
             shadow_offset_y=3, shadow_blur=4, shadow_opacity=0.5)
        style = _style(context, "t")
        assert style["font_weight"] == "bold"
        assert style["font_style"] == "italic"
        assert style["text_shadow"] == "2px 3px 4px rgba(0, 0, 0, 0.5)"

    def test_opaque_shadow_uses_hex(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi",
             shadow_enabled=True, shadow_color="#FF0000", shadow_blur=1)
        assert _style(context, "t")["text_shadow"] == "0px 0px 1px #FF0000"


class TestEditTextLayer:
    def test_patches_only_given_fields(self, context):
        result = _run(context, "add_text_layer", layer_name="t", text="Hi", x=1, y=2)
        _run(context, "edit_text_layer", layer_name="t", text_content="Bye", font_size=30,
             text_align="right")

        style = _style(context, "t")
        assert style["font_size"] == "30px"
        assert style["text_align"] == "right"
        assert style["left"] == "1px"
        assert context.data.find_item(result.output["data_item_id"]).content == "Bye"

    def test_new_color_registered(self, context):
        _run(context, "add_text_layer", layer_name="t", text="Hi")
        _run(context, "edit_text_layer", layer_name="t", color="#FF0000")
        assert len(context.theme.color_palette) == 2
        assert _style(context, "t")["color"] == context.theme.color_palette[1].id

    def test_image_layer_rejected(self, context):
        _run(context, "add_image_layer", layer_name="photo", input_image="p.png")
        with pytest.raises(ValidationError, match="not a text layer"):
            _run(context, "edit_text_layer", layer_name="photo", text_content="x")

    def test_unknown_layer(self, context):
        with pytest.raises(SceneReferenceError):
            _run(context, "edit_text_layer", layer_name="ghost", text_content="x")


class TestVisibilityAndDelete:
    def test_hide_and_show(self, context):
        _run(context, "add_image_layer", layer_name="photo", input_image="p.png")
        _run(context, "set_layer_visibility", layer_name="photo", visible=False)
        assert _style(context, "photo")["display"] == "none"
        _run(context, "set_layer_visibility", layer_name="photo", visible=True)
        assert _style(context, "photo")["display"] == "block"

    def test_delete_removes_element_and_item(self, context):
        _run(context, "add_image_layer", layer_name="photo", input_image="p.png")
        _run(context, "delete_layer", layer_name="photo")
        assert context.template.elements == []
        assert context.data.data_items == []
        assert "photo" not in context.layer_map

    def test_delete_container_drops_nested_layers(self, context):
        _run(context, "create_flex_container", container_name="row")
        _run(context, "add_text_layer", layer_name="t", text="Hi")
        _run(context, "add_layer_to_container", layer_name="t", container_name="row")
        _run(context, "delete_layer", layer_name="row")

        assert context.template.elements == []
        assert context.data.data_items == []
        assert context.layer_map == {}

    def test_delete_unknown(self, context):
        with pytest.raises(SceneReferenceError, match="Layer not found"):
            _run(context, "delete_layer", layer_name="ghost")


class TestImageOperations:
    def test_generate_returns_url(self, context, image_generator):
        result = _run(context, "generate_image", prompt="a cat", aspect_ratio="1:1")
        assert result.output == "https://images.test/out.png"
        assert image_generator.calls == [("a cat", None, "1:1", None)]
        assert context.template.elements == []

    def test_edit_passes_inputs(self, context, image_generator):
        _run(context, "edit_image", prompt="make it blue", input_images=["a.png", "b.png"])
        assert image_generator.calls[0][1] == ["a.png", "b.png"]

    @pytest.mark.parametrize("operation", [
        "resize_image", "crop_image", "remove_background", "upscale", "segment",
    ])
    def test_unsupported(self, context, operation):
        with pytest.raises(ValidationError, match=f"{operation} operation is not implemented yet"):
            _run(context, operation)


class TestSetLayerAnchor:
    def test_anchor_to_canvas(self, context):
        _run(context, "create_canvas", width=1000, height=1000)
        _run(context, "add_image_layer", layer_name="p", input_image="p.png",
             width=100, height=50)
        result = _run(context, "set_layer_anchor", layer_name="p", anchor="center")

        assert result.output["x"] == 450
        assert result.output["y"] == 475
        style = _style(context, "p")
        assert (style["left"], style["top"]) == ("450px", "475px")

    def test_default_size_and_offsets(self, context):
        _run(context, "create_canvas", width=1000, height=1000)
        _run(context, "add_image_layer", layer_name="p", input_image="p.png")
        result = _run(context, "set_layer_anchor", layer_name="p", anchor="bottom-right",
                      offset_x=10, offset_y=-10)
        assert (result.output["x"], result.output["y"]) == (910, 890)

    def test_relative_to_other_layer(self, context):
        _run(context, "add_image_layer", layer_name="frame", input_image="f.png",
             x=100, y=200, width=300, height=300)
        _run(context, "add_image_layer", layer_name="p", input_image="p.png",
             width=100, height=100)
        result = _run(context, "set_layer_anchor", layer_name="p", anchor="top-right",
                      relative_to="frame")
        assert (result.output["x"], result.output["y"]) == (300, 200)

    def test_unknown_relative_layer(self, context):
        _run(context, "add_image_layer", layer_name="p", input_image="p.png")
        with pytest.raises(SceneReferenceError, match="Relative layer not found"):
            _run(context, "set_layer_anchor", layer_name="p", anchor="center",
                 relative_to="ghost")


class TestFlexContainers:
    def test_create_defaults(self, context):
        result = _run(context, "create_flex_container", container_name="row", gap=12)
        container = context.template.elements[0]
        assert isinstance(container, ContainerElement)
        assert container.element_id == result.output["element_id"]
        assert container.style["display"] == "flex"
        assert container.style["flex_direction"] == "row"
        assert container.style["justify_content"] == "flex-start"
        assert container.style["gap"] == "12px"

    def test_add_layer_moves_element(self, context):
        _run(context, "create_flex_container", container_name="row")
        _run(context, "add_image_layer", layer_name="a", input_image="a.png")
        _run(context, "add_layer_to_container", layer_name="a", container_name="row")

        assert len(context.template.elements) == 1
        assert context.template.elements[0].children[0].element_id == context.layer_map["a"]
        # Layer names still resolve after the move.
        assert _style(context, "a")["left"] == "0px"

    def test_container_into_itself(self, context):
        _run(context, "create_flex_container", container_name="row")
        with pytest.raises(ValidationError, match="inside the moved element"):
            _run(context, "add_layer_to_container", layer_name="row", container_name="row")

    def test_set_flex_layout_patches(self, context):
        _run(context, "create_flex_container", container_name="row")
        _run(context, "set_flex_layout", container_name="row", direction="column", gap="1em")
        style = _style(context, "row")
        assert style["flex_direction"] == "column"
        assert style["gap"] == "1em"
        assert style["justify_content"] == "flex-start"

    def test_set_flex_layout_on_non_container(self, context):
        _run(context, "add_image_layer", layer_name="a", input_image="a.png")
        with pytest.raises(ValidationError, match="is not a container"):
            _run(context, "set_flex_layout", container_name="a", direction="column")
