"""Shared test fixtures for scenecompose tests."""

import pytest

from scenecompose.context import ExecutionContext
from scenecompose.model import (
    Canvas,
    Color,
    ContainerElement,
    DataItem,
    DataItemElement,
    Font,
    ImageElement,
    Scene,
    SceneData,
    ShapeElement,
    SvgElement,
    Template,
    Theme,
)


def fake_font_url(font_name):
    """Font resolver that never touches the network."""
    return f"https://fonts.test/{font_name.replace(' ', '+')}"


class FakeImageGenerator:
    """Records calls and returns a fixed URL per call."""

    def __init__(self, url="https://images.test/out.png"):
        self.url = url
        self.calls = []

    def __call__(self, prompt, input_images=None, aspect_ratio=None, output_format=None):
        self.calls.append((prompt, input_images, aspect_ratio, output_format))
        return self.url


@pytest.fixture
def image_generator():
    return FakeImageGenerator()


@pytest.fixture
def context(image_generator):
    """Fresh execution context with offline font and image capabilities."""
    return ExecutionContext.create(
        "test_scene", "Test Scene",
        resolve_font=fake_font_url,
        image_generator=image_generator,
    )


@pytest.fixture
def sample_scene():
    """Small scene using every element variant, with a nested container."""
    return Scene(
        data=SceneData(
            scene_id="sample",
            data_items=[
                DataItem(id="title", type="text", display_name="Title", content="Hello"),
                DataItem(id="photo", type="image", display_name="Photo",
                         image_url="https://img.test/photo.png"),
            ],
        ),
        template=Template(
            template_id="sample_template",
            template_name="Sample Template",
            canvas=Canvas(width=400, height=300),
            elements=[
                ShapeElement(
                    element_id="bg",
                    style={"width": "100%", "height": "100%", "background_color": "color_red"},
                ),
                ContainerElement(
                    element_id="row",
                    style={"display": "flex", "gap": "10px"},
                    children=[
                        DataItemElement(
                            element_id="title_el",
                            data_item_id="title",
                            style={"font": "font_arial", "color": "color_red"},
                        ),
                        DataItemElement(element_id="photo_el", data_item_id="photo"),
                    ],
                ),
                ImageElement(element_id="logo", image_url="logo.png",
                             style={"position": "absolute", "left": "5px"}),
                SvgElement(element_id="icon", svg_content="<svg></svg>"),
            ],
        ),
        theme=Theme(
            theme_id="sample_theme",
            theme_name="Sample Theme",
            color_palette=[Color(id="color_red", name="red", r=255, g=0, b=0, a=1.0)],
            font_palette=[Font(font_id="font_arial", font_name="Arial",
                               font_url="https://fonts.test/Arial")],
        ),
    )


@pytest.fixture
def font_resolver():
    return fake_font_url
