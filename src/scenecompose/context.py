"""Execution context — the mutable state of one in-progress build.

An ExecutionContext owns the scene under construction plus pipeline
bookkeeping: the current step, the layer-name → element-id map that lets
later operations address earlier layers by name, and the step → output
map that backs ``$output_of_step_N`` placeholders. It lives for exactly
one pipeline run and is never persisted as such.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from .errors import SceneError, SceneReferenceError, ValidationError
from .fonts import FontResolver, resolve_font_url
from .imagegen import ImageGenerator, generate_image
from .model import Element, Scene, SceneData, Template, Theme, new_scene
from .tree import find_element


PLACEHOLDER_RE = re.compile(r"\$output_of_step_(\d+)")


# ── Step results ──────────────────────────────────────────────────


@dataclass
class StepSuccess:
    """A handler finished; *output* (if not None) is recorded for its step."""
    output: Any = None


@dataclass
class StepFailure:
    """A step failed; the pipeline stops here."""
    error: SceneError

    @property
    def kind(self) -> str:
        return type(self.error).__name__

    @property
    def message(self) -> str:
        return str(self.error)


StepResult = StepSuccess | StepFailure


# ── Context ───────────────────────────────────────────────────────


@dataclass
class ExecutionContext:
    scene_id: str
    scene_name: str
    scene: Scene
    total_steps: int = 0
    current_step: int = 0
    layer_map: dict[str, str] = field(default_factory=dict)
    operation_outputs: dict[int, Any] = field(default_factory=dict)
    resolve_font: FontResolver = resolve_font_url
    image_generator: ImageGenerator = generate_image

    @classmethod
    def create(cls, scene_id: str, scene_name: str | None = None, **capabilities):
        """Fresh context around an empty scene (800x600 canvas, empty palettes)."""
        name = scene_name or scene_id
        return cls(
            scene_id=scene_id,
            scene_name=name,
            scene=new_scene(scene_id, name),
            **capabilities,
        )

    @property
    def data(self) -> SceneData:
        return self.scene.data

    @property
    def template(self) -> Template:
        return self.scene.template

    @property
    def theme(self) -> Theme:
        return self.scene.theme

    def claim_layer_name(self, layer_name: str) -> None:
        if layer_name in self.layer_map:
            raise ValidationError(f"Layer name already in use: {layer_name}")

    def layer_element(self, layer_name: str, kind: str = "Layer") -> Element:
        """Element bound to a layer name.

        Raises:
            SceneReferenceError: Name unknown, or its element left the tree.
        """
        element_id = self.layer_map.get(layer_name)
        if element_id is None:
            raise SceneReferenceError(f"{kind} not found: {layer_name}")
        element = find_element(self.template.elements, element_id)
        if element is None:
            raise SceneReferenceError(f"Element not found: {element_id}")
        return element


# ── Placeholders ──────────────────────────────────────────────────


def resolve_placeholders(value: Any, outputs: dict[int, Any]) -> Any:
    """Replace ``$output_of_step_N`` strings with step N's recorded output.

    Walks nested dicts and lists. Only strings that are exactly a
    placeholder are substituted; other strings pass through unchanged.

    Raises:
        ValidationError: Step N has no recorded output.
    """
    if isinstance(value, str):
        match = PLACEHOLDER_RE.fullmatch(value)
        if match is None:
            return value
        step = int(match.group(1))
        if step not in outputs:
            raise ValidationError(f"No output found for step {step}")
        return outputs[step]
    if isinstance(value, dict):
        return {k: resolve_placeholders(v, outputs) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_placeholders(item, outputs) for item in value]
    return value
