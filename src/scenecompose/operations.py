"""Operations — parameter records and the operation manifest loader.

An operation list is an ordered build script:

  scene:
    id: birthday
    name: Birthday Card
  paths:
    assets: /data/assets
  operations:
    - step: 1
      operation: create_canvas
      parameters: {width: 1240, height: 1748, background_color: "#FFFF00"}
    - step: 2
      operation: add_image_layer
      parameters: {layer_name: photo, input_image: "${assets}/photo.png"}
    - step: 3
      operation: generate_image
      parameters: {prompt: "a watercolor balloon"}
    - step: 4
      operation: add_image_layer
      parameters: {layer_name: balloon, input_image: "$output_of_step_3"}

A bare top-level list of operations is accepted too. ${name} path
variables are resolved at load time; $output_of_step_N placeholders are
left for the executor, which knows the step outputs.

Each operation has one parameter record below. Records are validated
right before dispatch, after placeholders are resolved.
"""

from pathlib import Path
from typing import Any

import pydantic
import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PositiveInt, field_validator

from .common import resolve_path_vars
from .errors import ValidationError
from .model import describe_errors


Length = float | str


class Operation(BaseModel):
    step: int
    operation: str
    parameters: dict[str, Any] = Field(default_factory=dict)


# ── Parameter records ─────────────────────────────────────────────


class _Params(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CreateCanvasParams(_Params):
    width: PositiveInt
    height: PositiveInt
    background_color: str | None = None


class AddImageLayerParams(_Params):
    layer_name: str = Field(min_length=1)
    input_image: str = Field(min_length=1)
    x: float = 0
    y: float = 0
    width: Length | None = None
    height: Length | None = None
    opacity: float = 1


class AddTextLayerParams(_Params):
    layer_name: str = Field(min_length=1)
    text: str = Field(min_length=1, validation_alias=AliasChoices("text", "text_content"))
    x: float | None = None
    y: float | None = None
    anchor: str | None = None
    offset_x: float = 0
    offset_y: float = 0
    font: str = Field("Arial", validation_alias=AliasChoices("font", "font_name"))
    size: Length = Field(16, validation_alias=AliasChoices("size", "font_size"))
    color: str = "#000000"
    opacity: float = 1
    alignment: str = Field("left", validation_alias=AliasChoices("alignment", "text_align"))
    bold: bool = False
    italic: bool = False
    shadow_enabled: bool = False
    shadow_color: str = "#000000"
    shadow_offset_x: float = 0
    shadow_offset_y: float = 0
    shadow_blur: float = 0
    shadow_opacity: float = Field(1, ge=0, le=1)


class EditTextLayerParams(_Params):
    layer_name: str = Field(min_length=1)
    text_content: str | None = Field(None, validation_alias=AliasChoices("text_content", "text"))
    font_name: str | None = Field(None, validation_alias=AliasChoices("font_name", "font"))
    font_size: Length | None = Field(None, validation_alias=AliasChoices("font_size", "size"))
    color: str | None = None
    opacity: float | None = None
    text_align: str | None = Field(None, validation_alias=AliasChoices("text_align", "alignment"))


class SetLayerVisibilityParams(_Params):
    layer_name: str = Field(min_length=1)
    visible: bool


class DeleteLayerParams(_Params):
    layer_name: str = Field(min_length=1)


class GenerateImageParams(_Params):
    prompt: str = Field(min_length=1)
    aspect_ratio: str | None = None
    output_format: str | None = None


class EditImageParams(_Params):
    prompt: str = Field(min_length=1)
    input_images: list[str] = Field(min_length=1)
    aspect_ratio: str | None = None
    output_format: str | None = None

    @field_validator("input_images", mode="before")
    @classmethod
    def _wrap_single_image(cls, value: Any) -> Any:
        return [value] if isinstance(value, str) else value


class UnsupportedParams(_Params):
    """Image manipulations that have no handler yet; anything goes."""


class SetLayerAnchorParams(_Params):
    layer_name: str = Field(min_length=1)
    anchor: str = Field(min_length=1)
    relative_to: str | None = None
    offset_x: float = 0
    offset_y: float = 0


class CreateFlexContainerParams(_Params):
    container_name: str = Field(min_length=1)
    direction: str = "row"
    justify: str = "flex-start"
    align: str = "flex-start"
    gap: Length = "0px"
    x: float = 0
    y: float = 0
    width: Length | None = None
    height: Length | None = None


class AddLayerToContainerParams(_Params):
    layer_name: str = Field(min_length=1)
    container_name: str = Field(min_length=1)


class SetFlexLayoutParams(_Params):
    container_name: str = Field(min_length=1)
    direction: str | None = None
    justify: str | None = None
    align: str | None = None
    gap: Length | None = None


OPERATION_PARAMS: dict[str, type[_Params]] = {
    "create_canvas": CreateCanvasParams,
    "add_image_layer": AddImageLayerParams,
    "add_text_layer": AddTextLayerParams,
    "edit_text_layer": EditTextLayerParams,
    "set_layer_visibility": SetLayerVisibilityParams,
    "delete_layer": DeleteLayerParams,
    "generate_image": GenerateImageParams,
    "edit_image": EditImageParams,
    "resize_image": UnsupportedParams,
    "crop_image": UnsupportedParams,
    "remove_background": UnsupportedParams,
    "upscale": UnsupportedParams,
    "segment": UnsupportedParams,
    "set_layer_anchor": SetLayerAnchorParams,
    "create_flex_container": CreateFlexContainerParams,
    "add_layer_to_container": AddLayerToContainerParams,
    "set_flex_layout": SetFlexLayoutParams,
}


def parse_params(operation: str, parameters: dict[str, Any]) -> _Params:
    """Validate raw parameters into the operation's record.

    Raises:
        ValidationError: Unknown operation, or missing / ill-typed fields.
    """
    params_cls = OPERATION_PARAMS.get(operation)
    if params_cls is None:
        raise ValidationError(f"Unknown operation: {operation}")
    try:
        return params_cls.model_validate(parameters)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"{operation}: invalid parameters: {describe_errors(exc)}"
        ) from exc


# ── Manifest loading ──────────────────────────────────────────────


def parse_operations(raw_operations: Any) -> list[Operation]:
    """Validate a raw list of operation dicts.

    Step numbers must be integers and unique. Operation names are not
    checked here: an unknown name fails at its own step during execution.
    """
    if not isinstance(raw_operations, list):
        raise ValidationError("'operations' must be a list")

    operations = []
    steps_seen = {}
    for i, raw in enumerate(raw_operations):
        prefix = f"Operation {i}"
        if not isinstance(raw, dict):
            raise ValidationError(f"{prefix}: must be a mapping")
        if "step" not in raw:
            raise ValidationError(f"{prefix}: missing required field 'step'")
        if "operation" not in raw:
            raise ValidationError(f"{prefix}: missing required field 'operation'")

        step = raw["step"]
        if not isinstance(step, int) or isinstance(step, bool):
            raise ValidationError(f"{prefix}: step must be an integer, got {step!r}")
        if step in steps_seen:
            raise ValidationError(
                f"{prefix}: duplicate step {step} "
                f"(also used by operation {steps_seen[step]})"
            )
        steps_seen[step] = i

        name = raw["operation"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"{prefix}: 'operation' must be a non-empty string")

        parameters = raw.get("parameters") or {}
        if not isinstance(parameters, dict):
            raise ValidationError(f"{prefix} ({name}): 'parameters' must be a mapping")

        operations.append(Operation(step=step, operation=name, parameters=parameters))
    return operations


def _resolve_paths(obj, paths: dict):
    """Recursively resolve ${var} in all string values."""
    if isinstance(obj, str):
        return resolve_path_vars(obj, paths)
    elif isinstance(obj, dict):
        return {k: _resolve_paths(v, paths) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_resolve_paths(item, paths) for item in obj]
    return obj


def load_operations(manifest_path: str | Path) -> dict:
    """Load and normalize an operation manifest (YAML or JSON).

    Processing pipeline:
      1. Parse YAML.
      2. Read the optional scene block (id, name).
      3. Resolve ${path} variables in every operation's parameters.
      4. Validate operation entries (step, operation, parameters).

    Args:
        manifest_path: Path to the manifest file.

    Returns:
        {"scene": {"id": str | None, "name": str | None},
         "operations": list[Operation]}

    Raises:
        ValidationError: Malformed manifest.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if isinstance(raw, list):
        raw = {"operations": raw}
    if not isinstance(raw, dict):
        raise ValidationError("Operation manifest must be a mapping or a list")
    if "operations" not in raw:
        raise ValidationError("Operation manifest: missing required 'operations' list")

    scene = raw.get("scene") or {}
    if not isinstance(scene, dict):
        raise ValidationError("Operation manifest: 'scene' must be a mapping")

    paths = raw.get("paths") or {}
    operations = _resolve_paths(raw["operations"], paths)

    return {
        "scene": {"id": scene.get("id"), "name": scene.get("name")},
        "operations": parse_operations(operations),
    }
