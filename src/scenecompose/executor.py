"""Operation executor — run an operation list against a fresh scene.

Steps run strictly in order, one at a time: later steps may consume the
outputs of earlier ones through ``$output_of_step_N`` placeholders. Each
step goes through the same stages:

  1. resolve placeholders in its raw parameters
  2. validate them into the operation's parameter record
  3. dispatch to the registered handler

A failing step produces a StepFailure and the run stops right there;
nothing after it executes and nothing is persisted. There is no rollback,
so a failed context is meant to be discarded. After the last step the
scene is validated as a whole, optionally persisted, and rendered into a
best-effort preview.

Progress is reported as JSON-ready dicts on a channel (anything with a
``send(message)`` method), each with a ``type`` of "progress",
"complete" or "failed".
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Protocol

from .context import (
    ExecutionContext,
    StepFailure,
    StepResult,
    resolve_placeholders,
)
from .errors import SceneError
from .handlers import HANDLERS
from .operations import Operation, parse_params
from .renderer import RenderResult, render_scene
from .store import SavedScene, save_scene
from .validate import validate_scene


logger = logging.getLogger(__name__)

# (scene, scene_id, scene_name) -> SavedScene
SceneStore = Callable[..., SavedScene]


# ── Progress channels ─────────────────────────────────────────────


class ProgressChannel(Protocol):
    def send(self, message: dict[str, Any]) -> None: ...


class NullChannel:
    def send(self, message: dict[str, Any]) -> None:
        pass


class ListChannel:
    """Collects every message; handy for tests and embedding callers."""

    def __init__(self):
        self.messages: list[dict[str, Any]] = []

    def send(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.messages if m["type"] == message_type]


class PrintChannel:
    """Human-readable progress lines on stdout, for the CLI."""

    def send(self, message: dict[str, Any]) -> None:
        kind = message["type"]
        if kind == "progress":
            print(
                f"  STEP   [{message['current_step']}/{message['total_steps']}] "
                f"{message['operation']}"
            )
        elif kind == "complete":
            print(f"  DONE   {message['scene_id']} -> {message['scene_path']}")
        elif kind == "failed":
            print(
                f"  FAILED step {message['step']} ({message['operation']}): "
                f"{message['error']}"
            )


# ── Report ────────────────────────────────────────────────────────


@dataclass
class ExecutionReport:
    """Outcome of one run. ``failure`` is None when the run succeeded."""
    context: ExecutionContext
    failure: StepFailure | None = None
    failed_step: int | None = None
    failed_operation: str | None = None
    saved: SavedScene | None = None
    preview: RenderResult | None = None
    steps_run: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def scene(self):
        return self.context.scene


# ── Execution ─────────────────────────────────────────────────────


def run_step(context: ExecutionContext, operation: Operation) -> StepResult:
    """Execute one operation against the context.

    Only SceneError is converted to a StepFailure; anything else is a bug
    and propagates.
    """
    try:
        parameters = resolve_placeholders(operation.parameters, context.operation_outputs)
        params = parse_params(operation.operation, parameters)
        handler = HANDLERS[operation.operation]
        return handler(context, params)
    except SceneError as exc:
        return StepFailure(exc)


def _failed_message(step: int, operation: str, failure: StepFailure) -> dict[str, Any]:
    return {
        "type": "failed",
        "step": step,
        "operation": operation,
        "error": failure.message,
    }


def _render_preview(scene) -> RenderResult | None:
    try:
        return render_scene(scene)
    except Exception:
        logger.exception("Preview rendering failed")
        return None


def execute_operations(
    operations: list[Operation],
    scene_id: str,
    scene_name: str | None = None,
    channel: ProgressChannel | None = None,
    store: SceneStore | None = None,
    **capabilities,
) -> ExecutionReport:
    """Build a scene by running *operations* in order.

    Args:
        operations: Parsed operation list (see operations.load_operations).
        scene_id: Id of the scene being built.
        scene_name: Display name; defaults to scene_id.
        channel: Receives progress / complete / failed messages.
        store: Persists the finished scene, called as
            ``store(scene, scene_id, scene_name)``. Skipped when None.
        **capabilities: ``resolve_font`` / ``image_generator`` overrides
            for the context.

    Returns:
        ExecutionReport. On failure, ``failed_step`` is the failing step
        number, or 0 when final validation or persistence failed.
    """
    channel = channel or NullChannel()
    context = ExecutionContext.create(scene_id, scene_name, **capabilities)
    context.total_steps = len(operations)
    report = ExecutionReport(context=context)

    for index, operation in enumerate(operations, start=1):
        context.current_step = index
        logger.debug("Step %d/%d: %s", index, context.total_steps, operation.operation)
        channel.send({
            "type": "progress",
            "current_step": index,
            "total_steps": context.total_steps,
            "operation": operation.operation,
            "message": f"Executing {operation.operation}",
        })

        result = run_step(context, operation)
        report.steps_run.append(operation.step)

        if isinstance(result, StepFailure):
            logger.error(
                "Step %d (%s) failed: %s: %s",
                operation.step, operation.operation, result.kind, result.message,
            )
            return _fail(report, channel, operation.step, operation.operation, result)

        if result.output is not None:
            context.operation_outputs[operation.step] = result.output

    try:
        validate_scene(context.scene)
    except SceneError as exc:
        logger.error("Scene validation failed: %s", exc)
        return _fail(report, channel, 0, "validate_scene", StepFailure(exc))

    if store is not None:
        try:
            report.saved = store(context.scene, scene_id, context.scene_name)
        except SceneError as exc:
            logger.error("Saving scene failed: %s", exc)
            return _fail(report, channel, 0, "save_scene", StepFailure(exc))

    report.preview = _render_preview(context.scene)

    channel.send({
        "type": "complete",
        "scene_id": scene_id,
        "scene_path": str(report.saved.scene_dir) if report.saved else None,
        "files": [str(p) for p in report.saved.files] if report.saved else [],
        "preview": (
            {"html": report.preview.html, "css": report.preview.css}
            if report.preview else None
        ),
    })
    return report


def _fail(
    report: ExecutionReport,
    channel: ProgressChannel,
    step: int,
    operation: str,
    failure: StepFailure,
) -> ExecutionReport:
    report.failure = failure
    report.failed_step = step
    report.failed_operation = operation
    channel.send(_failed_message(step, operation, failure))
    return report


def directory_store(root: str | Path) -> SceneStore:
    """Store that saves scenes under *root* with save_scene."""
    def store(scene, scene_id, scene_name):
        return save_scene(root, scene, scene_id, scene_name)
    return store
