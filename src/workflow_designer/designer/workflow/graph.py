"""Step graph editing.

The graph is the definition's ``steps`` indexed by id, with directed edges held
in each step's ``next_steps``. Every operation is a pure function returning a
new :class:`WorkflowDefinition`; :func:`check_graph` runs on the result so an
operation can never leave a dangling edge, a self-loop or a duplicate id behind.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from .models import (
    DEFAULT_STEP_POSITION,
    Position,
    WireModel,
    WorkflowDefinition,
    WorkflowStep,
)
from .registry import (
    STEP_KINDS,
    StepConfig,
    StepKind,
    default_step_config,
    update_config_field,
)

logger = logging.getLogger(__name__)

# Edge anchors relative to a step card's position: out of the card centre,
# into the left edge of the target card.
EDGE_START_OFFSET = (128.0, 40.0)
EDGE_END_OFFSET = (0.0, 40.0)


class GraphIntegrityError(ValueError):
    pass


class UnknownStepError(GraphIntegrityError):
    pass


class SelfLoopError(GraphIntegrityError):
    pass


class StepTypeChangeError(GraphIntegrityError):
    pass


class DanglingEdgeError(GraphIntegrityError):
    pass


class DuplicateStepIdError(GraphIntegrityError):
    pass


class NotEditingError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class EdgeSegment:
    """A drawable edge between two step cards."""

    source: str
    target: str
    start: Position
    end: Position

    def to_json(self) -> dict[str, object]:
        return {
            "source": self.source,
            "target": self.target,
            "start": {"x": self.start.x, "y": self.start.y},
            "end": {"x": self.end.x, "y": self.end.y},
        }


def new_step_id(existing: Iterable[str]) -> str:
    taken = set(existing)
    while True:
        candidate = f"step-{uuid.uuid4().hex[:8]}"
        if candidate not in taken:
            return candidate


def check_graph(definition: WorkflowDefinition) -> None:
    """Raise if the step graph breaks referential integrity."""

    ids: set[str] = set()
    for step in definition.steps:
        if step.id in ids:
            raise DuplicateStepIdError(f"Duplicate step id: {step.id}")
        ids.add(step.id)

    for step in definition.steps:
        if len(set(step.next_steps)) != len(step.next_steps):
            raise GraphIntegrityError(f"Duplicate edge from step {step.id}")
        for target in step.next_steps:
            if target == step.id:
                raise SelfLoopError(f"Step {step.id} cannot be its own successor")
            if target not in ids:
                raise DanglingEdgeError(f"Step {step.id} points to unknown step {target}")


def _with_steps(definition: WorkflowDefinition, steps: list[WorkflowStep]) -> WorkflowDefinition:
    updated = definition.model_copy(update={"steps": steps})
    check_graph(updated)
    return updated


def _require_step(definition: WorkflowDefinition, step_id: str) -> WorkflowStep:
    step = definition.step(step_id)
    if step is None:
        raise UnknownStepError(f"Unknown step: {step_id}")
    return step


def add_step(
    definition: WorkflowDefinition,
    kind: StepKind,
    *,
    name: str | None = None,
    position: Position | None = None,
    config: StepConfig | None = None,
) -> tuple[WorkflowDefinition, WorkflowStep]:
    kind = StepKind(kind)
    if position is None:
        x, y = DEFAULT_STEP_POSITION
        position = Position(x=x, y=y)
    step = WorkflowStep(
        id=new_step_id(definition.step_ids),
        name=name or f"Nouvelle {STEP_KINDS[kind].label}",
        type=kind,
        config=config if config is not None else default_step_config(kind),
        position=position,
        next_steps=[],
    )
    updated = _with_steps(definition, [*definition.steps, step])
    logger.debug("Step added", extra={"workflow_id": definition.id, "step_id": step.id})
    return updated, step


def update_step(definition: WorkflowDefinition, step: WorkflowStep) -> WorkflowDefinition:
    """Replace the step with the same id. The step kind cannot change."""

    current = _require_step(definition, step.id)
    _check_same_kind(current, step)
    # Round-trip through validation: callers may have built ``step`` with model_copy.
    # The config instance is passed as-is so another kind's model is rejected.
    step = WorkflowStep.model_validate({**step.model_dump(), "config": step.config})
    steps = [step if s.id == step.id else s for s in definition.steps]
    return _with_steps(definition, steps)


def _check_same_kind(current: WorkflowStep, step: WorkflowStep) -> None:
    if step.type != current.type:
        raise StepTypeChangeError(
            f"Step {step.id} is a {current.type.value} step and cannot become {step.type.value}"
        )


def check_step_kinds(stored: WorkflowDefinition, incoming: WorkflowDefinition) -> None:
    """Raise if ``incoming`` changes the kind of a step ``stored`` already has."""

    for step in incoming.steps:
        current = stored.step(step.id)
        if current is not None:
            _check_same_kind(current, step)


def update_step_config(step: WorkflowStep, field: str, value: object) -> WorkflowStep:
    return step.model_copy(update={"config": update_config_field(step.config, field, value)})


def delete_step(definition: WorkflowDefinition, step_id: str) -> WorkflowDefinition:
    """Remove a step and every edge pointing at it."""

    _require_step(definition, step_id)
    steps = [
        s.model_copy(update={"next_steps": [t for t in s.next_steps if t != step_id]})
        for s in definition.steps
        if s.id != step_id
    ]
    logger.debug("Step deleted", extra={"workflow_id": definition.id, "step_id": step_id})
    return _with_steps(definition, steps)


def connect_steps(definition: WorkflowDefinition, from_id: str, to_id: str) -> WorkflowDefinition:
    """Add the edge ``from_id -> to_id``. Connecting twice is a no-op."""

    if from_id == to_id:
        raise SelfLoopError(f"Step {from_id} cannot be its own successor")
    source = _require_step(definition, from_id)
    _require_step(definition, to_id)
    if to_id in source.next_steps:
        return definition

    steps = [
        s.model_copy(update={"next_steps": [*s.next_steps, to_id]}) if s.id == from_id else s
        for s in definition.steps
    ]
    return _with_steps(definition, steps)


def reposition_step(
    definition: WorkflowDefinition, step_id: str, position: Position
) -> WorkflowDefinition:
    _require_step(definition, step_id)
    steps = [
        s.model_copy(update={"position": position}) if s.id == step_id else s
        for s in definition.steps
    ]
    return _with_steps(definition, steps)


def edges(definition: WorkflowDefinition) -> list[tuple[str, str]]:
    return [(step.id, target) for step in definition.steps for target in step.next_steps]


def edge_segments(definition: WorkflowDefinition) -> list[EdgeSegment]:
    by_id = {s.id: s for s in definition.steps}
    segments: list[EdgeSegment] = []
    for source_id, target_id in edges(definition):
        source = by_id[source_id]
        target = by_id.get(target_id)
        if target is None:
            continue
        segments.append(
            EdgeSegment(
                source=source_id,
                target=target_id,
                start=source.position.offset(*EDGE_START_OFFSET),
                end=target.position.offset(*EDGE_END_OFFSET),
            )
        )
    return segments


def find_cycle(definition: WorkflowDefinition) -> list[str] | None:
    """Return one directed cycle as ``[a, b, ..., a]``, or None for a DAG.

    Cycles are legal while authoring; this is informational.
    """

    adjacency = {s.id: s.next_steps for s in definition.steps}
    white, grey, black = 0, 1, 2
    colour = dict.fromkeys(adjacency, white)

    for root in adjacency:
        if colour[root] != white:
            continue
        path: list[str] = [root]
        stack: list[tuple[str, int]] = [(root, 0)]
        colour[root] = grey
        while stack:
            node, idx = stack[-1]
            successors = adjacency.get(node, [])
            if idx >= len(successors):
                stack.pop()
                path.pop()
                colour[node] = black
                continue
            stack[-1] = (node, idx + 1)
            nxt = successors[idx]
            if nxt not in colour:
                continue
            if colour[nxt] == grey:
                return [*path[path.index(nxt) :], nxt]
            if colour[nxt] == white:
                colour[nxt] = grey
                stack.append((nxt, 0))
                path.append(nxt)
    return None


class StepEditorState(WireModel):
    """Selection and the in-progress copy of the step being edited."""

    selected_step_id: str | None = None
    editing: WorkflowStep | None = None


def select_step(
    editor: StepEditorState, definition: WorkflowDefinition, step_id: str | None
) -> StepEditorState:
    if step_id is not None:
        _require_step(definition, step_id)
    return editor.model_copy(update={"selected_step_id": step_id})


def begin_edit(
    editor: StepEditorState, definition: WorkflowDefinition, step_id: str
) -> StepEditorState:
    step = _require_step(definition, step_id)
    return StepEditorState(selected_step_id=step_id, editing=step)


def stage_step_edit(
    editor: StepEditorState,
    *,
    name: str | None = None,
    config: dict[str, object] | None = None,
) -> StepEditorState:
    """Apply name and/or config field changes to the in-progress copy only."""

    if editor.editing is None:
        raise NotEditingError("No step is being edited")
    step = editor.editing
    if name is not None:
        step = step.model_copy(update={"name": name})
    for field, value in (config or {}).items():
        step = update_step_config(step, field, value)
    return editor.model_copy(update={"editing": step})


def save_edit(
    editor: StepEditorState, definition: WorkflowDefinition
) -> tuple[WorkflowDefinition, StepEditorState]:
    if editor.editing is None:
        raise NotEditingError("No step is being edited")
    stored = _require_step(definition, editor.editing.id)
    # Position and edges may have changed on the canvas while the form was open.
    merged = stored.model_copy(
        update={"name": editor.editing.name, "config": editor.editing.config}
    )
    updated = update_step(definition, merged)
    return updated, editor.model_copy(update={"editing": None})


def cancel_edit(editor: StepEditorState) -> StepEditorState:
    return editor.model_copy(update={"editing": None})


def forget_step(editor: StepEditorState, step_id: str) -> StepEditorState:
    """Drop selection/editing that refers to a deleted step."""

    selected = None if editor.selected_step_id == step_id else editor.selected_step_id
    editing = editor.editing
    if editing is not None and editing.id == step_id:
        editing = None
    return StepEditorState(selected_step_id=selected, editing=editing)
