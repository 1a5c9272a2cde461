"""Unit tests for step graph editing."""

from __future__ import annotations

import re

import pytest

from workflow_designer.designer.workflow import graph
from workflow_designer.designer.workflow.graph import (
    DanglingEdgeError,
    DuplicateStepIdError,
    NotEditingError,
    SelfLoopError,
    StepEditorState,
    StepTypeChangeError,
    UnknownStepError,
)
from workflow_designer.designer.workflow.models import (
    Position,
    WorkflowDefinition,
    WorkflowStep,
)
from workflow_designer.designer.workflow.registry import (
    ApprovalConfig,
    StepKind,
    TaskConfig,
)


def _chain(*ids: str) -> WorkflowDefinition:
    steps = [
        WorkflowStep(
            id=step_id,
            name=step_id.upper(),
            type=StepKind.TASK,
            config=None,
            next_steps=[ids[i + 1]] if i + 1 < len(ids) else [],
        )
        for i, step_id in enumerate(ids)
    ]
    return WorkflowDefinition(steps=steps)


def test_add_step_uses_kind_defaults() -> None:
    definition, step = graph.add_step(WorkflowDefinition(), StepKind.APPROVAL)

    assert re.fullmatch(r"step-[0-9a-f]{8}", step.id)
    assert step.name == "Nouvelle Approbation"
    assert step.config == ApprovalConfig()
    assert step.position == Position(x=100, y=100)
    assert definition.steps == [step]


def test_step_ids_are_unique() -> None:
    definition = WorkflowDefinition()
    for kind in list(StepKind) * 3:
        definition, _ = graph.add_step(definition, kind)

    assert len(set(definition.step_ids)) == len(definition.steps) == 3 * len(StepKind)


def test_connect_is_idempotent() -> None:
    definition = _chain("a", "b")
    once = graph.connect_steps(definition, "b", "a")
    twice = graph.connect_steps(once, "b", "a")

    assert twice.step("b").next_steps == ["a"]
    assert graph.connect_steps(definition, "a", "b") is definition


def test_connect_rejects_self_loop() -> None:
    with pytest.raises(SelfLoopError):
        graph.connect_steps(_chain("a", "b"), "a", "a")


def test_connect_rejects_unknown_steps() -> None:
    with pytest.raises(UnknownStepError):
        graph.connect_steps(_chain("a"), "a", "zz")
    with pytest.raises(UnknownStepError):
        graph.connect_steps(_chain("a"), "zz", "a")


def test_delete_step_removes_every_edge_to_it() -> None:
    definition = graph.connect_steps(_chain("a", "b", "c"), "a", "c")
    definition = graph.connect_steps(definition, "c", "b")

    after = graph.delete_step(definition, "b")

    assert after.step_ids == ["a", "c"]
    assert all("b" not in s.next_steps for s in after.steps)
    assert after.step("a").next_steps == ["c"]
    graph.check_graph(after)


def test_delete_unknown_step_fails() -> None:
    with pytest.raises(UnknownStepError):
        graph.delete_step(_chain("a"), "b")


def test_update_step_cannot_change_kind() -> None:
    definition = _chain("a")
    changed = WorkflowStep(id="a", name="A", type=StepKind.APPROVAL, config=None)

    with pytest.raises(StepTypeChangeError):
        graph.update_step(definition, changed)


def test_update_step_rejects_another_kinds_config() -> None:
    definition, step = graph.add_step(WorkflowDefinition(), StepKind.APPROVAL)
    wrong = step.model_copy(update={"config": TaskConfig(assignee="IT")})

    with pytest.raises(ValueError, match="TaskConfig"):
        graph.update_step(definition, wrong)
    assert definition.step(step.id).config == ApprovalConfig()


def test_update_step_replaces_by_id() -> None:
    definition = _chain("a", "b")
    renamed = definition.step("a").model_copy(update={"name": "Vérifier"})

    after = graph.update_step(definition, renamed)

    assert after.step("a").name == "Vérifier"
    assert after.step("a").next_steps == ["b"]


def test_update_step_rejects_dangling_edges() -> None:
    definition = _chain("a", "b")
    broken = definition.step("a").model_copy(update={"next_steps": ["ghost"]})

    with pytest.raises(DanglingEdgeError):
        graph.update_step(definition, broken)


def test_check_graph_detects_duplicate_ids() -> None:
    step = WorkflowStep(id="a", name="A", type=StepKind.TASK, config=None)
    with pytest.raises(DuplicateStepIdError):
        graph.check_graph(WorkflowDefinition(steps=[step, step]))


def test_reposition_only_moves_the_step() -> None:
    definition = _chain("a", "b")
    after = graph.reposition_step(definition, "b", Position(x=420, y=-10))

    assert after.step("b").position == Position(x=420, y=-10)
    assert after.step("a").position == definition.step("a").position
    assert after.step("b").next_steps == definition.step("b").next_steps


def test_edges_follow_next_steps() -> None:
    definition = graph.connect_steps(_chain("a", "b", "c"), "a", "c")
    assert graph.edges(definition) == [("a", "b"), ("a", "c"), ("b", "c")]


def test_edge_segments_use_card_offsets() -> None:
    definition = graph.reposition_step(_chain("a", "b"), "b", Position(x=300, y=100))

    [segment] = graph.edge_segments(definition)

    assert (segment.source, segment.target) == ("a", "b")
    assert segment.start == Position(x=228, y=140)
    assert segment.end == Position(x=300, y=140)
    assert segment.to_json()["end"] == {"x": 300.0, "y": 140.0}


def test_find_cycle() -> None:
    assert graph.find_cycle(_chain("a", "b", "c")) is None

    looped = graph.connect_steps(_chain("a", "b", "c"), "c", "a")
    assert graph.find_cycle(looped) == ["a", "b", "c", "a"]


def test_editing_a_step_and_saving() -> None:
    definition = _chain("a", "b")
    editor = graph.begin_edit(StepEditorState(), definition, "a")
    editor = graph.stage_step_edit(editor, name="Créer les accès", config={"assignee": "IT"})

    # Nothing is stored until save.
    assert definition.step("a").name == "A"

    saved, editor = graph.save_edit(editor, definition)

    assert editor.editing is None
    assert editor.selected_step_id == "a"
    assert saved.step("a").name == "Créer les accès"
    assert saved.step("a").config == TaskConfig(assignee="IT")


def test_save_edit_keeps_canvas_changes_made_while_editing() -> None:
    definition = _chain("a", "b")
    editor = graph.begin_edit(StepEditorState(), definition, "b")
    definition = graph.reposition_step(definition, "b", Position(x=10, y=20))
    definition = graph.connect_steps(definition, "b", "a")

    editor = graph.stage_step_edit(editor, name="B2")
    saved, _ = graph.save_edit(editor, definition)

    assert saved.step("b").name == "B2"
    assert saved.step("b").position == Position(x=10, y=20)
    assert saved.step("b").next_steps == ["a"]


def test_cancel_edit_discards_staged_changes() -> None:
    definition = _chain("a")
    editor = graph.begin_edit(StepEditorState(), definition, "a")
    editor = graph.stage_step_edit(editor, config={"assignee": "Compta"})

    editor = graph.cancel_edit(editor)

    assert editor.editing is None
    assert editor.selected_step_id == "a"
    assert definition.step("a").config == TaskConfig()
    with pytest.raises(NotEditingError):
        graph.save_edit(editor, definition)


def test_forget_step_clears_selection() -> None:
    definition = _chain("a", "b")
    editor = graph.begin_edit(StepEditorState(), definition, "a")

    assert graph.forget_step(editor, "b") == editor
    assert graph.forget_step(editor, "a") == StepEditorState()
