"""Unit tests for the workflow definition model."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from workflow_designer.designer.workflow.models import (
    Category,
    Position,
    WorkflowDefinition,
    WorkflowStatus,
    WorkflowStep,
    WorkflowTrigger,
    new_definition_id,
)
from workflow_designer.designer.workflow.registry import (
    ApprovalConfig,
    DelayConfig,
    EventTriggerConfig,
    TaskConfig,
)


def test_step_config_is_selected_by_type() -> None:
    step = WorkflowStep.model_validate(
        {"id": "s1", "name": "Valider", "type": "approval", "config": {"approvers": ["DG"]}}
    )

    assert isinstance(step.config, ApprovalConfig)
    assert step.config.approvers == ["DG"]
    assert step.position == Position(x=100, y=100)
    assert step.next_steps == []


def test_missing_step_config_defaults_for_kind() -> None:
    step = WorkflowStep.model_validate({"id": "s1", "name": "Attendre", "type": "delay"})
    assert step.config == DelayConfig()


def test_step_rejects_payload_of_another_kind() -> None:
    with pytest.raises(ValidationError):
        WorkflowStep(id="s1", name="x", type="task", config=ApprovalConfig())


def test_step_requires_an_id() -> None:
    with pytest.raises(ValidationError):
        WorkflowStep(id="", name="x", type="task", config=TaskConfig())


def test_next_steps_are_deduplicated_in_order() -> None:
    step = WorkflowStep(id="a", name="x", type="task", config=None, next_steps=["c", "b", "c"])
    assert step.next_steps == ["c", "b"]


def test_trigger_config_is_selected_by_type() -> None:
    trigger = WorkflowTrigger.model_validate(
        {"id": "trigger1", "type": "event", "config": {"event": "lead.created"}}
    )
    assert trigger.config == EventTriggerConfig(event="lead.created")


def test_definition_defaults() -> None:
    definition = WorkflowDefinition()

    assert definition.status == WorkflowStatus.DRAFT
    assert definition.steps == []
    assert definition.triggers == []
    assert definition.execution_count == 0
    assert definition.is_template is False


def test_definition_wire_format_is_camel_case(two_step_definition: WorkflowDefinition) -> None:
    definition = two_step_definition.model_copy(update={"created_date": date(2024, 1, 1)})
    payload = definition.to_json()

    assert payload["createdDate"] == "2024-01-01"
    assert payload["executionCount"] == 0
    assert payload["steps"][0]["nextSteps"] == ["b"]
    assert payload["steps"][0]["config"]["dueDate"] == "3 jours"
    assert WorkflowDefinition.model_validate(payload) == definition


def test_blank_category_is_none() -> None:
    assert WorkflowDefinition(category="").category is None
    assert WorkflowDefinition(category="hr").category == Category.HR


def test_success_rate_is_a_percentage() -> None:
    with pytest.raises(ValidationError):
        WorkflowDefinition(success_rate=120)


def test_definitions_are_frozen(two_step_definition: WorkflowDefinition) -> None:
    with pytest.raises(ValidationError):
        two_step_definition.name = "Autre"  # type: ignore[misc]


def test_new_definition_ids_are_strictly_increasing() -> None:
    ids = [new_definition_id() for _ in range(100)]
    assert ids == sorted(set(ids))


def test_lookup_helpers(two_step_definition: WorkflowDefinition) -> None:
    assert two_step_definition.step_ids == ["a", "b"]
    assert two_step_definition.step("b") is not None
    assert two_step_definition.step("z") is None
    assert two_step_definition.trigger("trigger1") is not None


def test_with_zeroed_telemetry() -> None:
    definition = WorkflowDefinition(
        execution_count=12, average_execution_time=3.5, success_rate=90
    ).with_zeroed_telemetry()

    assert (definition.execution_count, definition.average_execution_time) == (0, 0.0)
    assert definition.success_rate == 0.0
