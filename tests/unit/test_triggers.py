"""Unit tests for trigger configuration."""

from __future__ import annotations

import pytest

from workflow_designer.designer.workflow import triggers
from workflow_designer.designer.workflow.models import WorkflowDefinition
from workflow_designer.designer.workflow.registry import (
    EventTriggerConfig,
    ManualTriggerConfig,
    ScheduledTriggerConfig,
    ScheduleFrequency,
    TriggerKind,
)
from workflow_designer.designer.workflow.triggers import LastTriggerError, UnknownTriggerError


def test_new_trigger_id_takes_lowest_free_number() -> None:
    assert triggers.new_trigger_id([]) == "trigger1"
    assert triggers.new_trigger_id(["trigger1", "trigger3"]) == "trigger2"


def test_add_trigger_defaults_to_manual() -> None:
    definition, trigger = triggers.add_trigger(WorkflowDefinition())

    assert trigger.id == "trigger1"
    assert trigger.type == TriggerKind.MANUAL
    assert trigger.config == ManualTriggerConfig(roles=["admin"])
    assert definition.triggers == [trigger]


def test_remove_last_trigger_is_refused() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition())

    with pytest.raises(LastTriggerError):
        triggers.remove_trigger(definition, "trigger1")


def test_remove_last_trigger_allowed_when_minimum_not_enforced() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition())

    after = triggers.remove_trigger(definition, "trigger1", enforce_minimum=False)

    assert after.triggers == []


def test_remove_trigger() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition())
    definition, second = triggers.add_trigger(definition, TriggerKind.EVENT)

    after = triggers.remove_trigger(definition, "trigger1")

    assert after.triggers == [second]
    with pytest.raises(UnknownTriggerError):
        triggers.remove_trigger(after, "trigger1")


def test_changing_trigger_type_resets_config() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition())
    definition = triggers.update_trigger_config(definition, "trigger1", "roles", ["hr"])

    after = triggers.update_trigger(definition, "trigger1", "type", "scheduled")

    assert after.trigger("trigger1").type == TriggerKind.SCHEDULED
    assert after.trigger("trigger1").config == ScheduledTriggerConfig()
    assert triggers.update_trigger(after, "trigger1", "type", "scheduled") is after


def test_update_trigger_whole_config() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition(), TriggerKind.EVENT)

    after = triggers.update_trigger(
        definition, "trigger1", "config", {"event": "employee.created", "conditions": []}
    )

    assert after.trigger("trigger1").config == EventTriggerConfig(event="employee.created")


def test_update_trigger_rejects_id_and_unknown_fields() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition())

    with pytest.raises(ValueError):
        triggers.update_trigger(definition, "trigger1", "id", "trigger9")
    with pytest.raises(ValueError):
        triggers.update_trigger(definition, "trigger1", "colour", "red")
    with pytest.raises(UnknownTriggerError):
        triggers.update_trigger(definition, "trigger7", "type", "api")


def test_update_trigger_config_field() -> None:
    definition, _ = triggers.add_trigger(WorkflowDefinition(), TriggerKind.SCHEDULED)

    after = triggers.update_trigger_config(definition, "trigger1", "frequency", "weekly")

    assert after.trigger("trigger1").config.frequency == ScheduleFrequency.WEEKLY
    with pytest.raises(ValueError):
        triggers.update_trigger_config(after, "trigger1", "frequency", "hourly")
