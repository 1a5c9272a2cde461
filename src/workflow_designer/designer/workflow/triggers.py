"""Trigger configuration for a workflow definition.

Like the graph editor, these are pure functions over a definition.
"""

from __future__ import annotations

import logging

from .models import WorkflowDefinition, WorkflowTrigger
from .registry import (
    TriggerKind,
    default_trigger_config,
    parse_trigger_config,
    update_config_field,
)

logger = logging.getLogger(__name__)


class UnknownTriggerError(ValueError):
    pass


class LastTriggerError(ValueError):
    """Raised when removing the only trigger of a definition."""


def new_trigger_id(existing: list[str]) -> str:
    """Lowest free ``triggerN`` id (N starts at 1)."""

    taken = set(existing)
    n = 1
    while f"trigger{n}" in taken:
        n += 1
    return f"trigger{n}"


def _require_trigger(definition: WorkflowDefinition, trigger_id: str) -> WorkflowTrigger:
    trigger = definition.trigger(trigger_id)
    if trigger is None:
        raise UnknownTriggerError(f"Unknown trigger: {trigger_id}")
    return trigger


def _replace(definition: WorkflowDefinition, trigger: WorkflowTrigger) -> WorkflowDefinition:
    triggers = [trigger if t.id == trigger.id else t for t in definition.triggers]
    return definition.model_copy(update={"triggers": triggers})


def add_trigger(
    definition: WorkflowDefinition, kind: TriggerKind = TriggerKind.MANUAL
) -> tuple[WorkflowDefinition, WorkflowTrigger]:
    kind = TriggerKind(kind)
    trigger = WorkflowTrigger(
        id=new_trigger_id([t.id for t in definition.triggers]),
        type=kind,
        config=default_trigger_config(kind),
    )
    logger.debug("Trigger added", extra={"workflow_id": definition.id, "trigger_id": trigger.id})
    return definition.model_copy(update={"triggers": [*definition.triggers, trigger]}), trigger


def remove_trigger(
    definition: WorkflowDefinition, trigger_id: str, *, enforce_minimum: bool = True
) -> WorkflowDefinition:
    _require_trigger(definition, trigger_id)
    if enforce_minimum and len(definition.triggers) <= 1:
        raise LastTriggerError("A workflow needs at least one trigger")
    triggers = [t for t in definition.triggers if t.id != trigger_id]
    return definition.model_copy(update={"triggers": triggers})


def update_trigger(
    definition: WorkflowDefinition, trigger_id: str, field: str, value: object
) -> WorkflowDefinition:
    """Change the kind (``type``) or the whole ``config`` of a trigger.

    Changing the kind resets the configuration to the new kind's defaults, since
    payload shapes are not compatible across kinds.
    """

    trigger = _require_trigger(definition, trigger_id)
    if field == "type":
        kind = TriggerKind(value)
        if kind == trigger.type:
            return definition
        updated = trigger.model_copy(update={"type": kind, "config": default_trigger_config(kind)})
    elif field == "config":
        updated = trigger.model_copy(update={"config": parse_trigger_config(trigger.type, value)})
    elif field == "id":
        raise ValueError("Trigger ids cannot be changed")
    else:
        raise ValueError(f"Unknown trigger field: {field!r}")
    return _replace(definition, updated)


def update_trigger_config(
    definition: WorkflowDefinition, trigger_id: str, field: str, value: object
) -> WorkflowDefinition:
    trigger = _require_trigger(definition, trigger_id)
    config = update_config_field(trigger.config, field, value)
    return _replace(definition, trigger.model_copy(update={"config": config}))
