"""Unit tests for the workflow status lifecycle.

Illegal transitions fail loudly; archived is terminal.
"""

from __future__ import annotations

import pytest

from workflow_designer.designer.workflow.lifecycle import (
    IllegalStatusTransitionError,
    available_transitions,
    transition,
)
from workflow_designer.designer.workflow.models import WorkflowStatus

DRAFT = WorkflowStatus.DRAFT
ACTIVE = WorkflowStatus.ACTIVE
PAUSED = WorkflowStatus.PAUSED
ARCHIVED = WorkflowStatus.ARCHIVED


@pytest.mark.parametrize(
    ("current", "to"),
    [
        (DRAFT, ACTIVE),
        (ACTIVE, PAUSED),
        (PAUSED, ACTIVE),
        (DRAFT, ARCHIVED),
        (ACTIVE, ARCHIVED),
        (PAUSED, ARCHIVED),
    ],
)
def test_allowed_transitions(current: WorkflowStatus, to: WorkflowStatus) -> None:
    assert transition(current=current, to=to) == to


@pytest.mark.parametrize(
    ("current", "to"),
    [
        (DRAFT, PAUSED),
        (ACTIVE, DRAFT),
        (ARCHIVED, ACTIVE),
        (ARCHIVED, DRAFT),
        (ACTIVE, ACTIVE),
    ],
)
def test_transition_rejects_illegal_transitions(
    current: WorkflowStatus, to: WorkflowStatus
) -> None:
    with pytest.raises(IllegalStatusTransitionError):
        transition(current=current, to=to)


def test_available_transitions() -> None:
    assert available_transitions(DRAFT) == [ACTIVE, ARCHIVED]
    assert available_transitions(ACTIVE) == [PAUSED, ARCHIVED]
    assert available_transitions(PAUSED) == [ACTIVE, ARCHIVED]
    assert available_transitions(ARCHIVED) == []


def test_transition_accepts_status_values() -> None:
    assert transition(current="paused", to="active") == ACTIVE  # type: ignore[arg-type]
