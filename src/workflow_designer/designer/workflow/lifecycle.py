from __future__ import annotations

from .models import WorkflowStatus

ALLOWED_STATUS_TRANSITIONS: dict[WorkflowStatus, set[WorkflowStatus]] = {
    WorkflowStatus.DRAFT: {WorkflowStatus.ACTIVE, WorkflowStatus.ARCHIVED},
    WorkflowStatus.ACTIVE: {WorkflowStatus.PAUSED, WorkflowStatus.ARCHIVED},
    WorkflowStatus.PAUSED: {WorkflowStatus.ACTIVE, WorkflowStatus.ARCHIVED},
    # Terminal for authors; WorkflowStore.set_status(force=True) can still leave it.
    WorkflowStatus.ARCHIVED: set(),
}


class IllegalStatusTransitionError(ValueError):
    pass


def available_transitions(status: WorkflowStatus) -> list[WorkflowStatus]:
    """Statuses an author may move to from ``status``, in a stable order."""

    allowed = ALLOWED_STATUS_TRANSITIONS.get(WorkflowStatus(status), set())
    return [s for s in WorkflowStatus if s in allowed]


def transition(*, current: WorkflowStatus, to: WorkflowStatus) -> WorkflowStatus:
    current = WorkflowStatus(current)
    to = WorkflowStatus(to)
    if to not in ALLOWED_STATUS_TRANSITIONS.get(current, set()):
        raise IllegalStatusTransitionError(
            f"Illegal status transition: {current.value} -> {to.value}"
        )
    return to
