"""Workflow definition store.

In-memory and last-write-wins. When given a path, the collection is loaded from
and written back to a JSON file after every mutation so a restart keeps the
authored definitions (best-effort, single process).
"""

from __future__ import annotations

import json
import logging
import threading
from collections import Counter
from dataclasses import dataclass
from pathlib import Path

from .graph import check_step_kinds
from .lifecycle import transition
from .models import (
    Category,
    WorkflowDefinition,
    WorkflowStatus,
    new_definition_id,
    utc_today,
)

logger = logging.getLogger(__name__)

DUPLICATE_SUFFIX = " (copie)"


@dataclass(frozen=True, slots=True)
class WorkflowNotFound(Exception):
    workflow_id: int

    def __str__(self) -> str:
        return f"Workflow not found: {self.workflow_id}"


@dataclass(frozen=True, slots=True)
class WorkflowAlreadyExists(Exception):
    existing: WorkflowDefinition

    def __str__(self) -> str:
        return f"Workflow already exists: #{self.existing.id} {self.existing.name!r}"


@dataclass(frozen=True, slots=True)
class WorkflowStats:
    total: int
    active: int
    draft: int
    paused: int
    archived: int
    executions: int
    success_rate: int

    def to_json(self) -> dict[str, int]:
        return {
            "total": self.total,
            "active": self.active,
            "draft": self.draft,
            "paused": self.paused,
            "archived": self.archived,
            "executions": self.executions,
            "successRate": self.success_rate,
        }


def duplicate_definition(source: WorkflowDefinition) -> WorkflowDefinition:
    """A draft copy of ``source`` with a new id and zeroed telemetry."""

    today = utc_today()
    return (
        source.model_copy(deep=True)
        .with_zeroed_telemetry()
        .model_copy(
            update={
                "id": new_definition_id(),
                "name": f"{source.name}{DUPLICATE_SUFFIX}",
                "status": WorkflowStatus.DRAFT,
                "created_date": today,
                "last_modified": today,
                "is_template": False,
            }
        )
    )


class WorkflowStore:
    def __init__(self, path: Path | None = None, *, current_user: str = "") -> None:
        self._path = path
        self._current_user = current_user
        self._lock = threading.Lock()
        self._workflows: dict[int, WorkflowDefinition] = {}
        for definition in self._load():
            self._workflows[definition.id] = definition

    def _load(self) -> list[WorkflowDefinition]:
        if self._path is None or not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Workflow state file is not valid JSON; treating as empty",
                extra={"path": str(self._path)},
            )
            return []
        if not isinstance(raw, list):
            logger.warning(
                "Workflow state file has unexpected shape; treating as empty",
                extra={"path": str(self._path)},
            )
            return []
        return [WorkflowDefinition.model_validate(item) for item in raw]

    def _save_unlocked(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [w.to_json() for w in self._workflows.values()]
        self._path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def _require_unlocked(self, workflow_id: int) -> WorkflowDefinition:
        existing = self._workflows.get(workflow_id)
        if existing is None:
            raise WorkflowNotFound(workflow_id)
        return existing

    def list(
        self,
        *,
        search: str = "",
        category: Category | None = None,
        status: WorkflowStatus | None = None,
    ) -> list[WorkflowDefinition]:
        needle = search.strip().lower()
        with self._lock:
            items = list(self._workflows.values())
        return [
            w
            for w in items
            if (not needle or needle in w.name.lower() or needle in w.description.lower())
            and (category is None or w.category == category)
            and (status is None or w.status == status)
        ]

    def get(self, workflow_id: int) -> WorkflowDefinition:
        with self._lock:
            return self._require_unlocked(workflow_id)

    def _create_unlocked(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        existing = self._workflows.get(definition.id)
        if existing is not None:
            raise WorkflowAlreadyExists(existing)
        today = utc_today()
        created = definition.with_zeroed_telemetry().model_copy(
            update={
                "created_by": definition.created_by or self._current_user,
                "created_date": definition.created_date or today,
                "last_modified": today,
                "is_template": False,
            }
        )
        self._workflows[created.id] = created
        self._save_unlocked()
        return created

    def _update_unlocked(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        check_step_kinds(self._require_unlocked(definition.id), definition)
        updated = definition.model_copy(update={"last_modified": utc_today()})
        self._workflows[updated.id] = updated
        self._save_unlocked()
        return updated

    def create(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        with self._lock:
            created = self._create_unlocked(definition)
        logger.info(
            "Workflow created", extra={"workflow_id": created.id, "workflow_name": created.name}
        )
        return created

    def update(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """Replace a stored definition. Existing steps keep their kind."""

        with self._lock:
            updated = self._update_unlocked(definition)
        logger.info("Workflow updated", extra={"workflow_id": updated.id})
        return updated

    def save(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """Create or update; usable directly as the wizard's ``on_save`` callback."""

        with self._lock:
            if definition.id in self._workflows:
                saved = self._update_unlocked(definition)
                message = "Workflow updated"
            else:
                saved = self._create_unlocked(definition)
                message = "Workflow created"
        logger.info(message, extra={"workflow_id": saved.id, "workflow_name": saved.name})
        return saved

    def duplicate(self, workflow_id: int) -> WorkflowDefinition:
        with self._lock:
            copy = duplicate_definition(self._require_unlocked(workflow_id))
            self._workflows[copy.id] = copy
            self._save_unlocked()
        logger.info(
            "Workflow duplicated", extra={"workflow_id": copy.id, "source_id": workflow_id}
        )
        return copy

    def delete(self, workflow_id: int) -> None:
        with self._lock:
            self._require_unlocked(workflow_id)
            del self._workflows[workflow_id]
            self._save_unlocked()
        logger.info("Workflow deleted", extra={"workflow_id": workflow_id})

    def set_status(
        self, workflow_id: int, new_status: WorkflowStatus, *, force: bool = False
    ) -> WorkflowDefinition:
        """Move a workflow to ``new_status``.

        ``force`` skips the lifecycle table (e.g. to restore an archived workflow).
        """

        with self._lock:
            current = self._require_unlocked(workflow_id)
            new_status = WorkflowStatus(new_status)
            if not force:
                transition(current=current.status, to=new_status)
            updated = current.model_copy(
                update={"status": new_status, "last_modified": utc_today()}
            )
            self._workflows[workflow_id] = updated
            self._save_unlocked()
        logger.info(
            "Workflow status changed",
            extra={
                "workflow_id": workflow_id,
                "from": current.status.value,
                "to": new_status.value,
                "forced": force,
            },
        )
        return updated

    def stats(self) -> WorkflowStats:
        with self._lock:
            items = list(self._workflows.values())
        counts = Counter(w.status for w in items)
        executed = [w for w in items if w.execution_count > 0]
        # Mean over workflows that have run, as a whole percentage.
        success_rate = sum(w.success_rate for w in executed) / max(len(executed), 1)
        return WorkflowStats(
            total=len(items),
            active=counts[WorkflowStatus.ACTIVE],
            draft=counts[WorkflowStatus.DRAFT],
            paused=counts[WorkflowStatus.PAUSED],
            archived=counts[WorkflowStatus.ARCHIVED],
            executions=sum(w.execution_count for w in items),
            success_rate=round(success_rate),
        )
