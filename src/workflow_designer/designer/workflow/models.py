"""Workflow definition data model.

Attributes are snake_case; the JSON representation is camelCase
(``nextSteps``, ``executionCount``...). Both spellings are accepted on input.
Models are frozen: editors return new values instead of mutating.
"""

from __future__ import annotations

import threading
import time
from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .registry import (
    StepConfig,
    StepKind,
    TriggerConfig,
    TriggerKind,
    parse_step_config,
    parse_trigger_config,
)


class WorkflowStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class Category(str, Enum):
    HR = "hr"
    COMMERCIAL = "commercial"
    ADMIN = "admin"
    FINANCE = "finance"
    OTHER = "other"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


CATEGORY_LABELS: dict[Category, str] = {
    Category.HR: "RH",
    Category.COMMERCIAL: "Commercial",
    Category.ADMIN: "Administration",
    Category.FINANCE: "Finance",
    Category.OTHER: "Autre",
}

STATUS_LABELS: dict[WorkflowStatus, str] = {
    WorkflowStatus.DRAFT: "Brouillon",
    WorkflowStatus.ACTIVE: "Actif",
    WorkflowStatus.PAUSED: "En pause",
    WorkflowStatus.ARCHIVED: "Archivé",
}

COMPLEXITY_LABELS: dict[Complexity, str] = {
    Complexity.SIMPLE: "Simple",
    Complexity.MEDIUM: "Intermédiaire",
    Complexity.COMPLEX: "Complexe",
}

DEFAULT_STEP_POSITION = (100.0, 100.0)

_id_lock = threading.Lock()
_last_definition_id = 0


def new_definition_id() -> int:
    """Return a fresh definition id.

    Millisecond timestamps, bumped so that ids handed out by this process are
    strictly increasing even when called within the same millisecond.
    """

    global _last_definition_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        _last_definition_id = max(candidate, _last_definition_id + 1)
        return _last_definition_id


def utc_today() -> date:
    return datetime.now(tz=UTC).date()


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Position(WireModel):
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> Position:
        return Position(x=self.x + dx, y=self.y + dy)


def _default_position() -> Position:
    x, y = DEFAULT_STEP_POSITION
    return Position(x=x, y=y)


class WorkflowStep(WireModel):
    """One node of the workflow graph."""

    id: str = Field(min_length=1)
    name: str
    type: StepKind
    config: StepConfig
    position: Position = Field(default_factory=_default_position)
    next_steps: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _config_for_kind(cls, data: object) -> object:
        if isinstance(data, dict) and data.get("type") is not None:
            kind = StepKind(data["type"])
            data = {**data, "config": parse_step_config(kind, data.get("config"))}
        return data

    @field_validator("next_steps")
    @classmethod
    def _dedupe_next_steps(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class WorkflowTrigger(WireModel):
    id: str = Field(min_length=1)
    type: TriggerKind
    config: TriggerConfig

    @model_validator(mode="before")
    @classmethod
    def _config_for_kind(cls, data: object) -> object:
        if isinstance(data, dict) and data.get("type") is not None:
            kind = TriggerKind(data["type"])
            data = {**data, "config": parse_trigger_config(kind, data.get("config"))}
        return data


class WorkflowDefinition(WireModel):
    """An authored, not-yet-executed description of an automated process.

    Telemetry fields (``execution_count``, ``average_execution_time``,
    ``success_rate``) are carried for display only and stay zero for new
    definitions.
    """

    id: int = Field(default_factory=new_definition_id)
    name: str = ""
    description: str = ""
    category: Category | None = None
    status: WorkflowStatus = WorkflowStatus.DRAFT

    created_by: str = ""
    created_date: date | None = None
    last_modified: date | None = None

    steps: list[WorkflowStep] = Field(default_factory=list)
    triggers: list[WorkflowTrigger] = Field(default_factory=list)

    execution_count: int = Field(default=0, ge=0)
    average_execution_time: float = Field(default=0.0, ge=0)
    success_rate: float = Field(default=0.0, ge=0, le=100)

    is_template: bool = False
    tags: list[str] = Field(default_factory=list)
    complexity: Complexity | None = None

    @field_validator("category", "complexity", mode="before")
    @classmethod
    def _blank_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def step(self, step_id: str) -> WorkflowStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def trigger(self, trigger_id: str) -> WorkflowTrigger | None:
        for trigger in self.triggers:
            if trigger.id == trigger_id:
                return trigger
        return None

    @property
    def step_ids(self) -> list[str]:
        return [s.id for s in self.steps]

    def with_zeroed_telemetry(self) -> WorkflowDefinition:
        return self.model_copy(
            update={"execution_count": 0, "average_execution_time": 0.0, "success_rate": 0.0}
        )

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
