"""Static catalog of step and trigger kinds.

Each kind carries a typed configuration payload. The mapping from kind to
payload model is checked at import time so a new kind cannot be added without
its configuration shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StepKind(str, Enum):
    APPROVAL = "approval"
    NOTIFICATION = "notification"
    TASK = "task"
    CONDITION = "condition"
    DELAY = "delay"
    INTEGRATION = "integration"
    DOCUMENT = "document"


class TriggerKind(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    EVENT = "event"
    FORM = "form"
    API = "api"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    SLACK = "slack"


class DelayUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"


class OutputFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    HTML = "html"


class ScheduleFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ConfigModel(BaseModel):
    """Base for kind-specific configuration payloads (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


# Step configurations.


class ApprovalConfig(ConfigModel):
    approvers: list[str] = Field(default_factory=list)
    timeout_days: int = Field(default=3, ge=0)


class NotificationConfig(ConfigModel):
    channel: NotificationChannel = NotificationChannel.EMAIL
    template: str = ""
    recipients: list[str] = Field(default_factory=list)


class TaskConfig(ConfigModel):
    assignee: str = ""
    due_date: str = "3 jours"
    description: str = ""


class ConditionConfig(ConfigModel):
    """Branch targets are stored for authoring only.

    Rendered edges come from ``next_steps``; nothing maps an edge to the true
    or false branch.
    """

    condition: str = ""
    true_step: str = ""
    false_step: str = ""


class DelayConfig(ConfigModel):
    duration: int = Field(default=1, ge=0)
    unit: DelayUnit = DelayUnit.DAYS


class IntegrationConfig(ConfigModel):
    service: str = ""
    action: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class DocumentConfig(ConfigModel):
    template: str = ""
    output_format: OutputFormat = OutputFormat.PDF


StepConfig = (
    ApprovalConfig
    | NotificationConfig
    | TaskConfig
    | ConditionConfig
    | DelayConfig
    | IntegrationConfig
    | DocumentConfig
)


# Trigger configurations.


class ManualTriggerConfig(ConfigModel):
    roles: list[str] = Field(default_factory=lambda: ["admin"])


class ScheduledTriggerConfig(ConfigModel):
    frequency: ScheduleFrequency = ScheduleFrequency.DAILY


class EventTriggerConfig(ConfigModel):
    event: str = ""
    conditions: list[dict[str, Any]] = Field(default_factory=list)


class FormTriggerConfig(ConfigModel):
    form: str = ""


class ApiTriggerConfig(ConfigModel):
    endpoint: str = ""


TriggerConfig = (
    ManualTriggerConfig
    | ScheduledTriggerConfig
    | EventTriggerConfig
    | FormTriggerConfig
    | ApiTriggerConfig
)


STEP_CONFIG_MODELS: dict[StepKind, type[ConfigModel]] = {
    StepKind.APPROVAL: ApprovalConfig,
    StepKind.NOTIFICATION: NotificationConfig,
    StepKind.TASK: TaskConfig,
    StepKind.CONDITION: ConditionConfig,
    StepKind.DELAY: DelayConfig,
    StepKind.INTEGRATION: IntegrationConfig,
    StepKind.DOCUMENT: DocumentConfig,
}

TRIGGER_CONFIG_MODELS: dict[TriggerKind, type[ConfigModel]] = {
    TriggerKind.MANUAL: ManualTriggerConfig,
    TriggerKind.SCHEDULED: ScheduledTriggerConfig,
    TriggerKind.EVENT: EventTriggerConfig,
    TriggerKind.FORM: FormTriggerConfig,
    TriggerKind.API: ApiTriggerConfig,
}


@dataclass(frozen=True, slots=True)
class KindInfo:
    """Display metadata for a step or trigger kind."""

    id: str
    label: str
    description: str


STEP_KINDS: dict[StepKind, KindInfo] = {
    StepKind.APPROVAL: KindInfo(
        "approval", "Approbation", "Validation par un ou plusieurs approbateurs"
    ),
    StepKind.NOTIFICATION: KindInfo("notification", "Notification", "Envoi d'un message"),
    StepKind.TASK: KindInfo("task", "Tâche", "Travail assigné à une personne ou une équipe"),
    StepKind.CONDITION: KindInfo("condition", "Condition", "Branchement selon une expression"),
    StepKind.DELAY: KindInfo("delay", "Délai", "Attente avant l'étape suivante"),
    StepKind.INTEGRATION: KindInfo("integration", "Intégration", "Appel d'un service externe"),
    StepKind.DOCUMENT: KindInfo("document", "Document", "Génération d'un document"),
}

TRIGGER_KINDS: dict[TriggerKind, KindInfo] = {
    TriggerKind.MANUAL: KindInfo("manual", "Manuel", "Démarrage manuel par un utilisateur"),
    TriggerKind.SCHEDULED: KindInfo(
        "scheduled", "Planifié", "Exécution planifiée à intervalles réguliers"
    ),
    TriggerKind.EVENT: KindInfo("event", "Événement", "Déclenché par un événement système"),
    TriggerKind.FORM: KindInfo(
        "form", "Formulaire", "Déclenché par la soumission d'un formulaire"
    ),
    TriggerKind.API: KindInfo("api", "API", "Déclenché par un appel API"),
}

MANUAL_TRIGGER_ROLES: tuple[str, ...] = ("admin", "manager", "user", "commercial", "hr")

KNOWN_EVENTS: dict[str, str] = {
    "employee.created": "Nouvel Employé",
    "leave.requested": "Demande de Congé",
    "expense.submitted": "Note de Frais Soumise",
    "lead.created": "Nouveau Prospect",
    "opportunity.won": "Opportunité Gagnée",
}


def _check_exhaustive() -> None:
    for kinds, mapping, name in (
        (StepKind, STEP_CONFIG_MODELS, "step config"),
        (StepKind, STEP_KINDS, "step label"),
        (TriggerKind, TRIGGER_CONFIG_MODELS, "trigger config"),
        (TriggerKind, TRIGGER_KINDS, "trigger label"),
    ):
        missing = [k.value for k in kinds if k not in mapping]
        if missing:
            raise RuntimeError(f"Missing {name} for kinds: {', '.join(missing)}")


_check_exhaustive()


def default_step_config(kind: StepKind) -> StepConfig:
    return STEP_CONFIG_MODELS[StepKind(kind)]()  # type: ignore[return-value]


def default_trigger_config(kind: TriggerKind) -> TriggerConfig:
    return TRIGGER_CONFIG_MODELS[TriggerKind(kind)]()  # type: ignore[return-value]


def parse_step_config(kind: StepKind, raw: object) -> StepConfig:
    """Validate ``raw`` as the configuration payload of ``kind``.

    Accepts a mapping (camelCase or snake_case keys) or an instance of the
    matching model. An instance of another kind's model is rejected.
    """

    kind = StepKind(kind)
    return _parse_config(STEP_CONFIG_MODELS[kind], raw, kind.value)  # type: ignore[return-value]


def parse_trigger_config(kind: TriggerKind, raw: object) -> TriggerConfig:
    kind = TriggerKind(kind)
    return _parse_config(TRIGGER_CONFIG_MODELS[kind], raw, kind.value)  # type: ignore[return-value]


def _parse_config(model: type[ConfigModel], raw: object, kind: str) -> ConfigModel:
    if raw is None:
        return model()
    if isinstance(raw, model):
        return raw
    if isinstance(raw, ConfigModel):
        raise ValueError(f"{type(raw).__name__} is not a valid configuration for {kind!r}")
    return model.model_validate(raw)


def update_config_field(config: ConfigModel, field: str, value: object) -> ConfigModel:
    """Return ``config`` with one field replaced, re-validated against its model.

    ``field`` may be given in snake_case or camelCase.
    """

    model = type(config)
    name = _resolve_field_name(model, field)
    data = config.model_dump()
    data[name] = value
    return model.model_validate(data)


def _resolve_field_name(model: type[ConfigModel], field: str) -> str:
    for name, info in model.model_fields.items():
        if field in (name, info.alias):
            return name
    raise ValueError(f"Unknown configuration field for {model.__name__}: {field!r}")


def step_catalog() -> list[dict[str, object]]:
    """Step kinds with labels and default configuration, for pickers."""

    return [
        {
            "id": info.id,
            "label": info.label,
            "description": info.description,
            "defaultConfig": default_step_config(kind).model_dump(mode="json", by_alias=True),
        }
        for kind, info in STEP_KINDS.items()
    ]


def trigger_catalog() -> list[dict[str, object]]:
    """Trigger kinds for pickers, with the known choices for manual roles and events."""

    choices: dict[TriggerKind, dict[str, object]] = {
        TriggerKind.MANUAL: {"roles": list(MANUAL_TRIGGER_ROLES)},
        TriggerKind.EVENT: {
            "events": [{"id": event, "label": label} for event, label in KNOWN_EVENTS.items()]
        },
    }
    return [
        {
            "id": info.id,
            "label": info.label,
            "description": info.description,
            "defaultConfig": default_trigger_config(kind).model_dump(mode="json", by_alias=True),
            "choices": choices.get(kind, {}),
        }
        for kind, info in TRIGGER_KINDS.items()
    ]
