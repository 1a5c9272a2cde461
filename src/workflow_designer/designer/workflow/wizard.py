"""Four-stage authoring wizard.

The whole wizard lives in one serializable :class:`WizardState`. The
:class:`WorkflowWizard` command interface replaces that state with a new value
on every command; trigger and step commands delegate to the pure functions in
:mod:`.triggers` and :mod:`.graph`.

Forward navigation is gated on the current stage's validation; backward
navigation always succeeds. Finalization is the only asynchronous operation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from . import graph, triggers
from .graph import StepEditorState
from .models import (
    CATEGORY_LABELS,
    Category,
    Position,
    WireModel,
    WorkflowDefinition,
    WorkflowStatus,
    WorkflowStep,
    WorkflowTrigger,
    utc_today,
)
from .registry import (
    STEP_KINDS,
    TRIGGER_KINDS,
    ApprovalConfig,
    ConditionConfig,
    DocumentConfig,
    EventTriggerConfig,
    IntegrationConfig,
    ManualTriggerConfig,
    NotificationConfig,
    StepKind,
    TaskConfig,
    TriggerKind,
    default_trigger_config,
)

logger = logging.getLogger(__name__)


class WizardStage(IntEnum):
    BASIC_INFO = 1
    TRIGGERS = 2
    STEPS = 3
    REVIEW = 4


STAGE_TITLES: dict[WizardStage, str] = {
    WizardStage.BASIC_INFO: "Informations de Base",
    WizardStage.TRIGGERS: "Déclencheurs",
    WizardStage.STEPS: "Étapes du Workflow",
    WizardStage.REVIEW: "Finalisation",
}


class WizardPhase(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLOSED = "closed"


_EDITABLE_PHASES = {WizardPhase.EDITING, WizardPhase.FAILED}

BASIC_INFO_FIELDS = ("name", "description", "category")

ERROR_MESSAGES: dict[str, str] = {
    "name": "Le nom est requis",
    "description": "La description est requise",
    "category": "La catégorie est requise",
    "triggers": "Au moins un déclencheur est requis",
    "steps": "Au moins une étape est requise",
}


class WizardBusyError(RuntimeError):
    """Raised when a command arrives while the wizard is not accepting changes."""


# The return value is ignored unless it is awaitable.
OnSave = Callable[[WorkflowDefinition], Awaitable[object] | object]
OnClose = Callable[[], None]


@dataclass(frozen=True, slots=True)
class SaveResult:
    ok: bool
    message: str
    definition: WorkflowDefinition | None = None
    errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ReviewSummary:
    """Read-only view shown at the review stage."""

    name: str
    description: str
    category: Category | None
    category_label: str
    status: WorkflowStatus
    triggers: list[str]
    steps: list[str]
    edges: list[tuple[str, str]]
    cycle: list[str] | None
    warnings: list[str]

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def trigger_count(self) -> int:
        return len(self.triggers)


class WizardState(WireModel):
    stage: WizardStage = WizardStage.BASIC_INFO
    draft: WorkflowDefinition
    errors: dict[str, str] = {}
    editor: StepEditorState = StepEditorState()
    phase: WizardPhase = WizardPhase.EDITING
    is_editing: bool = False
    initial: WorkflowDefinition | None = None


def new_draft(*, created_by: str = "") -> WorkflowDefinition:
    """An empty definition with the default manual trigger."""

    return WorkflowDefinition(
        category=Category.ADMIN,
        created_by=created_by,
        triggers=[
            WorkflowTrigger(
                id="trigger1",
                type=TriggerKind.MANUAL,
                config=default_trigger_config(TriggerKind.MANUAL),
            )
        ],
    )


def validate_stage(draft: WorkflowDefinition, stage: WizardStage) -> dict[str, str]:
    """Field -> message map of what blocks leaving ``stage``. Empty when valid."""

    errors: dict[str, str] = {}
    stage = WizardStage(stage)
    if stage == WizardStage.BASIC_INFO:
        if not draft.name.strip():
            errors["name"] = ERROR_MESSAGES["name"]
        if not draft.description.strip():
            errors["description"] = ERROR_MESSAGES["description"]
        if draft.category is None:
            errors["category"] = ERROR_MESSAGES["category"]
    elif stage == WizardStage.TRIGGERS:
        if not draft.triggers:
            errors["triggers"] = ERROR_MESSAGES["triggers"]
    elif stage == WizardStage.STEPS:
        if not draft.steps:
            errors["steps"] = ERROR_MESSAGES["steps"]
    return errors


def validate_definition(draft: WorkflowDefinition) -> dict[str, str]:
    """Errors of every authoring stage plus graph integrity."""

    errors: dict[str, str] = {}
    for stage in (WizardStage.BASIC_INFO, WizardStage.TRIGGERS, WizardStage.STEPS):
        errors.update(validate_stage(draft, stage))
    try:
        graph.check_graph(draft)
    except graph.GraphIntegrityError as e:
        errors.setdefault("steps", str(e))
    return errors


def config_warnings(draft: WorkflowDefinition) -> list[str]:
    """Incomplete step/trigger configurations.

    These never block finalization; they are shown on the review stage.
    """

    warnings: list[str] = []
    step_ids = set(draft.step_ids)
    for step in draft.steps:
        label = f"L'étape « {step.name} »"
        config = step.config
        if isinstance(config, ApprovalConfig) and not config.approvers:
            warnings.append(f"{label} n'a aucun approbateur")
        elif isinstance(config, NotificationConfig) and not config.recipients:
            warnings.append(f"{label} n'a aucun destinataire")
        elif isinstance(config, TaskConfig) and not config.assignee.strip():
            warnings.append(f"{label} n'est assignée à personne")
        elif isinstance(config, ConditionConfig):
            if not config.condition.strip():
                warnings.append(f"{label} n'a pas d'expression de condition")
            for branch in (config.true_step, config.false_step):
                if branch and branch not in step_ids:
                    warnings.append(f"{label} référence une étape inconnue : {branch}")
        elif isinstance(config, IntegrationConfig) and not (
            config.service.strip() and config.action.strip()
        ):
            warnings.append(f"{label} n'a pas de service ou d'action")
        elif isinstance(config, DocumentConfig) and not config.template.strip():
            warnings.append(f"{label} n'a pas de modèle de document")

    for trigger in draft.triggers:
        if isinstance(trigger.config, ManualTriggerConfig) and not trigger.config.roles:
            warnings.append(f"Le déclencheur {trigger.id} n'autorise aucun rôle")
        elif isinstance(trigger.config, EventTriggerConfig) and not trigger.config.event:
            warnings.append(f"Le déclencheur {trigger.id} n'a pas d'événement")
    return warnings


class WorkflowWizard:
    """Command interface over a :class:`WizardState`."""

    def __init__(
        self,
        state: WizardState,
        *,
        enforce_trigger_minimum: bool = True,
        save_latency_seconds: float = 1.0,
        success_display_seconds: float = 1.5,
    ) -> None:
        self._state = state
        self._enforce_trigger_minimum = enforce_trigger_minimum
        self._save_latency = save_latency_seconds
        self._success_display = success_display_seconds

    @classmethod
    def create(cls, *, created_by: str = "", **options: Any) -> WorkflowWizard:
        return cls(WizardState(draft=new_draft(created_by=created_by)), **options)

    @classmethod
    def edit(cls, definition: WorkflowDefinition, **options: Any) -> WorkflowWizard:
        graph.check_graph(definition)
        state = WizardState(draft=definition, is_editing=True, initial=definition)
        return cls(state, **options)

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def stage(self) -> WizardStage:
        return self._state.stage

    @property
    def draft(self) -> WorkflowDefinition:
        return self._state.draft

    @property
    def errors(self) -> dict[str, str]:
        return dict(self._state.errors)

    @property
    def phase(self) -> WizardPhase:
        return self._state.phase

    def _set(self, **updates: object) -> None:
        self._state = self._state.model_copy(update=updates)

    def _require_editable(self) -> None:
        if self._state.phase not in _EDITABLE_PHASES:
            raise WizardBusyError(f"Wizard is {self._state.phase.value}; changes are disabled")

    def _set_draft(self, draft: WorkflowDefinition, *, clear: str | None = None) -> None:
        errors = self._state.errors
        if clear is not None and clear in errors:
            errors = {k: v for k, v in errors.items() if k != clear}
        self._set(draft=draft, errors=errors, phase=WizardPhase.EDITING)

    # Basic info

    def set_field(self, name: str, value: object) -> None:
        self._require_editable()
        if name not in BASIC_INFO_FIELDS:
            raise ValueError(f"Unknown field: {name!r}")
        if name == "category":
            value = Category(value) if value not in (None, "") else None
        elif not isinstance(value, str):
            raise ValueError(f"{name} must be a string")
        self._set_draft(self.draft.model_copy(update={name: value}), clear=name)

    # Navigation

    def validate_stage(self, stage: WizardStage | None = None) -> dict[str, str]:
        errors = validate_stage(self.draft, stage or self.stage)
        self._set(errors=errors)
        return dict(errors)

    def next_stage(self) -> bool:
        """Advance when the current stage is valid. Returns whether it moved."""

        self._require_editable()
        if self.validate_stage():
            logger.debug(
                "Stage blocked",
                extra={"stage": int(self.stage), "fields": sorted(self._state.errors)},
            )
            return False
        if self.stage < WizardStage.REVIEW:
            self._set(stage=WizardStage(self.stage + 1))
        return True

    def prev_stage(self) -> WizardStage:
        self._require_editable()
        if self.stage > WizardStage.BASIC_INFO:
            self._set(stage=WizardStage(self.stage - 1), errors={})
        return self.stage

    # Triggers

    def add_trigger(self, kind: TriggerKind = TriggerKind.MANUAL) -> WorkflowTrigger:
        self._require_editable()
        draft, trigger = triggers.add_trigger(self.draft, kind)
        self._set_draft(draft, clear="triggers")
        return trigger

    def remove_trigger(self, trigger_id: str) -> None:
        self._require_editable()
        draft = triggers.remove_trigger(
            self.draft, trigger_id, enforce_minimum=self._enforce_trigger_minimum
        )
        self._set_draft(draft)

    def update_trigger(self, trigger_id: str, field: str, value: object) -> None:
        self._require_editable()
        self._set_draft(triggers.update_trigger(self.draft, trigger_id, field, value))

    def update_trigger_config(self, trigger_id: str, field: str, value: object) -> None:
        self._require_editable()
        self._set_draft(triggers.update_trigger_config(self.draft, trigger_id, field, value))

    # Steps

    def add_step(self, kind: StepKind) -> WorkflowStep:
        """Add a step; it becomes the selected step and opens for editing."""

        self._require_editable()
        draft, step = graph.add_step(self.draft, kind)
        self._set_draft(draft, clear="steps")
        self._set(editor=graph.begin_edit(self._state.editor, draft, step.id))
        return step

    def select_step(self, step_id: str | None) -> None:
        self._set(editor=graph.select_step(self._state.editor, self.draft, step_id))

    def begin_edit(self, step_id: str) -> WorkflowStep:
        self._require_editable()
        editor = graph.begin_edit(self._state.editor, self.draft, step_id)
        self._set(editor=editor)
        assert editor.editing is not None
        return editor.editing

    def edit_step(self, *, name: str | None = None, **config: object) -> WorkflowStep:
        """Stage changes on the step being edited; nothing is stored until save."""

        self._require_editable()
        editor = graph.stage_step_edit(self._state.editor, name=name, config=config)
        self._set(editor=editor)
        assert editor.editing is not None
        return editor.editing

    def save_step(self) -> WorkflowStep:
        self._require_editable()
        editing = self._state.editor.editing
        draft, editor = graph.save_edit(self._state.editor, self.draft)
        self._set_draft(draft)
        self._set(editor=editor)
        saved = draft.step(editing.id) if editing is not None else None
        assert saved is not None
        return saved

    def cancel_edit(self) -> None:
        self._set(editor=graph.cancel_edit(self._state.editor))

    def delete_step(self, step_id: str) -> None:
        self._require_editable()
        self._set_draft(graph.delete_step(self.draft, step_id))
        self._set(editor=graph.forget_step(self._state.editor, step_id))

    def connect(self, from_id: str, to_id: str) -> None:
        self._require_editable()
        self._set_draft(graph.connect_steps(self.draft, from_id, to_id))

    def reposition(self, step_id: str, x: float, y: float) -> None:
        self._require_editable()
        self._set_draft(graph.reposition_step(self.draft, step_id, Position(x=x, y=y)))

    # Review and finalization

    def review(self) -> ReviewSummary:
        draft = self.draft
        return ReviewSummary(
            name=draft.name,
            description=draft.description,
            category=draft.category,
            category_label=CATEGORY_LABELS[draft.category] if draft.category else "",
            status=draft.status,
            triggers=[TRIGGER_KINDS[t.type].label for t in draft.triggers],
            steps=[f"{s.name} ({STEP_KINDS[s.type].label})" for s in draft.steps],
            edges=graph.edges(draft),
            cycle=graph.find_cycle(draft),
            warnings=config_warnings(draft),
        )

    def build_final_definition(self) -> WorkflowDefinition:
        """The draft as it will be handed to ``on_save``."""

        draft = self.draft
        initial = self._state.initial if self._state.is_editing else None
        today = utc_today()
        return draft.model_copy(
            update={
                "status": draft.status or WorkflowStatus.DRAFT,
                "created_date": (initial.created_date if initial else None) or today,
                "last_modified": today,
                "execution_count": initial.execution_count if initial else 0,
                "average_execution_time": initial.average_execution_time if initial else 0.0,
                "success_rate": initial.success_rate if initial else 0.0,
                "is_template": False,
            }
        )

    async def finalize(self, on_save: OnSave, on_close: OnClose | None = None) -> SaveResult:
        """Validate, save through ``on_save`` and close.

        While the save is in flight every mutating command raises
        :class:`WizardBusyError`. Cancelling the task returns the wizard to
        editing without saving.
        """

        self._require_editable()
        if self.stage != WizardStage.REVIEW:
            return SaveResult(
                ok=False,
                message="Finalization is only available on the review stage",
                errors={"stage": STAGE_TITLES[WizardStage.REVIEW]},
            )

        errors = validate_definition(self.draft)
        if errors:
            self._set(errors=errors)
            return SaveResult(ok=False, message="Validation failed", errors=errors)

        final = self.build_final_definition()
        self._set(phase=WizardPhase.SUBMITTING, errors={})
        logger.info(
            "Saving workflow",
            extra={"workflow_id": final.id, "editing": self._state.is_editing},
        )
        try:
            await asyncio.sleep(self._save_latency)
            outcome = on_save(final)
            if inspect.isawaitable(outcome):
                await outcome
        except asyncio.CancelledError:
            logger.info("Workflow save cancelled", extra={"workflow_id": final.id})
            self._set(phase=WizardPhase.EDITING)
            raise
        except Exception as e:
            logger.exception("Workflow save failed", extra={"workflow_id": final.id})
            self._set(phase=WizardPhase.FAILED, errors={"save": str(e)})
            return SaveResult(
                ok=False, message="Save failed", definition=final, errors={"save": str(e)}
            )

        self._set(phase=WizardPhase.SUCCEEDED, draft=final)
        logger.info("Workflow saved", extra={"workflow_id": final.id})
        # Saved already: a cancelled display delay still closes the wizard.
        try:
            await asyncio.sleep(self._success_display)
        finally:
            self._set(phase=WizardPhase.CLOSED)
            if on_close is not None:
                on_close()
        return SaveResult(ok=True, message="Workflow saved", definition=final)

    def close(self, on_close: OnClose | None = None) -> None:
        """Cancel/dismiss. Nothing is saved."""

        if self._state.phase == WizardPhase.SUBMITTING:
            raise WizardBusyError("Cannot close while the workflow is being saved")
        self._set(phase=WizardPhase.CLOSED)
        if on_close is not None:
            on_close()
