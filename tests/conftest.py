"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from workflow_designer.designer.workflow.models import (
    Category,
    Position,
    WorkflowDefinition,
    WorkflowStep,
    WorkflowTrigger,
)
from workflow_designer.designer.workflow.registry import StepKind, TriggerKind
from workflow_designer.designer.workflow.store import WorkflowStore
from workflow_designer.designer.workflow.templates import TemplateLibrary

SETTINGS_ENV_VARS = (
    "LOG_LEVEL",
    "LOG_FORMAT",
    "WORKFLOW_DESIGNER_STATE_PATH",
    "WORKFLOW_DESIGNER_TEMPLATES_PATH",
    "WORKFLOW_DESIGNER_CURRENT_USER",
    "WORKFLOW_DESIGNER_SAVE_LATENCY_SECONDS",
    "WORKFLOW_DESIGNER_SUCCESS_DISPLAY_SECONDS",
    "WORKFLOW_DESIGNER_ENFORCE_TRIGGER_MINIMUM",
    "WORKFLOW_DESIGNER_CORS_ORIGINS",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory with no designer settings in the environment."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def state_dir(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the designer state at a temporary directory."""
    state = clean_env / "designer_state"
    monkeypatch.setenv("WORKFLOW_DESIGNER_STATE_PATH", str(state))
    return state


@pytest.fixture
def store(tmp_path: Path) -> WorkflowStore:
    """Provide a file-backed store in a temporary directory."""
    return WorkflowStore(tmp_path / "state" / "workflows.json", current_user="tester")


@pytest.fixture
def library() -> TemplateLibrary:
    """Provide the built-in template library."""
    return TemplateLibrary.from_builtin()


@pytest.fixture
def fast_wizard_options() -> dict[str, object]:
    """Wizard options without save latency or success delay."""
    return {"save_latency_seconds": 0.0, "success_display_seconds": 0.0}


@pytest.fixture
def two_step_definition() -> WorkflowDefinition:
    """A complete definition: one manual trigger, task -> notification."""
    return WorkflowDefinition(
        id=42,
        name="Onboarding",
        description="Accueil des nouveaux arrivants",
        category=Category.HR,
        steps=[
            WorkflowStep(
                id="a",
                name="Préparer le poste",
                type=StepKind.TASK,
                config={"assignee": "IT"},
                position=Position(x=100, y=100),
                next_steps=["b"],
            ),
            WorkflowStep(
                id="b",
                name="Bienvenue",
                type=StepKind.NOTIFICATION,
                config={"recipients": ["{{employee.email}}"], "template": "welcome"},
                position=Position(x=300, y=100),
            ),
        ],
        triggers=[WorkflowTrigger(id="trigger1", type=TriggerKind.MANUAL, config=None)],
    )


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """Undo ``configure_logging`` calls made by the CLI under test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
