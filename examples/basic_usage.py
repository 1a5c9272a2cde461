#!/usr/bin/env python3
"""Programmatic authoring example.

This demonstrates driving the wizard directly:

* load settings from `.env`
* author a two-step workflow through the four wizard stages
* persist it to `designer_state/workflows.json` through the save callback
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from workflow_designer.designer.config import DesignerSettings
from workflow_designer.designer.logging import configure_logging
from workflow_designer.designer.workflow.registry import StepKind, TriggerKind
from workflow_designer.designer.workflow.store import WorkflowStore
from workflow_designer.designer.workflow.wizard import WorkflowWizard


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Author a workflow (programmatic example).")
    parser.add_argument("--name", default="Onboarding", help="Workflow name")
    parser.add_argument(
        "--description",
        default="Intégration des nouveaux employés",
        help="Workflow description",
    )
    parser.add_argument(
        "--category", default="hr", help="hr | commercial | admin | finance | other"
    )
    return parser.parse_args(argv)


async def _author(args: argparse.Namespace, settings: DesignerSettings) -> int:
    store = WorkflowStore(settings.workflows_state_file, current_user=settings.current_user)
    wizard = WorkflowWizard.create(created_by=settings.current_user, **settings.wizard_options())

    wizard.set_field("name", args.name)
    wizard.set_field("description", args.description)
    wizard.set_field("category", args.category)
    if not wizard.next_stage():
        print(f"Invalid basic info: {wizard.errors}")
        return 3

    wizard.update_trigger("trigger1", "type", TriggerKind.EVENT)
    wizard.update_trigger_config("trigger1", "event", "employee.created")
    wizard.next_stage()

    task = wizard.add_step(StepKind.TASK)
    wizard.edit_step(name="Création des accès", assignee="IT", dueDate="1 jour")
    wizard.save_step()
    notification = wizard.add_step(StepKind.NOTIFICATION)
    wizard.edit_step(name="Email de bienvenue", recipients=["{{employee.email}}"])
    wizard.save_step()
    wizard.reposition(notification.id, 300, 100)
    wizard.connect(task.id, notification.id)
    wizard.next_stage()

    for warning in wizard.review().warnings:
        print(f"warning: {warning}")

    result = await wizard.finalize(store.save)
    if not result.ok:
        print(f"{result.message}: {result.errors}")
        return 3
    assert result.definition is not None
    print(f"Saved workflow #{result.definition.id}: {result.definition.name}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = DesignerSettings()
    configure_logging(settings.log_level, settings.log_format)

    return asyncio.run(_author(args, settings))


if __name__ == "__main__":
    raise SystemExit(main())
