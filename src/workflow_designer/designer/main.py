"""CLI entrypoint for the local-first workflow designer.

Browses the template library and manages the persisted workflow definitions.
Authoring itself happens through the wizard (library or REST API).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from workflow_designer import __version__
from workflow_designer.designer.config import DesignerSettings
from workflow_designer.designer.logging import configure_logging
from workflow_designer.designer.workflow.graph import GraphIntegrityError, find_cycle
from workflow_designer.designer.workflow.lifecycle import IllegalStatusTransitionError
from workflow_designer.designer.workflow.models import (
    CATEGORY_LABELS,
    COMPLEXITY_LABELS,
    STATUS_LABELS,
    Category,
    Complexity,
    WorkflowDefinition,
    WorkflowStatus,
)
from workflow_designer.designer.workflow.store import (
    WorkflowAlreadyExists,
    WorkflowNotFound,
    WorkflowStore,
)
from workflow_designer.designer.workflow.templates import TemplateLibrary, TemplateNotFound
from workflow_designer.designer.workflow.wizard import config_warnings, validate_definition

logger = logging.getLogger(__name__)

_DOMAIN_ERRORS = (
    WorkflowNotFound,
    WorkflowAlreadyExists,
    TemplateNotFound,
    IllegalStatusTransitionError,
    GraphIntegrityError,
)


def _summary_line(definition: WorkflowDefinition) -> str:
    category = CATEGORY_LABELS[definition.category] if definition.category else "-"
    return (
        f"#{definition.id} {definition.name} "
        f"[{category}, {STATUS_LABELS[definition.status]}] "
        f"{len(definition.steps)} étape(s), {len(definition.triggers)} déclencheur(s)"
    )


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-designer",
        description="Local-first workflow definition designer",
    )
    parser.add_argument("--version", action="version", version=f"workflow-designer {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    templates = subparsers.add_parser("templates", help="List or search workflow templates")
    templates.add_argument("--search", default="", help="Match name, description or tags")
    templates.add_argument("--category", choices=[c.value for c in Category], default=None)
    templates.add_argument("--complexity", choices=[c.value for c in Complexity], default=None)

    list_cmd = subparsers.add_parser("list", help="List persisted workflows")
    list_cmd.add_argument("--search", default="", help="Match name or description")
    list_cmd.add_argument("--category", choices=[c.value for c in Category], default=None)
    list_cmd.add_argument("--status", choices=[s.value for s in WorkflowStatus], default=None)
    list_cmd.add_argument("--stats", action="store_true", help="Print aggregate counts instead")

    show = subparsers.add_parser("show", help="Print one workflow as JSON")
    show.add_argument("workflow_id", type=int)

    instantiate = subparsers.add_parser(
        "instantiate", help="Create a draft workflow from a template"
    )
    instantiate.add_argument("template_id", type=int)

    duplicate = subparsers.add_parser("duplicate", help="Copy a workflow as a new draft")
    duplicate.add_argument("workflow_id", type=int)

    set_status = subparsers.add_parser("set-status", help="Move a workflow through its lifecycle")
    set_status.add_argument("workflow_id", type=int)
    set_status.add_argument("status", choices=[s.value for s in WorkflowStatus])
    set_status.add_argument(
        "--force",
        action="store_true",
        help="Skip the lifecycle table (e.g. to restore an archived workflow)",
    )

    delete = subparsers.add_parser("delete", help="Delete a workflow")
    delete.add_argument("workflow_id", type=int)

    validate = subparsers.add_parser(
        "validate", help="Check a workflow for completeness and graph integrity"
    )
    source = validate.add_mutually_exclusive_group(required=True)
    source.add_argument("--id", dest="workflow_id", type=int, help="A persisted workflow")
    source.add_argument("--file", type=Path, help="A workflow definition JSON file")

    return parser


def _validate(definition: WorkflowDefinition) -> int:
    errors = validate_definition(definition)
    for field, message in errors.items():
        print(f"error: {field}: {message}")
    for warning in config_warnings(definition):
        print(f"warning: {warning}")
    cycle = find_cycle(definition)
    if cycle:
        print(f"info: cycle {' -> '.join(cycle)}")
    if errors:
        return 3
    print(f"Workflow #{definition.id} is valid")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = DesignerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)

    try:
        if args.command == "templates":
            library = TemplateLibrary.load(settings.templates_path)
            found = library.search(
                args.search,
                category=Category(args.category) if args.category else None,
                complexity=Complexity(args.complexity) if args.complexity else None,
            )
            for template in found:
                tags = ", ".join(template.tags)
                complexity = (
                    COMPLEXITY_LABELS[template.complexity] if template.complexity else "-"
                )
                print(f"{_summary_line(template)}, {complexity} ({tags})")
            return 0

        store = WorkflowStore(settings.workflows_state_file, current_user=settings.current_user)

        if args.command == "list":
            if args.stats:
                _print_json(store.stats().to_json())
                return 0
            for definition in store.list(
                search=args.search,
                category=Category(args.category) if args.category else None,
                status=WorkflowStatus(args.status) if args.status else None,
            ):
                print(_summary_line(definition))
            return 0

        if args.command == "show":
            _print_json(store.get(args.workflow_id).to_json())
            return 0

        if args.command == "instantiate":
            library = TemplateLibrary.load(settings.templates_path)
            created = store.create(library.instantiate(args.template_id))
            logger.info(
                "Workflow persisted",
                extra={"path": str(settings.workflows_state_file), "workflow_id": created.id},
            )
            print(f"Created workflow #{created.id}: {created.name}")
            return 0

        if args.command == "duplicate":
            copy = store.duplicate(args.workflow_id)
            print(f"Created workflow #{copy.id}: {copy.name}")
            return 0

        if args.command == "set-status":
            updated = store.set_status(
                args.workflow_id, WorkflowStatus(args.status), force=args.force
            )
            print(f"Workflow #{updated.id} is now {STATUS_LABELS[updated.status]}")
            return 0

        if args.command == "delete":
            store.delete(args.workflow_id)
            print(f"Deleted workflow #{args.workflow_id}")
            return 0

        if args.command == "validate":
            if args.file is not None:
                raw = json.loads(args.file.read_text(encoding="utf-8"))
                try:
                    definition = WorkflowDefinition.model_validate(raw)
                except ValidationError as e:
                    print(f"error: {e}")
                    return 3
            else:
                definition = store.get(args.workflow_id)
            return _validate(definition)

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except _DOMAIN_ERRORS as e:
        logger.warning(str(e), extra={"command": args.command})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
