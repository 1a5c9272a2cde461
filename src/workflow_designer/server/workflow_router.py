"""Workflow designer REST API.

All routes are mounted under `/api`. Definitions are exchanged in their
camelCase JSON form.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import ValidationError

from workflow_designer import __version__
from workflow_designer.designer.workflow.graph import (
    GraphIntegrityError,
    check_graph,
    edge_segments,
    find_cycle,
)
from workflow_designer.designer.workflow.lifecycle import (
    IllegalStatusTransitionError,
    available_transitions,
)
from workflow_designer.designer.workflow.models import (
    Category,
    Complexity,
    WorkflowDefinition,
    WorkflowStatus,
)
from workflow_designer.designer.workflow.registry import step_catalog, trigger_catalog
from workflow_designer.designer.workflow.store import (
    WorkflowAlreadyExists,
    WorkflowNotFound,
    WorkflowStore,
)
from workflow_designer.designer.workflow.templates import TemplateLibrary, TemplateNotFound
from workflow_designer.designer.workflow.wizard import config_warnings, validate_definition
from workflow_designer.server.models import (
    StatusChangeRequest,
    TransitionsResponse,
    ValidationReport,
)

router = APIRouter()


def _store(request: Request) -> WorkflowStore:
    store = getattr(request.app.state, "store", None)
    if not isinstance(store, WorkflowStore):
        raise HTTPException(status_code=500, detail="Workflow store not configured")
    return store


def _templates(request: Request) -> TemplateLibrary:
    library = getattr(request.app.state, "templates", None)
    if not isinstance(library, TemplateLibrary):
        raise HTTPException(status_code=500, detail="Template library not configured")
    return library


def _get_workflow(store: WorkflowStore, workflow_id: int) -> WorkflowDefinition:
    try:
        return store.get(workflow_id)
    except WorkflowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _parse_definition(payload: dict[str, object]) -> WorkflowDefinition:
    try:
        definition = WorkflowDefinition.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=422, detail=e.errors(include_url=False, include_context=False)
        ) from e

    # Drafts may be incomplete; anything past draft must be fully authored.
    if definition.status != WorkflowStatus.DRAFT:
        errors = validate_definition(definition)
        if errors:
            raise HTTPException(status_code=400, detail={"errors": errors})
    try:
        check_graph(definition)
    except GraphIntegrityError as e:
        raise HTTPException(status_code=400, detail={"errors": {"steps": str(e)}}) from e
    return definition


@router.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "ok": True, "version": __version__}


@router.get("/catalog/steps")
def list_step_kinds() -> list[dict[str, object]]:
    return step_catalog()


@router.get("/catalog/triggers")
def list_trigger_kinds() -> list[dict[str, object]]:
    return trigger_catalog()


@router.get("/workflows")
def list_workflows(
    request: Request,
    search: str = "",
    category: Category | None = Query(default=None),
    status: WorkflowStatus | None = Query(default=None),
) -> list[dict[str, object]]:
    found = _store(request).list(search=search, category=category, status=status)
    return [w.to_json() for w in found]


@router.get("/workflows/stats")
def workflow_stats(request: Request) -> dict[str, int]:
    return _store(request).stats().to_json()


@router.post("/workflows", status_code=201)
def create_workflow(request: Request, payload: dict[str, object]) -> dict[str, object]:
    definition = _parse_definition(payload)
    try:
        created = _store(request).create(definition)
    except WorkflowAlreadyExists as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return created.to_json()


@router.get("/workflows/{workflow_id}")
def get_workflow(request: Request, workflow_id: int) -> dict[str, object]:
    return _get_workflow(_store(request), workflow_id).to_json()


@router.put("/workflows/{workflow_id}")
def update_workflow(
    request: Request, workflow_id: int, payload: dict[str, object]
) -> dict[str, object]:
    store = _store(request)
    _get_workflow(store, workflow_id)
    # Ensure path param wins.
    definition = _parse_definition({**payload, "id": workflow_id})
    try:
        updated = store.update(definition)
    except WorkflowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except GraphIntegrityError as e:
        raise HTTPException(status_code=400, detail={"errors": {"steps": str(e)}}) from e
    return updated.to_json()


@router.delete("/workflows/{workflow_id}", status_code=204)
def delete_workflow(request: Request, workflow_id: int) -> Response:
    try:
        _store(request).delete(workflow_id)
    except WorkflowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return Response(status_code=204)


@router.post("/workflows/{workflow_id}/duplicate", status_code=201)
def duplicate_workflow(request: Request, workflow_id: int) -> dict[str, object]:
    try:
        copy = _store(request).duplicate(workflow_id)
    except WorkflowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return copy.to_json()


@router.post("/workflows/{workflow_id}/status")
def change_status(
    request: Request, workflow_id: int, req: StatusChangeRequest
) -> dict[str, object]:
    store = _store(request)
    current = _get_workflow(store, workflow_id)
    if req.status != WorkflowStatus.DRAFT:
        errors = validate_definition(current)
        if errors:
            raise HTTPException(status_code=400, detail={"errors": errors})
    try:
        updated = store.set_status(workflow_id, req.status, force=req.force)
    except IllegalStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except WorkflowNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return updated.to_json()


@router.get("/workflows/{workflow_id}/transitions")
def list_transitions(request: Request, workflow_id: int) -> TransitionsResponse:
    current = _get_workflow(_store(request), workflow_id)
    return TransitionsResponse(
        status=current.status, transitions=available_transitions(current.status)
    )


@router.get("/workflows/{workflow_id}/edges")
def list_edges(request: Request, workflow_id: int) -> list[dict[str, object]]:
    definition = _get_workflow(_store(request), workflow_id)
    return [segment.to_json() for segment in edge_segments(definition)]


@router.post("/workflows/{workflow_id}/validate")
def validate_workflow(request: Request, workflow_id: int) -> ValidationReport:
    definition = _get_workflow(_store(request), workflow_id)
    errors = validate_definition(definition)
    return ValidationReport(
        valid=not errors,
        errors=errors,
        warnings=config_warnings(definition),
        cycle=find_cycle(definition),
    )


@router.get("/templates")
def list_templates(
    request: Request,
    search: str = "",
    category: Category | None = Query(default=None),
    complexity: Complexity | None = Query(default=None),
) -> list[dict[str, object]]:
    found = _templates(request).search(search, category=category, complexity=complexity)
    return [t.to_json() for t in found]


@router.get("/templates/{template_id}")
def get_template(request: Request, template_id: int) -> dict[str, object]:
    try:
        return _templates(request).get(template_id).to_json()
    except TemplateNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.post("/templates/{template_id}/instantiate", status_code=201)
def instantiate_template(request: Request, template_id: int) -> dict[str, object]:
    try:
        draft = _templates(request).instantiate(template_id)
    except TemplateNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _store(request).create(draft).to_json()
