"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from workflow_designer.designer.workflow.models import WorkflowStatus


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusChangeRequest(ApiModel):
    status: WorkflowStatus
    force: bool = False


class ValidationReport(ApiModel):
    valid: bool
    errors: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    cycle: list[str] | None = None


class TransitionsResponse(ApiModel):
    status: WorkflowStatus
    transitions: list[WorkflowStatus]
