"""Read-only library of pre-built workflow templates.

Templates are ordinary :class:`WorkflowDefinition` values with
``is_template=True``. Instantiating one yields an independent draft; the
template itself is never modified.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .graph import check_graph
from .models import (
    Category,
    Complexity,
    WorkflowDefinition,
    WorkflowStatus,
    new_definition_id,
    utc_today,
)

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_PATH = Path(__file__).parent / "builtin_templates.json"

INSTANCE_SUFFIX = " (nouveau)"


@dataclass(frozen=True, slots=True)
class TemplateNotFound(Exception):
    template_id: int

    def __str__(self) -> str:
        return f"Template not found: {self.template_id}"


def instantiate(template: WorkflowDefinition) -> WorkflowDefinition:
    """A new draft definition built from ``template``.

    Step and trigger ids are kept as-is (they are only unique within a
    definition). The author is cleared so the store records whoever persists
    the copy. The result shares no mutable state with the template.
    """

    today = utc_today()
    return (
        template.model_copy(deep=True)
        .with_zeroed_telemetry()
        .model_copy(
            update={
                "id": new_definition_id(),
                "name": f"{template.name}{INSTANCE_SUFFIX}",
                "created_by": "",
                "status": WorkflowStatus.DRAFT,
                "created_date": today,
                "last_modified": today,
                "is_template": False,
            }
        )
    )


class TemplateLibrary:
    def __init__(self, templates: list[WorkflowDefinition]) -> None:
        self._templates: dict[int, WorkflowDefinition] = {}
        for template in templates:
            check_graph(template)
            self._templates[template.id] = template.model_copy(update={"is_template": True})

    @classmethod
    def from_file(cls, path: Path) -> TemplateLibrary:
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"Template file must contain a JSON list: {path}")
        templates = [WorkflowDefinition.model_validate(item) for item in raw]
        logger.debug("Templates loaded", extra={"path": str(path), "count": len(templates)})
        return cls(templates)

    @classmethod
    def from_builtin(cls) -> TemplateLibrary:
        return cls.from_file(BUILTIN_TEMPLATES_PATH)

    @classmethod
    def load(cls, path: Path | None = None) -> TemplateLibrary:
        """The library at ``path``, or the built-in one when no path is configured."""

        return cls.from_file(path) if path is not None else cls.from_builtin()

    def __len__(self) -> int:
        return len(self._templates)

    def list(self) -> list[WorkflowDefinition]:
        return list(self._templates.values())

    def get(self, template_id: int) -> WorkflowDefinition:
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        return template

    def search(
        self,
        term: str = "",
        *,
        category: Category | None = None,
        complexity: Complexity | None = None,
    ) -> list[WorkflowDefinition]:
        """Case-insensitive match on name, description or any tag."""

        needle = term.strip().lower()
        return [
            t
            for t in self._templates.values()
            if (
                not needle
                or needle in t.name.lower()
                or needle in t.description.lower()
                or any(needle in tag.lower() for tag in t.tags)
            )
            and (category is None or t.category == category)
            and (complexity is None or t.complexity == complexity)
        ]

    def instantiate(self, template_id: int) -> WorkflowDefinition:
        copy = instantiate(self.get(template_id))
        logger.info(
            "Template instantiated", extra={"template_id": template_id, "workflow_id": copy.id}
        )
        return copy
