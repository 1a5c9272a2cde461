"""FastAPI server adapter for workflow-designer.

This module exposes a REST API over the definition store and template library.

Design intent:
- Keep authoring logic in `workflow_designer.designer.workflow.*`
- Keep server-specific concerns (routing, CORS, HTTP error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from workflow_designer.server.app import create_app
