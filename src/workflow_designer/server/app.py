"""FastAPI app factory.

Endpoints are thin wrappers over the definition store and template library.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow_designer import __version__
from workflow_designer.designer.workflow.store import WorkflowStore
from workflow_designer.designer.workflow.templates import TemplateLibrary
from workflow_designer.server.config import ServerSettings
from workflow_designer.server.workflow_router import router as workflow_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = ServerSettings()

    app = FastAPI(
        title="Workflow Designer",
        version=__version__,
        description="REST API for authoring workflow definitions and browsing templates.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Expose settings for request handlers that want to read it.
    app.state.settings = settings
    app.state.store = WorkflowStore(
        settings.workflows_state_file, current_user=settings.current_user
    )
    app.state.templates = TemplateLibrary.load(settings.templates_path)

    # Minimal dev-friendly CORS so a Vite dev server can call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(workflow_router, prefix="/api")

    logger.info(
        "App created",
        extra={
            "state_file": str(settings.workflows_state_file),
            "templates": len(app.state.templates),
        },
    )
    return app
