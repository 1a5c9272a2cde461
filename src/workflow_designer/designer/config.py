"""Configuration for the local-first workflow designer.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from workflow_designer.designer.logging import LogFormat


class DesignerSettings(BaseSettings):
    """Settings shared by the CLI and the REST server.

    Environment variables:
    - LOG_LEVEL                                  (optional)
    - LOG_FORMAT                                 (optional, json | text)
    - WORKFLOW_DESIGNER_STATE_PATH               (optional)
    - WORKFLOW_DESIGNER_TEMPLATES_PATH           (optional)
    - WORKFLOW_DESIGNER_CURRENT_USER             (optional)
    - WORKFLOW_DESIGNER_SAVE_LATENCY_SECONDS     (optional)
    - WORKFLOW_DESIGNER_SUCCESS_DISPLAY_SECONDS  (optional)
    - WORKFLOW_DESIGNER_ENFORCE_TRIGGER_MINIMUM  (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `DesignerSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: LogFormat = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="json for one object per line, text for a short human-readable line",
    )

    state_path: Path = Field(
        default=Path("designer_state"),
        validation_alias="WORKFLOW_DESIGNER_STATE_PATH",
        description="Directory where authored workflow definitions are persisted",
    )

    templates_path: Path | None = Field(
        default=None,
        validation_alias="WORKFLOW_DESIGNER_TEMPLATES_PATH",
        description="JSON file with workflow templates; the built-in library when unset",
    )

    current_user: str = Field(
        default="admin",
        validation_alias="WORKFLOW_DESIGNER_CURRENT_USER",
        description="Recorded as created_by on definitions created without an author",
    )

    save_latency_seconds: float = Field(
        default=1.0,
        ge=0,
        validation_alias="WORKFLOW_DESIGNER_SAVE_LATENCY_SECONDS",
        description="Delay before the wizard hands a definition to its save callback",
    )
    success_display_seconds: float = Field(
        default=1.5,
        ge=0,
        validation_alias="WORKFLOW_DESIGNER_SUCCESS_DISPLAY_SECONDS",
        description="How long the wizard stays in the succeeded phase before closing",
    )

    enforce_trigger_minimum: bool = Field(
        default=True,
        validation_alias="WORKFLOW_DESIGNER_ENFORCE_TRIGGER_MINIMUM",
        description="Refuse to remove the last trigger of a definition",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @property
    def workflows_state_file(self) -> Path:
        """Path where authored definitions are persisted."""

        return self.state_path / "workflows.json"

    def wizard_options(self) -> dict[str, object]:
        """Keyword arguments for :class:`WorkflowWizard`."""

        return {
            "enforce_trigger_minimum": self.enforce_trigger_minimum,
            "save_latency_seconds": self.save_latency_seconds,
            "success_display_seconds": self.success_display_seconds,
        }
