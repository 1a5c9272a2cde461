"""Workflow Designer.

Authoring engine for business workflow definitions:
- a typed catalog of step and trigger kinds
- a step graph editor and trigger configurator
- a four-stage authoring wizard with an asynchronous save boundary
- a persisted definition store and a read-only template library
"""

__version__ = "0.1.0"

from workflow_designer.designer.config import DesignerSettings

__all__ = ["__version__", "DesignerSettings"]
