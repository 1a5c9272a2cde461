"""Workflow definition domain.

This package introduces first-class types for:
- Step and trigger kinds with their typed configuration payloads
- Workflow definitions and their status lifecycle
- Pure graph and trigger editing operations
- The four-stage authoring wizard
- The definition store and the template library

Nothing here executes a workflow; definitions are authored and persisted only.
"""

__all__: list[str] = []
