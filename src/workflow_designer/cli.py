"""Shortcut for ``python -m workflow_designer.cli``.

The CLI is implemented in `workflow_designer.designer.main`.
"""

from __future__ import annotations

from workflow_designer.designer.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
