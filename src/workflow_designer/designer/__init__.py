"""Local-first workflow designer components.

Provides:
- Settings loaded from .env
- Structured logging
- A small CLI surface over the definition store and template library
"""
