"""db_schema package.

SQLite DDL + migrations for the coaching database, one module per subsystem.

Public API:
- apply_schema(...)
"""

from .init import apply_schema  # noqa: F401

__all__ = ["apply_schema"]
