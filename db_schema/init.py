# db_schema/init.py
"""Entry point used by CoachRepo.init_db() to build or upgrade the database."""

from __future__ import annotations

import sqlite3
from types import ModuleType
from typing import List, Sequence

from . import catalog, evaluation, lessons, practice
from .registry import EnsureColumnsFn, apply_all

# Foreign-key order: coaches/teams/performers/exercises, then rubrics,
# then lesson plans (which point at rubrics), then sessions.
DEFAULT_MODULES: Sequence[ModuleType] = (catalog, evaluation, lessons, practice)


def apply_schema(
    cur: sqlite3.Cursor,
    *,
    now: str,
    schema_version: str,
    ensure_columns: EnsureColumnsFn,
    modules: Sequence[ModuleType] = DEFAULT_MODULES,
) -> List[str]:
    return apply_all(
        cur,
        modules=modules,
        now=now,
        schema_version=schema_version,
        ensure_columns=ensure_columns,
    )
