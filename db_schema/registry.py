# db_schema/registry.py
"""Schema registry + applier.

A schema module exposes ``ddl(*, now, schema_version) -> str`` and may expose
``migrate(cur, *, ensure_columns)`` for column additions on older databases.
All DDL runs as one script first; migrate hooks follow in module order.
"""

from __future__ import annotations

import logging
import sqlite3
from types import ModuleType
from typing import Callable, Iterable, List, Mapping

logger = logging.getLogger(__name__)

# Same shape as CoachRepo._ensure_table_columns(cur, table, columns).
EnsureColumnsFn = Callable[[sqlite3.Cursor, str, Mapping[str, str]], None]


def _module_name(m: ModuleType) -> str:
    return str(getattr(m, "__name__", m)).rsplit(".", 1)[-1]


def apply_all(
    cur: sqlite3.Cursor,
    *,
    modules: Iterable[ModuleType],
    now: str,
    schema_version: str,
    ensure_columns: EnsureColumnsFn,
) -> List[str]:
    """Run every module's DDL, then its migrations. Returns the applied module names."""
    ordered = list(modules)
    missing = [_module_name(m) for m in ordered if not callable(getattr(m, "ddl", None))]
    if missing:
        raise ValueError(f"schema modules without ddl(): {missing}")

    script = "\n\n".join(m.ddl(now=now, schema_version=schema_version) for m in ordered)
    cur.executescript(script)

    migrated: List[str] = []
    for m in ordered:
        hook = getattr(m, "migrate", None)
        if hook is not None:
            hook(cur, ensure_columns=ensure_columns)
            migrated.append(_module_name(m))

    names = [_module_name(m) for m in ordered]
    logger.debug("SCHEMA_APPLIED modules=%s migrated=%s version=%s", names, migrated, schema_version)
    return names
