from __future__ import annotations

"""Process-level settings (environment driven).

Subsystem tuning constants live in ``<package>/config.py``; this module only
holds what depends on the deployment.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

DB_PATH_ENV = "IMPROV_COACH_DB_PATH"
LOG_LEVEL_ENV = "IMPROV_COACH_LOG_LEVEL"
SESSION_LOCK_TIMEOUT_ENV = "IMPROV_COACH_SESSION_LOCK_TIMEOUT_S"

# Header carrying the caller identity (authentication happens upstream).
COACH_ID_HEADER = "X-Coach-Id"


def get_db_path() -> str:
    db_path = (os.environ.get(DB_PATH_ENV) or "").strip()
    if not db_path:
        raise RuntimeError(f"{DB_PATH_ENV} is required (no default db_path).")
    return db_path


def get_log_level() -> str:
    return (os.environ.get(LOG_LEVEL_ENV) or "INFO").strip().upper()


def get_session_lock_timeout_s() -> float | None:
    raw = (os.environ.get(SESSION_LOCK_TIMEOUT_ENV) or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{SESSION_LOCK_TIMEOUT_ENV} must be a number, got {raw!r}") from exc
