from __future__ import annotations

"""Tuning parameters for live practice sessions.

This module is the single place to tune:
- note type labels and their limits
- the per-session lock acquisition timeout default
"""

from typing import Optional

# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

# Free text; "overall" and "exercise" are the labels clients use.
DEFAULT_NOTE_TYPE: str = "overall"
NOTE_TYPE_MAX_LEN: int = 50

RUBRIC_TYPE_MAX_LEN: int = 50

# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

# Seconds to wait for a session's write lock. None waits forever.
# Overridden by IMPROV_COACH_SESSION_LOCK_TIMEOUT_S (see config.py).
DEFAULT_SESSION_LOCK_TIMEOUT_S: Optional[float] = 10.0
