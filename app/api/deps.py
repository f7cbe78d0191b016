from __future__ import annotations

"""Per-request helpers shared by the route modules."""

from fastapi import Header

import config
from coach_repo import CoachRepo


def open_repo() -> CoachRepo:
    """One SQLite connection per request (use as a context manager)."""
    return CoachRepo(config.get_db_path())


def coach_id_header(x_coach_id: str = Header(..., alias=config.COACH_ID_HEADER, min_length=1)) -> str:
    """Caller identity; authentication happens upstream of this service."""
    return x_coach_id.strip()
