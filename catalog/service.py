from __future__ import annotations

"""Thin orchestration for reference data (creation + seeding).

Only what the core needs to have something to reference: there is no
update/delete path here.
"""

import logging
import sqlite3
from typing import Any, Dict, Optional, Sequence
from uuid import uuid4

import clock
from coach_repo import CoachRepo
from errors import BAD_INPUT, COACH_NOT_FOUND, TEAM_NOT_FOUND, NotFoundError, ValidationError

from . import defaults as c_defaults
from . import repo as c_repo
from .types import Exercise

logger = logging.getLogger(__name__)


def require_coach(cur: sqlite3.Cursor, coach_id: str) -> str:
    if not c_repo.coach_exists(cur, str(coach_id)):
        raise NotFoundError.for_entity("coach", coach_id, code=COACH_NOT_FOUND)
    return str(coach_id)


def create_coach(*, repo: CoachRepo, display_name: str, coach_id: Optional[str] = None, now_iso: Optional[str] = None) -> str:
    cid = str(coach_id or uuid4())
    with repo.transaction() as cur:
        if c_repo.coach_exists(cur, cid):
            raise ValidationError(BAD_INPUT, "Coach already exists", {"kind": "coach", "id": cid})
        c_repo.insert_coach(cur, coach_id=cid, display_name=str(display_name), now=clock.resolve_now(now_iso))
    return cid


def create_team(*, repo: CoachRepo, coach_id: str, name: str, now_iso: Optional[str] = None) -> str:
    team_id = str(uuid4())
    with repo.transaction() as cur:
        require_coach(cur, coach_id)
        c_repo.insert_team(cur, team_id=team_id, coach_id=str(coach_id), name=str(name), now=clock.resolve_now(now_iso))
    return team_id


def create_performer(
    *,
    repo: CoachRepo,
    coach_id: str,
    first_name: str,
    last_name: Optional[str] = None,
    team_ids: Sequence[str] = (),
    now_iso: Optional[str] = None,
) -> str:
    """Create a performer owned by ``coach_id``; every team must belong to the same coach."""
    performer_id = str(uuid4())
    with repo.transaction() as cur:
        require_coach(cur, coach_id)
        for tid in team_ids:
            team = c_repo.get_team(cur, tid)
            if team is None:
                raise NotFoundError.for_entity("team", tid, code=TEAM_NOT_FOUND)
            if team.coach_id != str(coach_id):
                raise ValidationError(BAD_INPUT, "Team belongs to another coach", {"kind": "team", "id": tid})
        c_repo.insert_performer(
            cur,
            performer_id=performer_id,
            coach_id=str(coach_id),
            first_name=str(first_name),
            last_name=last_name,
            team_ids=[str(t) for t in team_ids],
            now=clock.resolve_now(now_iso),
        )
    return performer_id


def create_exercise(
    *,
    repo: CoachRepo,
    name: str,
    minimum_duration_minutes: Optional[int] = None,
    focus_areas: Sequence[str] = (),
    description: Optional[str] = None,
    default_template_id: Optional[str] = None,
    is_public: bool = False,
    created_by: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Exercise:
    exercise = Exercise(
        exercise_id=str(uuid4()),
        name=str(name),
        description=description,
        minimum_duration_minutes=minimum_duration_minutes,
        focus_areas=tuple(str(f) for f in focus_areas),
        default_template_id=default_template_id,
        is_public=bool(is_public),
        created_by=created_by,
    )
    with repo.transaction() as cur:
        c_repo.insert_exercise(cur, exercise=exercise, now=clock.resolve_now(now_iso))
    return exercise


def ensure_system_exercises(*, repo: CoachRepo, now_iso: Optional[str] = None) -> Dict[str, Any]:
    """Seed the system focus areas and exercise library (idempotent)."""
    now = clock.resolve_now(now_iso)
    created = 0
    with repo.transaction() as cur:
        for fa in c_defaults.SYSTEM_FOCUS_AREAS:
            c_repo.ensure_focus_area(cur, name=fa["name"], description=fa.get("description"))
        for entry in c_defaults.SYSTEM_EXERCISES:
            if c_repo.get_exercise(cur, entry["exercise_id"]) is not None:
                continue
            c_repo.insert_exercise(
                cur,
                exercise=Exercise(
                    exercise_id=str(entry["exercise_id"]),
                    name=str(entry["name"]),
                    description=entry.get("description"),
                    minimum_duration_minutes=entry.get("minimum_duration_minutes"),
                    focus_areas=tuple(entry.get("focus_areas") or ()),
                    is_public=True,
                    is_system=True,
                ),
                now=now,
            )
            created += 1
    if created:
        logger.info("SYSTEM_EXERCISES_SEEDED created=%s", created)
    return {"ok": True, "created": created}
