from __future__ import annotations

"""Evaluation-template (rubric) service: seeding, authoring and resolution.

- ensure_system_default_template: seed the single system default (idempotent).
- create_template: store a rubric, optionally as the default for one exercise.
- resolve_for_occurrence: cursor-level three-tier resolution.
- resolve_template_for_occurrence: public read with ownership check.
"""

import logging
import sqlite3
from typing import Any, Dict, Mapping, Optional, Sequence
from uuid import uuid4

import clock
from catalog import repo as c_repo
from coach_repo import CoachRepo
from errors import (
    BAD_INPUT,
    EXERCISE_NOT_FOUND,
    OCCURRENCE_NOT_FOUND,
    TEMPLATE_NOT_FOUND,
    NotFoundError,
    ValidationError,
)
from lessons import access as l_access
from lessons import repo as l_repo

from . import defaults as e_defaults
from . import repo as e_repo
from . import resolver as e_resolver
from .types import EvaluationCriterion, EvaluationTemplate, ResolvedTemplate

logger = logging.getLogger(__name__)


def _criteria_from_payload(raw: Sequence[Mapping[str, Any]]) -> tuple:
    out = []
    seen: set[str] = set()
    for c in raw or ():
        name = str(c.get("name") or "").strip()
        if not name:
            raise ValidationError(BAD_INPUT, "Criterion name is required", {"criterion": dict(c)})
        if name in seen:
            raise ValidationError(BAD_INPUT, "Duplicate criterion name", {"criterion": name})
        seen.add(name)
        max_score = c.get("max_score")
        if isinstance(max_score, bool) or not isinstance(max_score, int) or max_score <= 0:
            raise ValidationError(BAD_INPUT, "max_score must be a positive integer", {"criterion": name, "max_score": max_score})
        out.append(
            EvaluationCriterion(
                name=name,
                max_score=int(max_score),
                description=c.get("description"),
                focus_area=c.get("focus_area"),
            )
        )
    return tuple(out)


def ensure_system_default_template(*, repo: CoachRepo, now_iso: Optional[str] = None) -> Dict[str, Any]:
    """Seed the system default rubric once; a no-op when any default already exists."""
    with repo.transaction() as cur:
        existing = e_repo.get_system_default(cur)
        if existing is not None:
            return {"ok": True, "created": False, "template_id": existing.template_id}
        template = EvaluationTemplate(
            template_id=e_defaults.SYSTEM_DEFAULT_TEMPLATE_ID,
            name=e_defaults.SYSTEM_DEFAULT_TEMPLATE_NAME,
            criteria=_criteria_from_payload(e_defaults.SYSTEM_DEFAULT_CRITERIA),
            is_default=True,
        )
        e_repo.insert_template(cur, template=template, now=clock.resolve_now(now_iso))
    logger.info("SYSTEM_DEFAULT_TEMPLATE_SEEDED template=%s", template.template_id)
    return {"ok": True, "created": True, "template_id": template.template_id}


def create_template(
    *,
    repo: CoachRepo,
    coach_id: str,
    name: str,
    criteria: Sequence[Mapping[str, Any]],
    exercise_id: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a coach-owned rubric.

    With ``exercise_id`` the rubric becomes that exercise's default (one-to-one;
    system exercises and other coaches' exercises cannot be re-pointed).
    """
    if not str(name or "").strip():
        raise ValidationError(BAD_INPUT, "Template name is required", {"field": "name"})
    template = EvaluationTemplate(
        template_id=str(uuid4()),
        name=str(name).strip(),
        criteria=_criteria_from_payload(criteria),
        created_by=str(coach_id),
        exercise_id=str(exercise_id) if exercise_id else None,
    )
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        if template.exercise_id:
            exercise = c_repo.get_exercise(cur, template.exercise_id)
            if exercise is None or not exercise.is_accessible_to(coach_id):
                raise NotFoundError.for_entity("exercise", template.exercise_id, code=EXERCISE_NOT_FOUND)
            if exercise.created_by != str(coach_id):
                raise ValidationError(
                    BAD_INPUT,
                    "Only the exercise owner can set its default rubric",
                    {"kind": "exercise", "id": exercise.exercise_id},
                )
            if exercise.default_template_id:
                raise ValidationError(
                    BAD_INPUT,
                    "Exercise already has a default rubric",
                    {"kind": "exercise", "id": exercise.exercise_id, "template_id": exercise.default_template_id},
                )
        e_repo.insert_template(cur, template=template, now=now)
        if template.exercise_id:
            c_repo.set_exercise_default_template(cur, exercise_id=template.exercise_id, template_id=template.template_id)
    logger.info("EVALUATION_TEMPLATE_CREATED template=%s exercise=%s", template.template_id, template.exercise_id)
    return template.to_payload()


def get_template(*, repo: CoachRepo, coach_id: str, template_id: str) -> Dict[str, Any]:
    with repo.transaction() as cur:
        tpl = e_repo.get_template(cur, str(template_id))
    if tpl is None or not tpl.is_accessible_to(coach_id):
        raise NotFoundError.for_entity("evaluation_template", template_id, code=TEMPLATE_NOT_FOUND)
    return tpl.to_payload()


def resolve_for_occurrence(cur: sqlite3.Cursor, occurrence: Any) -> ResolvedTemplate:
    """Resolve the rubric in force for a loaded ``LessonExercise`` (cursor-level)."""
    return e_resolver.resolve_template(
        occurrence,
        get_template=lambda tid: e_repo.get_template(cur, tid),
        get_system_default=lambda: e_repo.get_system_default(cur),
    )


def resolve_template_for_occurrence(*, repo: CoachRepo, coach_id: str, occurrence_id: str) -> Dict[str, Any]:
    with repo.transaction() as cur:
        occurrence = l_repo.get_occurrence(cur, str(occurrence_id))
        if occurrence is None:
            raise NotFoundError.for_entity("lesson_exercise", occurrence_id, code=OCCURRENCE_NOT_FOUND)
        l_access.require_lesson(cur, lesson_id=occurrence.lesson_id, coach_id=coach_id)
        resolved = resolve_for_occurrence(cur, occurrence)
    out = resolved.to_payload()
    out["lesson_exercise_id"] = occurrence.lesson_exercise_id
    return out
