from __future__ import annotations

"""Lesson planning service: sequencing, time budgets, templates.

Every operation takes the caller identity as an explicit ``coach_id`` and
runs inside one ``repo.transaction()``. Sequencing itself is pure
(lessons.sequencer); this module loads, checks ownership, persists, and keeps
practice-session pointers consistent with the new sequence.

Read models are plain dicts (JSON-ready).
"""

import logging
import sqlite3
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

import clock
from catalog import repo as c_repo
from catalog import service as c_service
from coach_repo import CoachRepo
from errors import (
    BAD_INPUT,
    EXERCISE_NOT_FOUND,
    LESSON_BAD_PAYLOAD,
    LESSON_NOT_FOUND,
    LESSON_NOT_TEMPLATE,
    OCCURRENCE_NOT_FOUND,
    SESSION_VERSION_CONFLICT,
    TEAM_NOT_FOUND,
    TEMPLATE_NOT_FOUND,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from evaluation import repo as e_repo
from evaluation import service as e_service
from practice import engine as p_engine
from practice import repo as p_repo

from . import access as l_access
from . import naming as l_naming
from . import repo as l_repo
from . import sequencer as l_seq
from . import time_budget as l_tb
from .types import ExerciseRequest, Lesson, LessonExercise

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input normalization
# ---------------------------------------------------------------------------


def _normalize_date(value: Any, *, field: str) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return clock.require_datetime_iso(value, field=field)
    except ValueError as exc:
        raise ValidationError(BAD_INPUT, str(exc), {"field": field, "value": str(value)}) from exc


def _require_team(cur: sqlite3.Cursor, team_id: Optional[str], *, coach_id: str) -> Optional[Any]:
    if not team_id:
        return None
    team = c_repo.get_team(cur, str(team_id))
    if team is None:
        raise NotFoundError.for_entity("team", team_id, code=TEAM_NOT_FOUND)
    if team.coach_id != str(coach_id):
        raise ValidationError(BAD_INPUT, "Team belongs to another coach", {"kind": "team", "id": str(team_id)})
    return team


def _require_template_id(cur: sqlite3.Cursor, template_id: Optional[str], *, coach_id: str) -> Optional[str]:
    if not template_id:
        return None
    tpl = e_repo.get_template(cur, str(template_id))
    # Private rubrics of other coaches are reported as missing.
    if tpl is None or not tpl.is_accessible_to(coach_id):
        raise NotFoundError.for_entity("evaluation_template", template_id, code=TEMPLATE_NOT_FOUND)
    return str(template_id)


def _require_exercise(cur: sqlite3.Cursor, exercise_id: Any, *, coach_id: str):
    exercise = c_repo.get_exercise(cur, str(exercise_id))
    # Private exercises of other coaches are reported as missing.
    if exercise is None or not exercise.is_accessible_to(coach_id):
        raise NotFoundError.for_entity("exercise", exercise_id, code=EXERCISE_NOT_FOUND)
    return exercise


def _exercise_requests(
    cur: sqlite3.Cursor,
    items: Sequence[Mapping[str, Any]],
    *,
    coach_id: str,
) -> List[ExerciseRequest]:
    out: List[ExerciseRequest] = []
    for pos, item in enumerate(items or ()):
        if not isinstance(item, Mapping) or not item.get("exercise_id"):
            raise ValidationError(LESSON_BAD_PAYLOAD, "exercise_id is required", {"position": pos})
        out.append(
            ExerciseRequest(
                exercise=_require_exercise(cur, item["exercise_id"], coach_id=coach_id),
                planned_duration_minutes=item.get("planned_duration_minutes"),
                evaluation_template_id=_require_template_id(cur, item.get("evaluation_template_id"), coach_id=coach_id),
                exercise_notes=item.get("exercise_notes"),
            )
        )
    return out


def _copy_occurrences(occurrences: Sequence[LessonExercise]) -> List[ExerciseRequest]:
    return [
        ExerciseRequest(
            exercise=le.exercise,
            planned_duration_minutes=le.planned_duration_minutes,
            evaluation_template_id=le.evaluation_template_id,
            exercise_notes=le.exercise_notes,
        )
        for le in l_seq.ordered(occurrences)
        if le.exercise is not None
    ]


# ---------------------------------------------------------------------------
# Persistence helpers
# ---------------------------------------------------------------------------


def _resync_sessions(cur: sqlite3.Cursor, *, lesson_id: str, occurrences: Sequence[LessonExercise], now: str) -> int:
    """Re-point every session of the lesson at the new sequence (index = position)."""
    changed = 0
    for session in p_repo.list_sessions_for_lesson(cur, lesson_id):
        updated = p_engine.resync_pointer(session, occurrences, now=now)
        if updated is session:
            continue
        if not p_repo.update_session(cur, session=updated, expected_version=session.version):
            raise ConflictError(
                SESSION_VERSION_CONFLICT,
                "Practice session changed concurrently",
                {"kind": "practice_session", "id": session.session_id},
            )
        changed += 1
    return changed


def _store_sequence(
    cur: sqlite3.Cursor,
    *,
    lesson_id: str,
    occurrences: Sequence[LessonExercise],
    removed_ids: Sequence[str],
    total: int,
    now: str,
) -> None:
    """Persist a dense sequence and everything that depends on it, in FK-safe order."""
    if removed_ids:
        p_repo.delete_evaluations_for_occurrences(cur, removed_ids)
    _resync_sessions(cur, lesson_id=lesson_id, occurrences=occurrences, now=now)
    if removed_ids:
        l_repo.delete_occurrences(cur, removed_ids)
    l_repo.write_sequence(cur, lesson_id=lesson_id, occurrences=occurrences)
    l_repo.set_total_duration(cur, lesson_id=lesson_id, total=total, now=now)


def _insert_new_lesson(
    cur: sqlite3.Cursor,
    *,
    coach_id: str,
    name: str,
    team_id: Optional[str],
    scheduled_date: Optional[str],
    workshop_type: Optional[str],
    is_template: bool,
    requests: Sequence[ExerciseRequest],
    now: str,
) -> str:
    lesson_id = str(uuid4())
    occurrences, total = l_seq.create_sequence(requests, lesson_id=lesson_id)
    l_repo.insert_lesson(
        cur,
        lesson=Lesson(
            lesson_id=lesson_id,
            coach_id=str(coach_id),
            name=name,
            team_id=team_id,
            scheduled_date=scheduled_date,
            workshop_type=workshop_type,
            is_template=bool(is_template),
            total_duration_minutes=total,
        ),
        now=now,
    )
    l_repo.write_sequence(cur, lesson_id=lesson_id, occurrences=occurrences)
    return lesson_id


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


def _occurrence_view(cur: sqlite3.Cursor, le: LessonExercise) -> Dict[str, Any]:
    resolved = e_service.resolve_for_occurrence(cur, le)
    ex = le.exercise
    return {
        "lesson_exercise_id": le.lesson_exercise_id,
        "exercise_id": le.exercise_id,
        "exercise_name": ex.name if ex else None,
        "exercise_description": ex.description if ex else None,
        "focus_areas": list(ex.focus_areas) if ex else [],
        "order_index": int(le.order_index),
        "planned_duration_minutes": le.planned_duration_minutes,
        "formatted_duration": l_tb.format_duration(le.planned_duration_minutes),
        "evaluation_template_id": resolved.template.template_id,
        "evaluation_template_name": resolved.template.name,
        "evaluation_template_source": resolved.source,
        "exercise_notes": le.exercise_notes,
    }


def build_lesson_view(cur: sqlite3.Cursor, lesson: Lesson) -> Dict[str, Any]:
    """Full lesson read model: sequence with resolved rubrics plus the time budget."""
    occurrences = l_seq.ordered(lesson.exercises)
    team = c_repo.get_team(cur, lesson.team_id) if lesson.team_id else None
    breakdown = l_tb.detailed_breakdown(occurrences)
    return {
        "lesson_id": lesson.lesson_id,
        "coach_id": lesson.coach_id,
        "team_id": lesson.team_id,
        "team_name": team.name if team else None,
        "name": lesson.name,
        "scheduled_date": lesson.scheduled_date,
        "workshop_type": lesson.workshop_type,
        "is_template": bool(lesson.is_template),
        "total_duration_minutes": int(lesson.total_duration_minutes),
        "formatted_total_duration": l_tb.format_duration(lesson.total_duration_minutes),
        "exercises": [_occurrence_view(cur, le) for le in occurrences],
        "focus_area_minutes": l_tb.focus_area_breakdown(occurrences),
        "focus_area_breakdown": [
            {
                "focus_area": row.focus_area,
                "minutes": row.minutes,
                "formatted_minutes": l_tb.format_duration(row.minutes),
                "percentage": round(row.percentage, 1),
            }
            for row in breakdown
        ],
        "created_at": lesson.created_at,
        "updated_at": lesson.updated_at,
    }


def _summary_view(lesson: Lesson) -> Dict[str, Any]:
    return {
        "lesson_id": lesson.lesson_id,
        "team_id": lesson.team_id,
        "name": lesson.name,
        "scheduled_date": lesson.scheduled_date,
        "workshop_type": lesson.workshop_type,
        "is_template": bool(lesson.is_template),
        "total_duration_minutes": int(lesson.total_duration_minutes),
        "formatted_total_duration": l_tb.format_duration(lesson.total_duration_minutes),
        "exercise_count": len(lesson.exercises),
    }


def _view_by_id(cur: sqlite3.Cursor, lesson_id: str) -> Dict[str, Any]:
    lesson = l_repo.get_lesson(cur, lesson_id)
    if lesson is None:
        raise NotFoundError.for_entity("lesson", lesson_id, code=LESSON_NOT_FOUND)
    return build_lesson_view(cur, lesson)


# ---------------------------------------------------------------------------
# Lessons
# ---------------------------------------------------------------------------


def create_lesson(
    *,
    repo: CoachRepo,
    coach_id: str,
    name: Optional[str] = None,
    team_id: Optional[str] = None,
    scheduled_date: Optional[str] = None,
    workshop_type: Optional[str] = None,
    exercises: Sequence[Mapping[str, Any]] = (),
    is_template: bool = False,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a lesson; the sequencer assigns indices 1..N in request order.

    Without a ``name`` one is generated from the team, workshop type and date.
    """
    now = clock.resolve_now(now_iso)
    date_iso = _normalize_date(scheduled_date, field="scheduled_date")
    with repo.transaction() as cur:
        c_service.require_coach(cur, coach_id)
        team = _require_team(cur, team_id, coach_id=coach_id)
        requests = _exercise_requests(cur, exercises, coach_id=coach_id)
        final_name = (name or "").strip() or l_naming.generate_name(
            team_name=team.name if team else None,
            workshop_type=workshop_type,
            scheduled_date=date_iso,
        )
        lesson_id = _insert_new_lesson(
            cur,
            coach_id=coach_id,
            name=final_name,
            team_id=team.team_id if team else None,
            scheduled_date=date_iso,
            workshop_type=workshop_type,
            is_template=is_template,
            requests=requests,
            now=now,
        )
        view = _view_by_id(cur, lesson_id)
    logger.info("LESSON_CREATED lesson=%s coach=%s exercises=%s", lesson_id, coach_id, len(requests))
    return view


def update_lesson(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    name: Optional[str] = None,
    team_id: Optional[str] = None,
    scheduled_date: Optional[str] = None,
    workshop_type: Optional[str] = None,
    exercises: Optional[Sequence[Mapping[str, Any]]] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Replace the lesson's metadata; ``exercises`` (when given) replaces the whole sequence.

    Replaced occurrences lose their scene evaluations, and session pointers
    into them are cleared.
    """
    now = clock.resolve_now(now_iso)
    date_iso = _normalize_date(scheduled_date, field="scheduled_date")
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        team = _require_team(cur, team_id, coach_id=coach_id)
        final_name = (name or "").strip() or l_naming.generate_name(
            team_name=team.name if team else None,
            workshop_type=workshop_type,
            scheduled_date=date_iso,
        )
        l_repo.update_lesson_fields(
            cur,
            lesson_id=lesson.lesson_id,
            name=final_name,
            team_id=team.team_id if team else None,
            scheduled_date=date_iso,
            workshop_type=workshop_type,
            now=now,
        )
        if exercises is not None:
            requests = _exercise_requests(cur, exercises, coach_id=coach_id)
            occurrences, total = l_seq.create_sequence(requests, lesson_id=lesson.lesson_id)
            _store_sequence(
                cur,
                lesson_id=lesson.lesson_id,
                occurrences=occurrences,
                removed_ids=[le.lesson_exercise_id for le in lesson.exercises],
                total=total,
                now=now,
            )
        view = _view_by_id(cur, lesson.lesson_id)
    logger.info("LESSON_UPDATED lesson=%s replaced_sequence=%s", lesson.lesson_id, exercises is not None)
    return view


def get_lesson(*, repo: CoachRepo, coach_id: str, lesson_id: str) -> Dict[str, Any]:
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        return build_lesson_view(cur, lesson)


def list_lessons(
    *,
    repo: CoachRepo,
    coach_id: str,
    templates: Optional[bool] = None,
    upcoming: bool = False,
    limit: Optional[int] = None,
    now_iso: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Lesson summaries of one coach. ``upcoming`` keeps scheduled non-templates from now on."""
    scheduled_from = clock.resolve_now(now_iso) if upcoming else None
    if upcoming:
        templates = False
    with repo.transaction() as cur:
        lessons = l_repo.list_lessons(
            cur,
            coach_id=str(coach_id),
            is_template=templates,
            scheduled_from=scheduled_from,
            limit=limit,
        )
    return [_summary_view(lesson) for lesson in lessons]


def delete_lesson(*, repo: CoachRepo, coach_id: str, lesson_id: str) -> Dict[str, Any]:
    """Delete a lesson with its occurrences, sessions, attendance, notes and evaluations."""
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        session_ids = [s.session_id for s in p_repo.list_sessions_for_lesson(cur, lesson.lesson_id)]
        counts = l_repo.delete_lesson_cascade(cur, lesson.lesson_id)
    logger.info("LESSON_DELETED lesson=%s sessions=%s", lesson.lesson_id, len(session_ids))
    return {"ok": True, "lesson_id": lesson.lesson_id, "deleted": counts}


# ---------------------------------------------------------------------------
# Sequence edits
# ---------------------------------------------------------------------------


def add_exercise(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    exercise_id: str,
    planned_duration_minutes: Optional[int] = None,
    evaluation_template_id: Optional[str] = None,
    exercise_notes: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Append an exercise at ``max(order_index) + 1``."""
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        exercise = c_repo.get_exercise(cur, str(exercise_id))
        if exercise is None:
            raise NotFoundError.for_entity("exercise", exercise_id, code=EXERCISE_NOT_FOUND)
        occurrences, created, total = l_seq.append_occurrence(
            lesson.exercises,
            exercise,
            lesson_id=lesson.lesson_id,
            coach_id=str(coach_id),
            planned_duration_minutes=planned_duration_minutes,
            evaluation_template_id=_require_template_id(cur, evaluation_template_id, coach_id=coach_id),
            exercise_notes=exercise_notes,
        )
        _store_sequence(cur, lesson_id=lesson.lesson_id, occurrences=occurrences, removed_ids=(), total=total, now=now)
        view = _view_by_id(cur, lesson.lesson_id)
    logger.info(
        "LESSON_EXERCISE_ADDED lesson=%s occurrence=%s order_index=%s",
        lesson.lesson_id,
        created.lesson_exercise_id,
        created.order_index,
    )
    added = next(e for e in view["exercises"] if e["lesson_exercise_id"] == created.lesson_exercise_id)
    return {"lesson_exercise": added, "lesson": view}


def remove_exercise(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    lesson_exercise_id: str,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Remove one occurrence and close the gap; its scene evaluations go with it."""
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        if l_repo.get_occurrence(cur, str(lesson_exercise_id)) is None:
            raise NotFoundError.for_entity("lesson_exercise", lesson_exercise_id, code=OCCURRENCE_NOT_FOUND)
        remaining, removed, total = l_seq.remove_occurrence(
            lesson.exercises,
            str(lesson_exercise_id),
            lesson_id=lesson.lesson_id,
        )
        _store_sequence(
            cur,
            lesson_id=lesson.lesson_id,
            occurrences=remaining,
            removed_ids=[removed.lesson_exercise_id],
            total=total,
            now=now,
        )
        view = _view_by_id(cur, lesson.lesson_id)
    logger.info("LESSON_EXERCISE_REMOVED lesson=%s occurrence=%s", lesson.lesson_id, removed.lesson_exercise_id)
    return view


def reorder_exercises(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    lesson_exercise_ids: Sequence[str],
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Apply a full permutation of the lesson's occurrence ids."""
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        occurrences, total = l_seq.reorder_occurrences(lesson.exercises, lesson_exercise_ids)
        _store_sequence(cur, lesson_id=lesson.lesson_id, occurrences=occurrences, removed_ids=(), total=total, now=now)
        view = _view_by_id(cur, lesson.lesson_id)
    logger.info("LESSON_EXERCISES_REORDERED lesson=%s count=%s", lesson.lesson_id, len(occurrences))
    return view


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def save_as_template(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    name: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Copy a lesson and its sequence into a new template lesson ("<name> Template")."""
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        template_id = _insert_new_lesson(
            cur,
            coach_id=coach_id,
            name=(name or "").strip() or l_naming.template_name(lesson.name),
            team_id=None,
            scheduled_date=None,
            workshop_type=lesson.workshop_type,
            is_template=True,
            requests=_copy_occurrences(lesson.exercises),
            now=now,
        )
        view = _view_by_id(cur, template_id)
    logger.info("LESSON_TEMPLATE_SAVED lesson=%s template=%s", lesson.lesson_id, template_id)
    return view


def create_from_template(
    *,
    repo: CoachRepo,
    coach_id: str,
    template_id: str,
    scheduled_date: Optional[str] = None,
    name: Optional[str] = None,
    team_id: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Instantiate a template as a regular lesson (optionally for a team and date)."""
    now = clock.resolve_now(now_iso)
    date_iso = _normalize_date(scheduled_date, field="scheduled_date")
    with repo.transaction() as cur:
        template = l_access.require_lesson(cur, lesson_id=template_id, coach_id=coach_id)
        if not template.is_template:
            raise ValidationError(
                LESSON_NOT_TEMPLATE,
                "Specified lesson is not a template",
                {"kind": "lesson", "id": template.lesson_id},
            )
        team = _require_team(cur, team_id, coach_id=coach_id)
        lesson_id = _insert_new_lesson(
            cur,
            coach_id=coach_id,
            name=(name or "").strip()
            or l_naming.generate_name(
                team_name=team.name if team else None,
                workshop_type=template.workshop_type,
                scheduled_date=date_iso,
            ),
            team_id=team.team_id if team else None,
            scheduled_date=date_iso,
            workshop_type=template.workshop_type,
            is_template=False,
            requests=_copy_occurrences(template.exercises),
            now=now,
        )
        view = _view_by_id(cur, lesson_id)
    logger.info("LESSON_CREATED_FROM_TEMPLATE template=%s lesson=%s", template.lesson_id, lesson_id)
    return view


# ---------------------------------------------------------------------------
# Time budget
# ---------------------------------------------------------------------------


def get_focus_area_breakdown(*, repo: CoachRepo, coach_id: str, lesson_id: str) -> Dict[str, Any]:
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
    rows = l_tb.detailed_breakdown(lesson.exercises)
    return {
        "lesson_id": lesson.lesson_id,
        "total_duration_minutes": l_seq.total_duration(lesson.exercises),
        "focus_area_minutes": l_tb.focus_area_breakdown(lesson.exercises),
        "rows": [
            {
                "focus_area": r.focus_area,
                "minutes": r.minutes,
                "formatted_minutes": l_tb.format_duration(r.minutes),
                "percentage": round(r.percentage, 1),
                "formatted_percentage": r.formatted_percentage,
            }
            for r in rows
        ],
    }


def estimate_duration_for_performers(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    performer_count: int,
) -> Dict[str, Any]:
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
    base = l_seq.total_duration(lesson.exercises)
    estimated = l_tb.scale_for_performer_count(base, performer_count)
    return {
        "lesson_id": lesson.lesson_id,
        "base_duration_minutes": base,
        "performer_count": int(performer_count),
        "estimated_duration_minutes": estimated,
        "formatted_duration": l_tb.format_duration(estimated),
    }
