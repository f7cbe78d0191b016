from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

import clock
import config
from catalog import repo as c_repo
from coach_repo import CoachRepo
from errors import (
    BAD_INPUT,
    NOTE_BAD_PAYLOAD,
    OCCURRENCE_NOT_FOUND,
    PERFORMER_NOT_FOUND,
    SESSION_LESSON_MISMATCH,
    SESSION_NOT_FOUND,
    SESSION_VERSION_CONFLICT,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from evaluation import resolver as e_resolver
from evaluation import service as e_service
from lessons import access as l_access
from lessons import repo as l_repo
from lessons.types import Lesson

from . import config as p_cfg
from . import engine as p_engine
from . import locks as p_locks
from . import repo as p_repo
from .types import PracticeNote, PracticeSession, SceneEvaluation

logger = logging.getLogger(__name__)

SessionStep = Callable[[sqlite3.Cursor, PracticeSession, Lesson, str], PracticeSession]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lock_timeout_s() -> Optional[float]:
    configured = config.get_session_lock_timeout_s()
    return configured if configured is not None else p_cfg.DEFAULT_SESSION_LOCK_TIMEOUT_S


def _require_session(cur: sqlite3.Cursor, *, session_id: str, coach_id: str) -> Tuple[PracticeSession, Lesson]:
    session = p_repo.get_session(cur, str(session_id))
    if session is None:
        raise NotFoundError.for_entity("practice_session", session_id, code=SESSION_NOT_FOUND)
    lesson = l_access.require_lesson(cur, lesson_id=session.lesson_id, coach_id=coach_id)
    return session, lesson


def _require_performers(cur: sqlite3.Cursor, performer_ids: Sequence[str], *, coach_id: str) -> List[str]:
    wanted = list(dict.fromkeys(str(p) for p in performer_ids))
    known = c_repo.find_existing_performer_ids(cur, wanted, coach_id=coach_id)
    missing = [p for p in wanted if p not in known]
    if missing:
        raise NotFoundError(
            PERFORMER_NOT_FOUND,
            "performer not found",
            {"kind": "performer", "id": missing[0], "missing": missing},
        )
    return wanted


def session_view(cur: sqlite3.Cursor, session: PracticeSession, lesson: Lesson) -> Dict[str, Any]:
    current = None
    if session.current_exercise_id:
        current = next((le for le in lesson.exercises if le.lesson_exercise_id == session.current_exercise_id), None)
    return {
        "session_id": session.session_id,
        "lesson_id": lesson.lesson_id,
        "lesson_name": lesson.name,
        "state": session.state,
        "start_time": session.start_time,
        "end_time": session.end_time,
        "current_exercise_index": int(session.current_exercise_index),
        "current_exercise_id": session.current_exercise_id,
        "current_exercise_name": current.exercise.name if current is not None and current.exercise else None,
        "attendee_ids": sorted(session.attendee_ids),
        "version": int(session.version),
        "created_at": session.created_at,
        "updated_at": session.updated_at,
    }


def _mutate_session(
    *,
    repo: CoachRepo,
    coach_id: str,
    session_id: str,
    expected_version: Optional[int],
    now_iso: Optional[str],
    action: str,
    step: SessionStep,
) -> Dict[str, Any]:
    """Serialized read-modify-write of one session row.

    Lock order: session lock -> transaction. ``expected_version`` lets a client
    assert which snapshot it acted on; the UPDATE is version-checked anyway.
    """
    now = clock.resolve_now(now_iso)
    with p_locks.session_write_lock(str(session_id), reason=action, timeout_s=_lock_timeout_s()):
        with repo.transaction() as cur:
            session, lesson = _require_session(cur, session_id=session_id, coach_id=coach_id)
            if expected_version is not None and int(expected_version) != session.version:
                raise ConflictError(
                    SESSION_VERSION_CONFLICT,
                    "Practice session was modified since it was read",
                    {"kind": "practice_session", "id": session.session_id, "expected": int(expected_version), "actual": session.version},
                )
            updated = step(cur, session, lesson, now)
            if updated is session:
                return session_view(cur, session, lesson)
            if not p_repo.update_session(cur, session=updated, expected_version=session.version):
                logger.warning("SESSION_VERSION_CONFLICT session=%s action=%s", session.session_id, action)
                raise ConflictError(
                    SESSION_VERSION_CONFLICT,
                    "Practice session changed concurrently",
                    {"kind": "practice_session", "id": session.session_id},
                )
            stored = p_repo.get_session(cur, session.session_id)
            view = session_view(cur, stored, lesson)
    logger.info("SESSION_%s session=%s version=%s", action, view["session_id"], view["version"])
    return view


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


def start_session(*, repo: CoachRepo, coach_id: str, lesson_id: str, now_iso: Optional[str] = None) -> Dict[str, Any]:
    """Start a new LIVE session (index 0, pointer at the first exercise if any)."""
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        session = p_engine.start(
            session_id=str(uuid4()),
            lesson_id=lesson.lesson_id,
            occurrences=lesson.exercises,
            now=now,
        )
        p_repo.insert_session(cur, session=session)
        view = session_view(cur, session, lesson)
    logger.info("SESSION_STARTED session=%s lesson=%s", session.session_id, lesson.lesson_id)
    return view


def get_session(*, repo: CoachRepo, coach_id: str, session_id: str) -> Dict[str, Any]:
    with repo.transaction() as cur:
        session, lesson = _require_session(cur, session_id=session_id, coach_id=coach_id)
        return session_view(cur, session, lesson)


def list_sessions(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    live_only: bool = False,
) -> List[Dict[str, Any]]:
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        sessions = p_repo.list_sessions_for_lesson(cur, lesson.lesson_id, live_only=live_only)
        return [session_view(cur, s, lesson) for s in sessions]


def advance_to(
    *,
    repo: CoachRepo,
    coach_id: str,
    session_id: str,
    lesson_exercise_id: str,
    expected_version: Optional[int] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    def step(cur: sqlite3.Cursor, session: PracticeSession, lesson: Lesson, now: str) -> PracticeSession:
        return p_engine.advance_to(session, lesson.exercises, str(lesson_exercise_id), now=now)

    return _mutate_session(
        repo=repo,
        coach_id=coach_id,
        session_id=session_id,
        expected_version=expected_version,
        now_iso=now_iso,
        action="ADVANCED",
        step=step,
    )


def end_session(
    *,
    repo: CoachRepo,
    coach_id: str,
    session_id: str,
    expected_version: Optional[int] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Close a LIVE session; ending a closed one raises ValidationError (SESSION_ALREADY_CLOSED)."""

    def step(cur: sqlite3.Cursor, session: PracticeSession, lesson: Lesson, now: str) -> PracticeSession:
        return p_engine.end(session, now=now)

    return _mutate_session(
        repo=repo,
        coach_id=coach_id,
        session_id=session_id,
        expected_version=expected_version,
        now_iso=now_iso,
        action="ENDED",
        step=step,
    )


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


def record_attendance(
    *,
    repo: CoachRepo,
    coach_id: str,
    session_id: str,
    performer_id: str,
    present: bool,
    expected_version: Optional[int] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Mark one performer present/absent. Repeating the same call changes nothing."""

    def step(cur: sqlite3.Cursor, session: PracticeSession, lesson: Lesson, now: str) -> PracticeSession:
        _require_performers(cur, [performer_id], coach_id=coach_id)
        return p_engine.record_attendance(session, str(performer_id), bool(present), now=now)

    return _mutate_session(
        repo=repo,
        coach_id=coach_id,
        session_id=session_id,
        expected_version=expected_version,
        now_iso=now_iso,
        action="ATTENDANCE_RECORDED",
        step=step,
    )


def replace_attendance(
    *,
    repo: CoachRepo,
    coach_id: str,
    session_id: str,
    performer_ids: Sequence[str],
    expected_version: Optional[int] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Replace the whole roster atomically: one unknown performer and nothing changes."""

    def step(cur: sqlite3.Cursor, session: PracticeSession, lesson: Lesson, now: str) -> PracticeSession:
        known = c_repo.find_existing_performer_ids(cur, performer_ids, coach_id=coach_id)
        return p_engine.replace_attendance(session, performer_ids, known_performer_ids=known, now=now)

    return _mutate_session(
        repo=repo,
        coach_id=coach_id,
        session_id=session_id,
        expected_version=expected_version,
        now_iso=now_iso,
        action="ATTENDANCE_REPLACED",
        step=step,
    )


def get_attendees(*, repo: CoachRepo, coach_id: str, session_id: str) -> List[Dict[str, Any]]:
    with repo.transaction() as cur:
        session, _ = _require_session(cur, session_id=session_id, coach_id=coach_id)
        performers = c_repo.get_performers(cur, session.attendee_ids)
    return [
        {
            "performer_id": p.performer_id,
            "first_name": p.first_name,
            "last_name": p.last_name,
            "team_ids": list(p.team_ids),
        }
        for p in performers
    ]


# ---------------------------------------------------------------------------
# Scene evaluations (append-only)
# ---------------------------------------------------------------------------


def _check_label(value: Optional[str], *, field: str, max_len: int, code: str) -> Optional[str]:
    if value is None:
        return None
    label = str(value).strip()
    if len(label) > max_len:
        raise ValidationError(code, f"{field} is too long", {"field": field, "max_len": max_len})
    return label or None


def record_scene_evaluation(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_exercise_id: str,
    session_id: Optional[str] = None,
    performer_ids: Sequence[str] = (),
    scores: Optional[Mapping[str, Any]] = None,
    notes: Optional[str] = None,
    rubric_type: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    """Store one scene evaluation against an occurrence (and optionally a session).

    Scores are checked against the rubric resolved for the occurrence at write
    time; ``rubric_type`` is a free caller label and is stored as given.
    """
    now = clock.resolve_now(now_iso)
    label = _check_label(rubric_type, field="rubric_type", max_len=p_cfg.RUBRIC_TYPE_MAX_LEN, code=BAD_INPUT)
    with repo.transaction() as cur:
        occurrence = l_repo.get_occurrence(cur, str(lesson_exercise_id))
        if occurrence is None:
            raise NotFoundError.for_entity("lesson_exercise", lesson_exercise_id, code=OCCURRENCE_NOT_FOUND)
        l_access.require_lesson(cur, lesson_id=occurrence.lesson_id, coach_id=coach_id)
        if session_id is not None:
            session, _ = _require_session(cur, session_id=session_id, coach_id=coach_id)
            if session.lesson_id != occurrence.lesson_id:
                raise ValidationError(
                    SESSION_LESSON_MISMATCH,
                    "Exercise does not belong to the session's lesson",
                    {"kind": "practice_session", "id": session.session_id, "lesson_exercise_id": occurrence.lesson_exercise_id},
                )
        performers = _require_performers(cur, performer_ids, coach_id=coach_id)
        resolved = e_service.resolve_for_occurrence(cur, occurrence)
        checked = e_resolver.check_scores(resolved.template, scores or {})
        evaluation = SceneEvaluation(
            evaluation_id=str(uuid4()),
            lesson_exercise_id=occurrence.lesson_exercise_id,
            session_id=str(session_id) if session_id is not None else None,
            performer_ids=tuple(performers),
            scores=checked,
            notes=notes,
            rubric_type=label,
            template_id=resolved.template.template_id,
            evaluated_at=now,
        )
        p_repo.insert_evaluation(cur, evaluation=evaluation)
    logger.info(
        "SCENE_EVALUATION_RECORDED evaluation=%s occurrence=%s session=%s template=%s",
        evaluation.evaluation_id,
        evaluation.lesson_exercise_id,
        evaluation.session_id,
        evaluation.template_id,
    )
    out = evaluation.to_payload()
    out["lesson_id"] = occurrence.lesson_id
    out["template_name"] = resolved.template.name
    out["template_source"] = resolved.source
    return out


def list_session_evaluations(*, repo: CoachRepo, coach_id: str, session_id: str) -> List[Dict[str, Any]]:
    with repo.transaction() as cur:
        session, _ = _require_session(cur, session_id=session_id, coach_id=coach_id)
        evaluations = p_repo.list_evaluations(cur, session_id=session.session_id)
    return [e.to_payload() for e in evaluations]


def list_occurrence_evaluations(*, repo: CoachRepo, coach_id: str, lesson_exercise_id: str) -> List[Dict[str, Any]]:
    with repo.transaction() as cur:
        occurrence = l_repo.get_occurrence(cur, str(lesson_exercise_id))
        if occurrence is None:
            raise NotFoundError.for_entity("lesson_exercise", lesson_exercise_id, code=OCCURRENCE_NOT_FOUND)
        l_access.require_lesson(cur, lesson_id=occurrence.lesson_id, coach_id=coach_id)
        evaluations = p_repo.list_evaluations(cur, lesson_exercise_id=occurrence.lesson_exercise_id)
    return [e.to_payload() for e in evaluations]


# ---------------------------------------------------------------------------
# Notes (append-only)
# ---------------------------------------------------------------------------


def add_note(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    content: str,
    session_id: Optional[str] = None,
    note_type: Optional[str] = None,
    now_iso: Optional[str] = None,
) -> Dict[str, Any]:
    text = str(content or "").strip()
    if not text:
        raise ValidationError(NOTE_BAD_PAYLOAD, "Note content is required", {"field": "content"})
    kind = _check_label(note_type, field="note_type", max_len=p_cfg.NOTE_TYPE_MAX_LEN, code=NOTE_BAD_PAYLOAD)
    now = clock.resolve_now(now_iso)
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        if session_id is not None:
            session, _ = _require_session(cur, session_id=session_id, coach_id=coach_id)
            if session.lesson_id != lesson.lesson_id:
                raise ValidationError(
                    SESSION_LESSON_MISMATCH,
                    "Session does not belong to this lesson",
                    {"kind": "practice_session", "id": session.session_id, "lesson_id": lesson.lesson_id},
                )
        note = PracticeNote(
            note_id=str(uuid4()),
            lesson_id=lesson.lesson_id,
            session_id=str(session_id) if session_id is not None else None,
            note_type=kind or p_cfg.DEFAULT_NOTE_TYPE,
            content=text,
            created_at=now,
        )
        p_repo.insert_note(cur, note=note)
    logger.info("PRACTICE_NOTE_ADDED note=%s lesson=%s session=%s", note.note_id, note.lesson_id, note.session_id)
    return note.to_payload()


def list_notes(
    *,
    repo: CoachRepo,
    coach_id: str,
    lesson_id: str,
    session_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    with repo.transaction() as cur:
        lesson = l_access.require_lesson(cur, lesson_id=lesson_id, coach_id=coach_id)
        notes = p_repo.list_notes(cur, lesson_id=lesson.lesson_id, session_id=session_id)
    return [n.to_payload() for n in notes]
