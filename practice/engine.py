from __future__ import annotations

"""Practice session state machine (pure).

States: LIVE (end_time unset) -> CLOSED (end_time set, terminal).

Every function takes the current ``PracticeSession`` snapshot and returns the
next one; nothing here touches the database. ``occurrences`` is always the
session's own lesson sequence as loaded by ``lessons.repo.list_occurrences``.

Pointer rule: ``current_exercise_index`` is the 0-based position of
``current_exercise_id`` in the ordered sequence, or 0 when no pointer is set.
"""

from dataclasses import replace
from typing import AbstractSet, Iterable, Optional, Sequence

from errors import (
    OCCURRENCE_NOT_IN_LESSON,
    PERFORMER_NOT_FOUND,
    SESSION_ALREADY_CLOSED,
    NotFoundError,
    ValidationError,
)
from lessons.sequencer import ordered, position_of
from lessons.types import LessonExercise

from .types import PracticeSession


def _require_live(session: PracticeSession, *, action: str) -> None:
    if not session.is_live:
        raise ValidationError(
            SESSION_ALREADY_CLOSED,
            f"Cannot {action}: practice session is closed",
            {"kind": "practice_session", "id": session.session_id, "end_time": session.end_time},
        )


def start(
    *,
    session_id: str,
    lesson_id: str,
    occurrences: Sequence[LessonExercise],
    now: str,
) -> PracticeSession:
    """A new LIVE session pointing at the first occurrence (if any).

    Starting is neither idempotent nor exclusive: each call is an independent session.
    """
    seq = ordered(occurrences)
    return PracticeSession(
        session_id=str(session_id),
        lesson_id=str(lesson_id),
        start_time=str(now),
        current_exercise_id=seq[0].lesson_exercise_id if seq else None,
        current_exercise_index=0,
        created_at=str(now),
        updated_at=str(now),
    )


def advance_to(
    session: PracticeSession,
    occurrences: Sequence[LessonExercise],
    occurrence_id: str,
    *,
    now: str,
) -> PracticeSession:
    _require_live(session, action="change the current exercise")
    idx = position_of(occurrences, occurrence_id)
    if idx is None:
        raise ValidationError(
            OCCURRENCE_NOT_IN_LESSON,
            "Exercise does not belong to the session's lesson",
            {"kind": "lesson_exercise", "id": occurrence_id, "lesson_id": session.lesson_id},
        )
    return replace(
        session,
        current_exercise_id=str(occurrence_id),
        current_exercise_index=idx,
        updated_at=str(now),
    )


def end(session: PracticeSession, *, now: str) -> PracticeSession:
    """Close a LIVE session. Ending a CLOSED session is rejected, never re-stamped."""
    _require_live(session, action="end the session")
    return replace(session, end_time=str(now), updated_at=str(now))


def record_attendance(
    session: PracticeSession,
    performer_id: str,
    present: bool,
    *,
    now: str,
) -> PracticeSession:
    """Add or remove one performer. Returns ``session`` itself when nothing changes."""
    pid = str(performer_id)
    if bool(present) == (pid in session.attendee_ids):
        return session
    attendees = session.attendee_ids | {pid} if present else session.attendee_ids - {pid}
    return replace(session, attendee_ids=frozenset(attendees), updated_at=str(now))


def replace_attendance(
    session: PracticeSession,
    performer_ids: Iterable[str],
    *,
    known_performer_ids: AbstractSet[str],
    now: str,
) -> PracticeSession:
    """Swap the whole roster. Any unknown performer fails before anything changes."""
    wanted = [str(p) for p in performer_ids]
    missing = sorted({p for p in wanted if p not in known_performer_ids})
    if missing:
        raise NotFoundError(
            PERFORMER_NOT_FOUND,
            "performer not found",
            {"kind": "performer", "id": missing[0], "missing": missing},
        )
    return replace(session, attendee_ids=frozenset(wanted), updated_at=str(now))


def resync_pointer(
    session: PracticeSession,
    occurrences: Sequence[LessonExercise],
    *,
    now: Optional[str] = None,
) -> PracticeSession:
    """Re-derive the pointer after the lesson sequence changed.

    A pointer whose occurrence is gone is cleared (index 0). Applies to CLOSED
    sessions too; returns ``session`` itself when already consistent.
    """
    idx = position_of(occurrences, session.current_exercise_id)
    if idx is None:
        target_id, target_idx = None, 0
    else:
        target_id, target_idx = session.current_exercise_id, idx
    if target_id == session.current_exercise_id and target_idx == session.current_exercise_index:
        return session
    return replace(
        session,
        current_exercise_id=target_id,
        current_exercise_index=target_idx,
        updated_at=str(now) if now is not None else session.updated_at,
    )
