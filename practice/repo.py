from __future__ import annotations

"""DB access layer for practice sessions, attendance, notes and scene evaluations.

Pure DB I/O: no business logic. The optimistic version check is expressed as
``UPDATE ... WHERE version=?``; callers decide what a lost race means.

All timestamps are stored as ISO-8601 strings.
"""

import sqlite3
from typing import Dict, Iterable, List, Optional

from .types import PracticeNote, PracticeSession, SceneEvaluation

_SESSION_COLS = (
    "session_id, lesson_id, start_time, end_time, current_exercise_id, "
    "current_exercise_index, version, created_at, updated_at"
)


def _placeholders(n: int) -> str:
    return ",".join("?" for _ in range(int(n)))


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def list_attendee_ids(cur: sqlite3.Cursor, session_id: str) -> List[str]:
    rows = cur.execute(
        "SELECT performer_id FROM session_attendance WHERE session_id=? ORDER BY performer_id ASC;",
        (str(session_id),),
    ).fetchall()
    return [str(r["performer_id"]) for r in rows]


def _session_from_row(cur: sqlite3.Cursor, row: sqlite3.Row) -> PracticeSession:
    sid = str(row["session_id"])
    return PracticeSession(
        session_id=sid,
        lesson_id=str(row["lesson_id"]),
        start_time=str(row["start_time"]),
        end_time=row["end_time"],
        current_exercise_id=row["current_exercise_id"],
        current_exercise_index=int(row["current_exercise_index"] or 0),
        attendee_ids=frozenset(list_attendee_ids(cur, sid)),
        version=int(row["version"] or 1),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def insert_session(cur: sqlite3.Cursor, *, session: PracticeSession) -> None:
    cur.execute(
        f"""
        INSERT INTO practice_sessions({_SESSION_COLS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            session.session_id,
            session.lesson_id,
            session.start_time,
            session.end_time,
            session.current_exercise_id,
            int(session.current_exercise_index),
            int(session.version),
            session.created_at,
            session.updated_at,
        ),
    )
    _sync_attendance(cur, session.session_id, session.attendee_ids)


def get_session(cur: sqlite3.Cursor, session_id: str) -> Optional[PracticeSession]:
    row = cur.execute(
        f"SELECT {_SESSION_COLS} FROM practice_sessions WHERE session_id=?;",
        (str(session_id),),
    ).fetchone()
    if not row:
        return None
    return _session_from_row(cur, row)


def list_sessions_for_lesson(cur: sqlite3.Cursor, lesson_id: str, *, live_only: bool = False) -> List[PracticeSession]:
    sql = f"SELECT {_SESSION_COLS} FROM practice_sessions WHERE lesson_id=?"
    if live_only:
        sql += " AND end_time IS NULL"
    rows = cur.execute(sql + " ORDER BY start_time DESC, session_id ASC;", (str(lesson_id),)).fetchall()
    return [_session_from_row(cur, r) for r in rows]


def _sync_attendance(cur: sqlite3.Cursor, session_id: str, attendee_ids: Iterable[str]) -> None:
    wanted = {str(p) for p in attendee_ids}
    current = set(list_attendee_ids(cur, session_id))
    gone = sorted(current - wanted)
    added = sorted(wanted - current)
    if gone:
        cur.execute(
            f"DELETE FROM session_attendance WHERE session_id=? AND performer_id IN ({_placeholders(len(gone))});",
            [str(session_id), *gone],
        )
    if added:
        cur.executemany(
            "INSERT INTO session_attendance(session_id, performer_id) VALUES (?, ?);",
            [(str(session_id), p) for p in added],
        )


def update_session(cur: sqlite3.Cursor, *, session: PracticeSession, expected_version: int) -> bool:
    """Persist ``session`` if the stored row is still at ``expected_version``.

    Bumps the stored version to ``expected_version + 1``. Returns False (and
    writes nothing) when another writer got there first.
    """
    cur.execute(
        """
        UPDATE practice_sessions
        SET end_time=?, current_exercise_id=?, current_exercise_index=?,
            version=?, updated_at=?
        WHERE session_id=? AND version=?;
        """,
        (
            session.end_time,
            session.current_exercise_id,
            int(session.current_exercise_index),
            int(expected_version) + 1,
            session.updated_at,
            session.session_id,
            int(expected_version),
        ),
    )
    if int(cur.rowcount or 0) != 1:
        return False
    _sync_attendance(cur, session.session_id, session.attendee_ids)
    return True


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def insert_note(cur: sqlite3.Cursor, *, note: PracticeNote) -> None:
    cur.execute(
        """
        INSERT INTO practice_notes(note_id, lesson_id, session_id, note_type, content, created_at)
        VALUES (?, ?, ?, ?, ?, ?);
        """,
        (note.note_id, note.lesson_id, note.session_id, note.note_type, note.content, note.created_at),
    )


def list_notes(cur: sqlite3.Cursor, *, lesson_id: str, session_id: Optional[str] = None) -> List[PracticeNote]:
    sql = "SELECT note_id, lesson_id, session_id, note_type, content, created_at FROM practice_notes WHERE lesson_id=?"
    params: List[str] = [str(lesson_id)]
    if session_id is not None:
        sql += " AND session_id=?"
        params.append(str(session_id))
    rows = cur.execute(sql + " ORDER BY created_at ASC, rowid ASC;", params).fetchall()
    return [
        PracticeNote(
            note_id=str(r["note_id"]),
            lesson_id=str(r["lesson_id"]),
            session_id=r["session_id"],
            note_type=str(r["note_type"]),
            content=str(r["content"]),
            created_at=str(r["created_at"]),
        )
        for r in rows
    ]


# ---------------------------------------------------------------------------
# Scene evaluations
# ---------------------------------------------------------------------------


def insert_evaluation(cur: sqlite3.Cursor, *, evaluation: SceneEvaluation) -> None:
    cur.execute(
        """
        INSERT INTO scene_evaluations(
            evaluation_id, lesson_exercise_id, session_id, template_id, rubric_type, notes, evaluated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?);
        """,
        (
            evaluation.evaluation_id,
            evaluation.lesson_exercise_id,
            evaluation.session_id,
            evaluation.template_id,
            evaluation.rubric_type,
            evaluation.notes,
            evaluation.evaluated_at,
        ),
    )
    cur.executemany(
        "INSERT INTO scene_evaluation_performers(evaluation_id, performer_id) VALUES (?, ?);",
        [(evaluation.evaluation_id, str(p)) for p in dict.fromkeys(evaluation.performer_ids)],
    )
    cur.executemany(
        "INSERT INTO scene_evaluation_scores(evaluation_id, criterion_name, score) VALUES (?, ?, ?);",
        [(evaluation.evaluation_id, str(k), int(v)) for k, v in evaluation.scores.items()],
    )


def _evaluations_from_rows(cur: sqlite3.Cursor, rows: List[sqlite3.Row]) -> List[SceneEvaluation]:
    ids = [str(r["evaluation_id"]) for r in rows]
    if not ids:
        return []
    performers: Dict[str, List[str]] = {}
    for r in cur.execute(
        f"""
        SELECT evaluation_id, performer_id FROM scene_evaluation_performers
        WHERE evaluation_id IN ({_placeholders(len(ids))})
        ORDER BY performer_id ASC;
        """,
        ids,
    ).fetchall():
        performers.setdefault(str(r["evaluation_id"]), []).append(str(r["performer_id"]))
    scores: Dict[str, Dict[str, int]] = {}
    for r in cur.execute(
        f"""
        SELECT evaluation_id, criterion_name, score FROM scene_evaluation_scores
        WHERE evaluation_id IN ({_placeholders(len(ids))})
        ORDER BY rowid ASC;
        """,
        ids,
    ).fetchall():
        scores.setdefault(str(r["evaluation_id"]), {})[str(r["criterion_name"])] = int(r["score"])

    return [
        SceneEvaluation(
            evaluation_id=str(r["evaluation_id"]),
            lesson_exercise_id=str(r["lesson_exercise_id"]),
            session_id=r["session_id"],
            performer_ids=tuple(performers.get(str(r["evaluation_id"]), [])),
            scores=scores.get(str(r["evaluation_id"]), {}),
            notes=r["notes"],
            rubric_type=r["rubric_type"],
            template_id=r["template_id"],
            evaluated_at=str(r["evaluated_at"]),
        )
        for r in rows
    ]


_EVAL_SELECT = (
    "SELECT evaluation_id, lesson_exercise_id, session_id, template_id, rubric_type, notes, evaluated_at "
    "FROM scene_evaluations"
)


def get_evaluation(cur: sqlite3.Cursor, evaluation_id: str) -> Optional[SceneEvaluation]:
    rows = cur.execute(f"{_EVAL_SELECT} WHERE evaluation_id=?;", (str(evaluation_id),)).fetchall()
    found = _evaluations_from_rows(cur, rows)
    return found[0] if found else None


def list_evaluations(
    cur: sqlite3.Cursor,
    *,
    session_id: Optional[str] = None,
    lesson_exercise_id: Optional[str] = None,
) -> List[SceneEvaluation]:
    where: List[str] = []
    params: List[str] = []
    if session_id is not None:
        where.append("session_id=?")
        params.append(str(session_id))
    if lesson_exercise_id is not None:
        where.append("lesson_exercise_id=?")
        params.append(str(lesson_exercise_id))
    sql = _EVAL_SELECT
    if where:
        sql += " WHERE " + " AND ".join(where)
    rows = cur.execute(sql + " ORDER BY evaluated_at ASC, rowid ASC;", params).fetchall()
    return _evaluations_from_rows(cur, rows)


def delete_evaluations_for_occurrences(cur: sqlite3.Cursor, occurrence_ids: Iterable[str]) -> int:
    ids = sorted({str(x) for x in occurrence_ids})
    if not ids:
        return 0
    sub = f"SELECT evaluation_id FROM scene_evaluations WHERE lesson_exercise_id IN ({_placeholders(len(ids))})"
    cur.execute(f"DELETE FROM scene_evaluation_scores WHERE evaluation_id IN ({sub});", ids)
    cur.execute(f"DELETE FROM scene_evaluation_performers WHERE evaluation_id IN ({sub});", ids)
    cur.execute(f"DELETE FROM scene_evaluations WHERE lesson_exercise_id IN ({_placeholders(len(ids))});", ids)
    return int(cur.rowcount or 0)
