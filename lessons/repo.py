from __future__ import annotations

"""DB access layer for lessons and their exercise occurrences.

Pure DB I/O. Sequencing rules live in lessons.sequencer; this module only
persists whatever (already dense) sequence it is handed.
"""

import sqlite3
from typing import Dict, Iterable, List, Optional, Sequence

from catalog import repo as c_repo

from .types import Lesson, LessonExercise

# Indices are moved above this offset before a rewrite so that
# UNIQUE(lesson_id, order_index) never sees a transient collision.
ORDER_INDEX_PARK_OFFSET = 100000

_LESSON_COLS = (
    "lesson_id, coach_id, team_id, name, scheduled_date, workshop_type, "
    "is_template, total_duration_minutes, created_at, updated_at"
)
_OCCURRENCE_COLS = (
    "lesson_exercise_id, lesson_id, exercise_id, order_index, "
    "planned_duration_minutes, evaluation_template_id, exercise_notes"
)


def _placeholders(n: int) -> str:
    return ",".join("?" for _ in range(int(n)))


def _occurrence_from_row(row: sqlite3.Row, exercises: Dict[str, object]) -> LessonExercise:
    planned = row["planned_duration_minutes"]
    return LessonExercise(
        lesson_exercise_id=str(row["lesson_exercise_id"]),
        lesson_id=str(row["lesson_id"]),
        exercise_id=str(row["exercise_id"]),
        order_index=int(row["order_index"]),
        planned_duration_minutes=int(planned) if planned is not None else None,
        evaluation_template_id=row["evaluation_template_id"],
        exercise_notes=row["exercise_notes"],
        exercise=exercises.get(str(row["exercise_id"])),
    )


def _with_exercises(cur: sqlite3.Cursor, rows: Sequence[sqlite3.Row]) -> List[LessonExercise]:
    exercises = c_repo.get_exercises(cur, [r["exercise_id"] for r in rows])
    return [_occurrence_from_row(r, exercises) for r in rows]


def _lesson_from_row(row: sqlite3.Row, occurrences: Sequence[LessonExercise]) -> Lesson:
    return Lesson(
        lesson_id=str(row["lesson_id"]),
        coach_id=str(row["coach_id"]),
        name=str(row["name"]),
        team_id=row["team_id"],
        scheduled_date=row["scheduled_date"],
        workshop_type=row["workshop_type"],
        is_template=bool(int(row["is_template"] or 0)),
        total_duration_minutes=int(row["total_duration_minutes"] or 0),
        exercises=tuple(occurrences),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ---------------------------------------------------------------------------
# Lessons
# ---------------------------------------------------------------------------


def insert_lesson(cur: sqlite3.Cursor, *, lesson: Lesson, now: str) -> None:
    cur.execute(
        f"""
        INSERT INTO lessons({_LESSON_COLS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            lesson.lesson_id,
            lesson.coach_id,
            lesson.team_id,
            lesson.name,
            lesson.scheduled_date,
            lesson.workshop_type,
            1 if lesson.is_template else 0,
            int(lesson.total_duration_minutes),
            str(now),
            str(now),
        ),
    )


def update_lesson_fields(
    cur: sqlite3.Cursor,
    *,
    lesson_id: str,
    name: str,
    team_id: Optional[str],
    scheduled_date: Optional[str],
    workshop_type: Optional[str],
    now: str,
) -> None:
    cur.execute(
        """
        UPDATE lessons
        SET name=?, team_id=?, scheduled_date=?, workshop_type=?, updated_at=?
        WHERE lesson_id=?;
        """,
        (name, team_id, scheduled_date, workshop_type, str(now), str(lesson_id)),
    )


def set_total_duration(cur: sqlite3.Cursor, *, lesson_id: str, total: int, now: str) -> None:
    cur.execute(
        "UPDATE lessons SET total_duration_minutes=?, updated_at=? WHERE lesson_id=?;",
        (int(total), str(now), str(lesson_id)),
    )


def get_lesson(cur: sqlite3.Cursor, lesson_id: str) -> Optional[Lesson]:
    row = cur.execute(f"SELECT {_LESSON_COLS} FROM lessons WHERE lesson_id=?;", (str(lesson_id),)).fetchone()
    if not row:
        return None
    return _lesson_from_row(row, list_occurrences(cur, str(lesson_id)))


def list_lessons(
    cur: sqlite3.Cursor,
    *,
    coach_id: str,
    is_template: Optional[bool] = None,
    scheduled_from: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Lesson]:
    """Lessons of one coach, soonest scheduled first (unscheduled last)."""
    where = ["coach_id=?"]
    params: List[object] = [str(coach_id)]
    if is_template is not None:
        where.append("is_template=?")
        params.append(1 if is_template else 0)
    if scheduled_from is not None:
        where.append("scheduled_date IS NOT NULL AND scheduled_date >= ?")
        params.append(str(scheduled_from))
    sql = (
        f"SELECT {_LESSON_COLS} FROM lessons WHERE {' AND '.join(where)} "
        "ORDER BY scheduled_date IS NULL, scheduled_date ASC, created_at DESC, lesson_id ASC"
    )
    if limit is not None:
        sql += " LIMIT ?"
        params.append(int(limit))
    rows = cur.execute(sql + ";", params).fetchall()
    return [_lesson_from_row(r, list_occurrences(cur, str(r["lesson_id"]))) for r in rows]


# ---------------------------------------------------------------------------
# Occurrences
# ---------------------------------------------------------------------------


def list_occurrences(cur: sqlite3.Cursor, lesson_id: str) -> List[LessonExercise]:
    rows = cur.execute(
        f"""
        SELECT {_OCCURRENCE_COLS}
        FROM lesson_exercises
        WHERE lesson_id=?
        ORDER BY order_index ASC;
        """,
        (str(lesson_id),),
    ).fetchall()
    return _with_exercises(cur, rows)


def get_occurrence(cur: sqlite3.Cursor, occurrence_id: str) -> Optional[LessonExercise]:
    row = cur.execute(
        f"SELECT {_OCCURRENCE_COLS} FROM lesson_exercises WHERE lesson_exercise_id=?;",
        (str(occurrence_id),),
    ).fetchone()
    if not row:
        return None
    return _with_exercises(cur, [row])[0]


def write_sequence(cur: sqlite3.Cursor, *, lesson_id: str, occurrences: Sequence[LessonExercise]) -> None:
    """Upsert ``occurrences`` (new rows and moved rows) for one lesson.

    Rows of the lesson that are not in ``occurrences`` are left alone; delete
    them first with ``delete_occurrences``.
    """
    cur.execute(
        "UPDATE lesson_exercises SET order_index = order_index + ? WHERE lesson_id=?;",
        (ORDER_INDEX_PARK_OFFSET, str(lesson_id)),
    )
    cur.executemany(
        f"""
        INSERT INTO lesson_exercises({_OCCURRENCE_COLS})
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(lesson_exercise_id) DO UPDATE SET
            order_index=excluded.order_index,
            planned_duration_minutes=excluded.planned_duration_minutes,
            evaluation_template_id=excluded.evaluation_template_id,
            exercise_notes=excluded.exercise_notes;
        """,
        [
            (
                le.lesson_exercise_id,
                str(lesson_id),
                le.exercise_id,
                int(le.order_index),
                le.planned_duration_minutes,
                le.evaluation_template_id,
                le.exercise_notes,
            )
            for le in occurrences
        ],
    )


def delete_occurrences(cur: sqlite3.Cursor, occurrence_ids: Iterable[str]) -> int:
    """Delete occurrence rows only (evaluations must already be gone)."""
    ids = sorted({str(x) for x in occurrence_ids})
    if not ids:
        return 0
    cur.execute(
        f"DELETE FROM lesson_exercises WHERE lesson_exercise_id IN ({_placeholders(len(ids))});",
        ids,
    )
    return int(cur.rowcount or 0)


# ---------------------------------------------------------------------------
# Cascade delete
# ---------------------------------------------------------------------------


def delete_lesson_cascade(cur: sqlite3.Cursor, lesson_id: str) -> Dict[str, int]:
    """Delete a lesson and everything hanging off it, children before parent.

    Must run inside one transaction (``CoachRepo.transaction()``).
    Returns per-table deleted row counts.
    """
    lid = str(lesson_id)
    sessions_sql = "SELECT session_id FROM practice_sessions WHERE lesson_id=?"
    evals_sql = (
        "SELECT evaluation_id FROM scene_evaluations WHERE lesson_exercise_id IN "
        "(SELECT lesson_exercise_id FROM lesson_exercises WHERE lesson_id=?) "
        f"OR session_id IN ({sessions_sql})"
    )
    steps = (
        ("scene_evaluation_scores", f"DELETE FROM scene_evaluation_scores WHERE evaluation_id IN ({evals_sql});", (lid, lid)),
        ("scene_evaluation_performers", f"DELETE FROM scene_evaluation_performers WHERE evaluation_id IN ({evals_sql});", (lid, lid)),
        ("scene_evaluations", f"DELETE FROM scene_evaluations WHERE evaluation_id IN ({evals_sql});", (lid, lid)),
        ("practice_notes", "DELETE FROM practice_notes WHERE lesson_id=?;", (lid,)),
        ("session_attendance", f"DELETE FROM session_attendance WHERE session_id IN ({sessions_sql});", (lid,)),
        ("practice_sessions", "DELETE FROM practice_sessions WHERE lesson_id=?;", (lid,)),
        ("lesson_exercises", "DELETE FROM lesson_exercises WHERE lesson_id=?;", (lid,)),
        ("lessons", "DELETE FROM lessons WHERE lesson_id=?;", (lid,)),
    )
    counts: Dict[str, int] = {}
    for table, sql, params in steps:
        cur.execute(sql, params)
        counts[table] = int(cur.rowcount or 0)
    return counts
