# db_schema/practice.py
"""SQLite schema: live practice sessions.

Tables
------
- practice_sessions: one row per session; end_time NULL means live.
  ``version`` backs optimistic concurrency (every write bumps it).
- session_attendance: attendance set (session, performer).
- practice_notes: append-only notes per lesson (optionally per session).
- scene_evaluations + scene_evaluation_performers + scene_evaluation_scores:
  append-only scene scoring keyed to a lesson exercise occurrence.

Notes
-----
* Timestamps are ISO-8601 strings (UTC).
* Deleting a lesson is an explicit ordered routine (lessons.repo.delete_lesson_cascade);
  these tables declare no ON DELETE CASCADE towards lessons.
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    return """
                CREATE TABLE IF NOT EXISTS practice_sessions (
                    session_id TEXT PRIMARY KEY,
                    lesson_id TEXT NOT NULL REFERENCES lessons(lesson_id),
                    start_time TEXT NOT NULL,
                    end_time TEXT,
                    current_exercise_id TEXT REFERENCES lesson_exercises(lesson_exercise_id) ON DELETE SET NULL,
                    current_exercise_index INTEGER NOT NULL DEFAULT 0,
                    version INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_practice_sessions_lesson ON practice_sessions(lesson_id, start_time);

                CREATE TABLE IF NOT EXISTS session_attendance (
                    session_id TEXT NOT NULL REFERENCES practice_sessions(session_id),
                    performer_id TEXT NOT NULL REFERENCES performers(performer_id),
                    PRIMARY KEY (session_id, performer_id)
                );

                CREATE TABLE IF NOT EXISTS practice_notes (
                    note_id TEXT PRIMARY KEY,
                    lesson_id TEXT NOT NULL REFERENCES lessons(lesson_id),
                    session_id TEXT REFERENCES practice_sessions(session_id),
                    note_type TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_practice_notes_lesson ON practice_notes(lesson_id, created_at);

                CREATE TABLE IF NOT EXISTS scene_evaluations (
                    evaluation_id TEXT PRIMARY KEY,
                    lesson_exercise_id TEXT NOT NULL REFERENCES lesson_exercises(lesson_exercise_id),
                    session_id TEXT REFERENCES practice_sessions(session_id),
                    template_id TEXT,
                    rubric_type TEXT,
                    notes TEXT,
                    evaluated_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_scene_evaluations_session ON scene_evaluations(session_id);
                CREATE INDEX IF NOT EXISTS idx_scene_evaluations_occurrence ON scene_evaluations(lesson_exercise_id);

                CREATE TABLE IF NOT EXISTS scene_evaluation_performers (
                    evaluation_id TEXT NOT NULL REFERENCES scene_evaluations(evaluation_id),
                    performer_id TEXT NOT NULL REFERENCES performers(performer_id),
                    PRIMARY KEY (evaluation_id, performer_id)
                );

                CREATE TABLE IF NOT EXISTS scene_evaluation_scores (
                    evaluation_id TEXT NOT NULL REFERENCES scene_evaluations(evaluation_id),
                    criterion_name TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    PRIMARY KEY (evaluation_id, criterion_name)
                );
"""
