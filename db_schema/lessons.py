# db_schema/lessons.py
"""SQLite schema: lessons and their ordered exercise occurrences.

order_index is 1-based and contiguous per lesson. Rewrites first park indices
above lessons.repo.ORDER_INDEX_PARK_OFFSET so a permutation never trips UNIQUE.
"""

from __future__ import annotations

import sqlite3

from .registry import EnsureColumnsFn


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    return """
                CREATE TABLE IF NOT EXISTS lessons (
                    lesson_id TEXT PRIMARY KEY,
                    coach_id TEXT NOT NULL REFERENCES coaches(coach_id),
                    team_id TEXT REFERENCES teams(team_id) ON DELETE SET NULL,
                    name TEXT NOT NULL,
                    scheduled_date TEXT,
                    workshop_type TEXT,
                    is_template INTEGER NOT NULL DEFAULT 0 CHECK (is_template IN (0, 1)),
                    total_duration_minutes INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_lessons_coach ON lessons(coach_id, scheduled_date);

                CREATE TABLE IF NOT EXISTS lesson_exercises (
                    lesson_exercise_id TEXT PRIMARY KEY,
                    lesson_id TEXT NOT NULL REFERENCES lessons(lesson_id),
                    exercise_id TEXT NOT NULL REFERENCES exercises(exercise_id),
                    order_index INTEGER NOT NULL CHECK (order_index >= 1),
                    planned_duration_minutes INTEGER,
                    evaluation_template_id TEXT REFERENCES evaluation_templates(template_id) ON DELETE SET NULL,
                    exercise_notes TEXT,
                    UNIQUE (lesson_id, order_index)
                );
                CREATE INDEX IF NOT EXISTS idx_lesson_exercises_lesson ON lesson_exercises(lesson_id, order_index);
"""


def migrate(cur: sqlite3.Cursor, *, ensure_columns: EnsureColumnsFn) -> None:
    # Databases created before occurrence notes existed.
    ensure_columns(cur, "lesson_exercises", {"exercise_notes": "TEXT"})
