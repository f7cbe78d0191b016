# db_schema/evaluation.py
"""SQLite schema: evaluation templates (rubrics).

- evaluation_templates: at most one row may carry is_default=1 (partial unique index).
- evaluation_criteria: ordered criteria per template.
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    return """
                CREATE TABLE IF NOT EXISTS evaluation_templates (
                    template_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    is_default INTEGER NOT NULL DEFAULT 0 CHECK (is_default IN (0, 1)),
                    created_by TEXT,
                    exercise_id TEXT UNIQUE REFERENCES exercises(exercise_id) ON DELETE SET NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE UNIQUE INDEX IF NOT EXISTS uq_evaluation_templates_single_default
                    ON evaluation_templates(is_default) WHERE is_default = 1;

                CREATE TABLE IF NOT EXISTS evaluation_criteria (
                    template_id TEXT NOT NULL REFERENCES evaluation_templates(template_id) ON DELETE CASCADE,
                    position INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    max_score INTEGER NOT NULL CHECK (max_score > 0),
                    focus_area TEXT,
                    PRIMARY KEY (template_id, position)
                );
"""
