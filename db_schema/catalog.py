# db_schema/catalog.py
"""SQLite schema: reference data read by the core.

Tables
------
- meta: schema version bookkeeping.
- coaches
- teams: owned by a coach.
- performers: owned by a coach; team membership lives in performer_teams
  (the performer side owns the link; "performers of a team" is a query).
- focus_areas: improv skill tags (e.g. "Listening").
- exercises + exercise_focus_areas: reusable exercise definitions and their tags.

Exercises reference their default rubric (evaluation_templates) without a
foreign key because the evaluation schema is applied afterwards.
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:
    return f"""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                INSERT OR IGNORE INTO meta(key, value) VALUES ('schema_version', '{schema_version}');
                INSERT OR IGNORE INTO meta(key, value) VALUES ('created_at', '{now}');

                CREATE TABLE IF NOT EXISTS coaches (
                    coach_id TEXT PRIMARY KEY,
                    display_name TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS teams (
                    team_id TEXT PRIMARY KEY,
                    coach_id TEXT NOT NULL REFERENCES coaches(coach_id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS performers (
                    performer_id TEXT PRIMARY KEY,
                    coach_id TEXT NOT NULL REFERENCES coaches(coach_id) ON DELETE CASCADE,
                    first_name TEXT NOT NULL,
                    last_name TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS performer_teams (
                    performer_id TEXT NOT NULL REFERENCES performers(performer_id) ON DELETE CASCADE,
                    team_id TEXT NOT NULL REFERENCES teams(team_id) ON DELETE CASCADE,
                    PRIMARY KEY (performer_id, team_id)
                );
                CREATE INDEX IF NOT EXISTS idx_performer_teams_team ON performer_teams(team_id);

                CREATE TABLE IF NOT EXISTS focus_areas (
                    focus_area_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL UNIQUE,
                    description TEXT
                );

                CREATE TABLE IF NOT EXISTS exercises (
                    exercise_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    minimum_duration_minutes INTEGER,
                    default_template_id TEXT,
                    is_public INTEGER NOT NULL DEFAULT 0 CHECK (is_public IN (0, 1)),
                    is_system INTEGER NOT NULL DEFAULT 0 CHECK (is_system IN (0, 1)),
                    created_by TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS exercise_focus_areas (
                    exercise_id TEXT NOT NULL REFERENCES exercises(exercise_id) ON DELETE CASCADE,
                    focus_area_id TEXT NOT NULL REFERENCES focus_areas(focus_area_id) ON DELETE CASCADE,
                    position INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (exercise_id, focus_area_id)
                );
"""
