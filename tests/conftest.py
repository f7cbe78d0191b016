"""Shared fixtures: a fresh seeded SQLite database per test."""

from pathlib import Path
from typing import Dict

import pytest

from catalog import service as c_service
from coach_repo import CoachRepo

NOW = "2026-03-07T18:00:00+00:00"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "coach.sqlite3"


@pytest.fixture
def repo(db_path: Path):
    r = CoachRepo(db_path)
    r.init_db()
    r.seed_defaults(now_iso=NOW)
    yield r
    r.close()


@pytest.fixture
def coach_id(repo: CoachRepo) -> str:
    return c_service.create_coach(repo=repo, display_name="Del", coach_id="coach-1", now_iso=NOW)


@pytest.fixture
def other_coach_id(repo: CoachRepo) -> str:
    return c_service.create_coach(repo=repo, display_name="Viola", coach_id="coach-2", now_iso=NOW)


@pytest.fixture
def exercises(repo: CoachRepo, coach_id: str) -> Dict[str, str]:
    """Three coach-owned exercises tagged Listening, Listening, Physicality."""
    mk = lambda name, tags, minutes: c_service.create_exercise(  # noqa: E731
        repo=repo,
        name=name,
        minimum_duration_minutes=minutes,
        focus_areas=tags,
        created_by=coach_id,
        now_iso=NOW,
    ).exercise_id
    return {
        "mirror": mk("Mirror", ["Listening"], 10),
        "one_word": mk("One Word Story", ["Listening"], 15),
        "space_walk": mk("Space Walk", ["Physicality"], 20),
    }
