from __future__ import annotations

"""DB access layer for reference data (coaches, teams, performers, exercises).

Pure DB I/O: no business logic, no ownership checks.
"""

import sqlite3
from typing import Dict, Iterable, List, Optional, Sequence, Set
from uuid import uuid4

from .types import Exercise, Performer, Team


def _placeholders(n: int) -> str:
    return ",".join("?" for _ in range(int(n)))


# ---------------------------------------------------------------------------
# Coaches / teams / performers
# ---------------------------------------------------------------------------


def insert_coach(cur: sqlite3.Cursor, *, coach_id: str, display_name: str, now: str) -> None:
    cur.execute(
        "INSERT INTO coaches(coach_id, display_name, created_at) VALUES (?, ?, ?);",
        (str(coach_id), str(display_name), str(now)),
    )


def coach_exists(cur: sqlite3.Cursor, coach_id: str) -> bool:
    row = cur.execute("SELECT 1 FROM coaches WHERE coach_id=?;", (str(coach_id),)).fetchone()
    return row is not None


def insert_team(cur: sqlite3.Cursor, *, team_id: str, coach_id: str, name: str, now: str) -> None:
    cur.execute(
        "INSERT INTO teams(team_id, coach_id, name, created_at) VALUES (?, ?, ?, ?);",
        (str(team_id), str(coach_id), str(name), str(now)),
    )


def get_team(cur: sqlite3.Cursor, team_id: str) -> Optional[Team]:
    row = cur.execute("SELECT team_id, coach_id, name FROM teams WHERE team_id=?;", (str(team_id),)).fetchone()
    if not row:
        return None
    return Team(team_id=str(row["team_id"]), coach_id=str(row["coach_id"]), name=str(row["name"]))


def insert_performer(
    cur: sqlite3.Cursor,
    *,
    performer_id: str,
    coach_id: str,
    first_name: str,
    last_name: Optional[str],
    team_ids: Sequence[str],
    now: str,
) -> None:
    cur.execute(
        """
        INSERT INTO performers(performer_id, coach_id, first_name, last_name, created_at)
        VALUES (?, ?, ?, ?, ?);
        """,
        (str(performer_id), str(coach_id), str(first_name), last_name, str(now)),
    )
    cur.executemany(
        "INSERT OR IGNORE INTO performer_teams(performer_id, team_id) VALUES (?, ?);",
        [(str(performer_id), str(t)) for t in team_ids],
    )


def get_performer(cur: sqlite3.Cursor, performer_id: str) -> Optional[Performer]:
    row = cur.execute(
        "SELECT performer_id, coach_id, first_name, last_name FROM performers WHERE performer_id=?;",
        (str(performer_id),),
    ).fetchone()
    if not row:
        return None
    team_rows = cur.execute(
        "SELECT team_id FROM performer_teams WHERE performer_id=? ORDER BY team_id ASC;",
        (str(performer_id),),
    ).fetchall()
    return Performer(
        performer_id=str(row["performer_id"]),
        coach_id=str(row["coach_id"]),
        first_name=str(row["first_name"]),
        last_name=row["last_name"],
        team_ids=tuple(str(r["team_id"]) for r in team_rows),
    )


def find_existing_performer_ids(
    cur: sqlite3.Cursor,
    performer_ids: Iterable[str],
    *,
    coach_id: Optional[str] = None,
) -> Set[str]:
    """Subset of ``performer_ids`` that exist (and belong to ``coach_id`` when given)."""
    ids = sorted({str(p) for p in performer_ids})
    if not ids:
        return set()
    sql = f"SELECT performer_id FROM performers WHERE performer_id IN ({_placeholders(len(ids))})"
    params: List[str] = list(ids)
    if coach_id is not None:
        sql += " AND coach_id=?"
        params.append(str(coach_id))
    rows = cur.execute(sql + ";", params).fetchall()
    return {str(r["performer_id"]) for r in rows}


def get_performers(cur: sqlite3.Cursor, performer_ids: Iterable[str]) -> List[Performer]:
    out = []
    for pid in sorted({str(p) for p in performer_ids}):
        performer = get_performer(cur, pid)
        if performer is not None:
            out.append(performer)
    return out


def list_team_performer_ids(cur: sqlite3.Cursor, team_id: str) -> List[str]:
    """Reverse lookup team -> performers (queried, never stored on the team)."""
    rows = cur.execute(
        "SELECT performer_id FROM performer_teams WHERE team_id=? ORDER BY performer_id ASC;",
        (str(team_id),),
    ).fetchall()
    return [str(r["performer_id"]) for r in rows]


# ---------------------------------------------------------------------------
# Focus areas / exercises
# ---------------------------------------------------------------------------


def ensure_focus_area(cur: sqlite3.Cursor, *, name: str, description: Optional[str] = None) -> str:
    """Return the focus_area_id for ``name``, creating the row when missing."""
    row = cur.execute("SELECT focus_area_id FROM focus_areas WHERE name=?;", (str(name),)).fetchone()
    if row:
        return str(row["focus_area_id"])
    focus_area_id = str(uuid4())
    cur.execute(
        "INSERT INTO focus_areas(focus_area_id, name, description) VALUES (?, ?, ?);",
        (focus_area_id, str(name), description),
    )
    return focus_area_id


def insert_exercise(cur: sqlite3.Cursor, *, exercise: Exercise, now: str) -> None:
    cur.execute(
        """
        INSERT INTO exercises(
            exercise_id, name, description, minimum_duration_minutes, default_template_id,
            is_public, is_system, created_by, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            exercise.exercise_id,
            exercise.name,
            exercise.description,
            exercise.minimum_duration_minutes,
            exercise.default_template_id,
            1 if exercise.is_public else 0,
            1 if exercise.is_system else 0,
            exercise.created_by,
            str(now),
        ),
    )
    for pos, tag in enumerate(exercise.focus_areas):
        fa_id = ensure_focus_area(cur, name=tag)
        cur.execute(
            "INSERT OR IGNORE INTO exercise_focus_areas(exercise_id, focus_area_id, position) VALUES (?, ?, ?);",
            (exercise.exercise_id, fa_id, pos),
        )


def set_exercise_default_template(cur: sqlite3.Cursor, *, exercise_id: str, template_id: Optional[str]) -> None:
    cur.execute(
        "UPDATE exercises SET default_template_id=? WHERE exercise_id=?;",
        (template_id, str(exercise_id)),
    )


def get_exercises(cur: sqlite3.Cursor, exercise_ids: Iterable[str]) -> Dict[str, Exercise]:
    ids = sorted({str(e) for e in exercise_ids})
    if not ids:
        return {}
    rows = cur.execute(
        f"""
        SELECT exercise_id, name, description, minimum_duration_minutes, default_template_id,
               is_public, is_system, created_by
        FROM exercises
        WHERE exercise_id IN ({_placeholders(len(ids))});
        """,
        ids,
    ).fetchall()
    tag_rows = cur.execute(
        f"""
        SELECT efa.exercise_id, fa.name
        FROM exercise_focus_areas efa
        JOIN focus_areas fa ON fa.focus_area_id = efa.focus_area_id
        WHERE efa.exercise_id IN ({_placeholders(len(ids))})
        ORDER BY efa.exercise_id ASC, efa.position ASC, fa.name ASC;
        """,
        ids,
    ).fetchall()
    tags: Dict[str, List[str]] = {}
    for r in tag_rows:
        tags.setdefault(str(r["exercise_id"]), []).append(str(r["name"]))

    out: Dict[str, Exercise] = {}
    for r in rows:
        eid = str(r["exercise_id"])
        min_d = r["minimum_duration_minutes"]
        out[eid] = Exercise(
            exercise_id=eid,
            name=str(r["name"]),
            description=r["description"],
            minimum_duration_minutes=int(min_d) if min_d is not None else None,
            focus_areas=tuple(tags.get(eid, [])),
            default_template_id=r["default_template_id"],
            is_public=bool(int(r["is_public"] or 0)),
            is_system=bool(int(r["is_system"] or 0)),
            created_by=r["created_by"],
        )
    return out


def get_exercise(cur: sqlite3.Cursor, exercise_id: str) -> Optional[Exercise]:
    return get_exercises(cur, [exercise_id]).get(str(exercise_id))
