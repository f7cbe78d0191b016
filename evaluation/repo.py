from __future__ import annotations

"""DB access layer for evaluation templates (pure DB I/O)."""

import sqlite3
from typing import List, Optional

from .types import EvaluationCriterion, EvaluationTemplate


def insert_template(cur: sqlite3.Cursor, *, template: EvaluationTemplate, now: str) -> None:
    cur.execute(
        """
        INSERT INTO evaluation_templates(template_id, name, is_default, created_by, exercise_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?);
        """,
        (
            template.template_id,
            template.name,
            1 if template.is_default else 0,
            template.created_by,
            template.exercise_id,
            str(now),
            str(now),
        ),
    )
    cur.executemany(
        """
        INSERT INTO evaluation_criteria(template_id, position, name, description, max_score, focus_area)
        VALUES (?, ?, ?, ?, ?, ?);
        """,
        [
            (template.template_id, pos, c.name, c.description, int(c.max_score), c.focus_area)
            for pos, c in enumerate(template.criteria)
        ],
    )


def _load_criteria(cur: sqlite3.Cursor, template_id: str) -> List[EvaluationCriterion]:
    rows = cur.execute(
        """
        SELECT name, description, max_score, focus_area
        FROM evaluation_criteria
        WHERE template_id=?
        ORDER BY position ASC;
        """,
        (str(template_id),),
    ).fetchall()
    return [
        EvaluationCriterion(
            name=str(r["name"]),
            description=r["description"],
            max_score=int(r["max_score"]),
            focus_area=r["focus_area"],
        )
        for r in rows
    ]


def _template_from_row(cur: sqlite3.Cursor, row: sqlite3.Row) -> EvaluationTemplate:
    tid = str(row["template_id"])
    return EvaluationTemplate(
        template_id=tid,
        name=str(row["name"]),
        criteria=tuple(_load_criteria(cur, tid)),
        is_default=bool(int(row["is_default"] or 0)),
        created_by=row["created_by"],
        exercise_id=row["exercise_id"],
    )


def get_template(cur: sqlite3.Cursor, template_id: str) -> Optional[EvaluationTemplate]:
    row = cur.execute(
        "SELECT template_id, name, is_default, created_by, exercise_id FROM evaluation_templates WHERE template_id=?;",
        (str(template_id),),
    ).fetchone()
    if not row:
        return None
    return _template_from_row(cur, row)


def get_system_default(cur: sqlite3.Cursor) -> Optional[EvaluationTemplate]:
    """The template flagged is_default (at most one by unique index)."""
    row = cur.execute(
        "SELECT template_id, name, is_default, created_by, exercise_id FROM evaluation_templates WHERE is_default=1;"
    ).fetchone()
    if not row:
        return None
    return _template_from_row(cur, row)
