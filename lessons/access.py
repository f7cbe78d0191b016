from __future__ import annotations

"""Ownership checks for lessons.

The caller identity is an explicit ``coach_id``; every check is a plain
equality comparison. Shared by lessons.service and practice.service.
"""

import sqlite3

from errors import LESSON_ACCESS_DENIED, LESSON_NOT_FOUND, NotFoundError, ValidationError

from . import repo as l_repo
from .types import Lesson


def require_lesson(cur: sqlite3.Cursor, *, lesson_id: str, coach_id: str) -> Lesson:
    lesson = l_repo.get_lesson(cur, str(lesson_id))
    if lesson is None:
        raise NotFoundError.for_entity("lesson", lesson_id, code=LESSON_NOT_FOUND)
    if lesson.coach_id != str(coach_id):
        raise ValidationError(
            LESSON_ACCESS_DENIED,
            "Lesson not found or access denied",
            {"kind": "lesson", "id": str(lesson_id)},
        )
    return lesson
