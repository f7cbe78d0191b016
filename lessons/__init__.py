"""Lesson planning: ordered exercise sequences and their time budget.

Public API
----------
- create_lesson / update_lesson / get_lesson / list_lessons / delete_lesson
- add_exercise / remove_exercise / reorder_exercises
- save_as_template / create_from_template
- get_focus_area_breakdown / estimate_duration_for_performers

Design goals
------------
- Dense ordering: order indices are always exactly 1..N per lesson.
- The cached total duration always equals the sum of planned durations.
- Separation of concerns: sequencer/time_budget are pure, repo = DB I/O,
  service = ownership + persistence.
"""

from .service import (
    add_exercise,
    create_from_template,
    create_lesson,
    delete_lesson,
    estimate_duration_for_performers,
    get_focus_area_breakdown,
    get_lesson,
    list_lessons,
    remove_exercise,
    reorder_exercises,
    save_as_template,
    update_lesson,
)

__all__ = [
    "add_exercise",
    "create_from_template",
    "create_lesson",
    "delete_lesson",
    "estimate_duration_for_performers",
    "get_focus_area_breakdown",
    "get_lesson",
    "list_lessons",
    "remove_exercise",
    "reorder_exercises",
    "save_as_template",
    "update_lesson",
]
