"""Builders for pure (DB-free) tests."""

from typing import Optional, Sequence

from catalog.types import Exercise
from lessons.types import LessonExercise


def exercise(exercise_id: str, *tags: str, minutes: Optional[int] = None, default_template_id=None, **kw) -> Exercise:
    return Exercise(
        exercise_id=exercise_id,
        name=exercise_id.title(),
        minimum_duration_minutes=minutes,
        focus_areas=tuple(tags),
        default_template_id=default_template_id,
        **kw,
    )


def occurrence(
    occurrence_id: str,
    order_index: int,
    minutes: Optional[int],
    ex: Optional[Exercise] = None,
    *,
    lesson_id: str = "L1",
    override: Optional[str] = None,
) -> LessonExercise:
    ex = ex or exercise(f"ex-{occurrence_id}")
    return LessonExercise(
        lesson_exercise_id=occurrence_id,
        lesson_id=lesson_id,
        exercise_id=ex.exercise_id,
        order_index=order_index,
        planned_duration_minutes=minutes,
        evaluation_template_id=override,
        exercise=ex,
    )


def indices(occurrences: Sequence[LessonExercise]):
    return [le.order_index for le in occurrences]


def ids(occurrences: Sequence[LessonExercise]):
    return [le.lesson_exercise_id for le in occurrences]
