from __future__ import annotations

"""Exercise sequencing for a lesson (pure; no DB I/O).

Contract: the order indices of a lesson are always exactly 1..N. Every
operation here returns a new, fully reindexed list plus the recomputed total
duration, so callers never persist a sparse or duplicated index space.
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

from catalog.types import Exercise
from errors import (
    BAD_INPUT,
    EXERCISE_NOT_FOUND,
    OCCURRENCE_NOT_IN_LESSON,
    REORDER_DUPLICATE_ID,
    REORDER_SIZE_MISMATCH,
    REORDER_UNKNOWN_ID,
    NotFoundError,
    ValidationError,
)

from .types import ExerciseRequest, LessonExercise


def ordered(occurrences: Iterable[LessonExercise]) -> List[LessonExercise]:
    return sorted(occurrences, key=lambda le: (int(le.order_index), le.lesson_exercise_id))


def total_duration(occurrences: Iterable[LessonExercise]) -> int:
    """Sum of planned durations; a missing duration counts as 0."""
    return sum(int(le.planned_duration_minutes or 0) for le in occurrences)


def next_order_index(occurrences: Iterable[LessonExercise]) -> int:
    return max((int(le.order_index) for le in occurrences), default=0) + 1


def position_of(occurrences: Iterable[LessonExercise], occurrence_id: Optional[str]) -> Optional[int]:
    """0-based position of ``occurrence_id`` in the ordered sequence (None if absent)."""
    if occurrence_id is None:
        return None
    for i, le in enumerate(ordered(occurrences)):
        if le.lesson_exercise_id == str(occurrence_id):
            return i
    return None


def _reindexed(occurrences: Sequence[LessonExercise]) -> List[LessonExercise]:
    return [
        le if le.order_index == i + 1 else replace(le, order_index=i + 1)
        for i, le in enumerate(occurrences)
    ]


def _check_duration(value: Optional[int], *, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or int(value) != value or int(value) < 0:
        raise ValidationError(BAD_INPUT, f"{field} must be a non-negative integer", {"field": field, "value": value})
    return int(value)


def _default_duration(exercise: Optional[Exercise], requested: Optional[int]) -> Optional[int]:
    duration = _check_duration(requested, field="planned_duration_minutes")
    if duration is None and exercise is not None:
        return exercise.minimum_duration_minutes
    return duration


def create_sequence(
    requests: Sequence[ExerciseRequest],
    *,
    lesson_id: str,
) -> Tuple[List[LessonExercise], int]:
    """Build a fresh sequence: indices 1..N in request order.

    A request without a planned duration takes the exercise's minimum duration.
    """
    out: List[LessonExercise] = []
    for i, req in enumerate(requests):
        out.append(
            LessonExercise(
                lesson_exercise_id=str(uuid4()),
                lesson_id=str(lesson_id),
                exercise_id=req.exercise.exercise_id,
                order_index=i + 1,
                planned_duration_minutes=_default_duration(req.exercise, req.planned_duration_minutes),
                evaluation_template_id=req.evaluation_template_id,
                exercise_notes=req.exercise_notes,
                exercise=req.exercise,
            )
        )
    return out, total_duration(out)


def append_occurrence(
    occurrences: Sequence[LessonExercise],
    exercise: Exercise,
    *,
    lesson_id: str,
    coach_id: str,
    planned_duration_minutes: Optional[int] = None,
    evaluation_template_id: Optional[str] = None,
    exercise_notes: Optional[str] = None,
) -> Tuple[List[LessonExercise], LessonExercise, int]:
    """Attach ``exercise`` at ``max(index) + 1``.

    Raises NotFoundError when the exercise is neither public, system nor owned
    by ``coach_id`` (private exercises are invisible to other coaches).
    """
    if not exercise.is_accessible_to(coach_id):
        raise NotFoundError.for_entity("exercise", exercise.exercise_id, code=EXERCISE_NOT_FOUND)

    created = LessonExercise(
        lesson_exercise_id=str(uuid4()),
        lesson_id=str(lesson_id),
        exercise_id=exercise.exercise_id,
        order_index=next_order_index(occurrences),
        planned_duration_minutes=_default_duration(exercise, planned_duration_minutes),
        evaluation_template_id=evaluation_template_id,
        exercise_notes=exercise_notes,
        exercise=exercise,
    )
    out = ordered(occurrences) + [created]
    return out, created, total_duration(out)


def remove_occurrence(
    occurrences: Sequence[LessonExercise],
    occurrence_id: str,
    *,
    lesson_id: str,
) -> Tuple[List[LessonExercise], LessonExercise, int]:
    """Drop one occurrence and close the gap (remaining indices become 1..N-1)."""
    current = ordered(occurrences)
    target = next((le for le in current if le.lesson_exercise_id == str(occurrence_id)), None)
    if target is None:
        raise ValidationError(
            OCCURRENCE_NOT_IN_LESSON,
            "Exercise does not belong to this lesson",
            {"kind": "lesson_exercise", "id": occurrence_id, "lesson_id": lesson_id},
        )
    remaining = _reindexed([le for le in current if le.lesson_exercise_id != target.lesson_exercise_id])
    return remaining, target, total_duration(remaining)


def reorder_occurrences(
    occurrences: Sequence[LessonExercise],
    ordered_ids: Sequence[str],
) -> Tuple[List[LessonExercise], int]:
    """Apply a full permutation: the occurrence at position i gets index i+1."""
    by_id = {le.lesson_exercise_id: le for le in occurrences}
    ids = [str(x) for x in ordered_ids]
    if len(ids) != len(by_id):
        raise ValidationError(
            REORDER_SIZE_MISMATCH,
            "Invalid exercise list for reordering",
            {"expected": len(by_id), "got": len(ids)},
        )
    seen: set[str] = set()
    out: List[LessonExercise] = []
    for i, oid in enumerate(ids):
        if oid not in by_id:
            raise ValidationError(REORDER_UNKNOWN_ID, "Exercise not found in lesson", {"kind": "lesson_exercise", "id": oid})
        if oid in seen:
            raise ValidationError(REORDER_DUPLICATE_ID, "Exercise listed twice", {"kind": "lesson_exercise", "id": oid})
        seen.add(oid)
        le = by_id[oid]
        out.append(le if le.order_index == i + 1 else replace(le, order_index=i + 1))
    return out, total_duration(out)
