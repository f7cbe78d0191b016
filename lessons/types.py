from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from catalog.types import Exercise


@dataclass(frozen=True, slots=True)
class ExerciseRequest:
    """One requested placement of an exercise when building a sequence."""

    exercise: Exercise
    planned_duration_minutes: Optional[int] = None
    evaluation_template_id: Optional[str] = None
    exercise_notes: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LessonExercise:
    """One occurrence of an Exercise inside a lesson's ordered sequence."""

    lesson_exercise_id: str
    lesson_id: str
    exercise_id: str
    order_index: int
    planned_duration_minutes: Optional[int] = None
    evaluation_template_id: Optional[str] = None
    exercise_notes: Optional[str] = None
    # Loaded definition (read-only); None only for dangling references.
    exercise: Optional[Exercise] = None


@dataclass(frozen=True, slots=True)
class Lesson:
    lesson_id: str
    coach_id: str
    name: str
    team_id: Optional[str] = None
    scheduled_date: Optional[str] = None
    workshop_type: Optional[str] = None
    is_template: bool = False
    total_duration_minutes: int = 0
    exercises: Tuple[LessonExercise, ...] = field(default_factory=tuple)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TimeBreakdown:
    focus_area: str
    minutes: int
    percentage: float

    @property
    def formatted_percentage(self) -> str:
        return f"{self.percentage:.1f}%"
