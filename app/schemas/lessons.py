from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class LessonExerciseItem(BaseModel):
    exercise_id: str
    planned_duration_minutes: Optional[int] = Field(None, ge=0)
    evaluation_template_id: Optional[str] = None
    exercise_notes: Optional[str] = None


class LessonCreateRequest(BaseModel):
    name: Optional[str] = None  # generated from team/workshop/date when empty
    team_id: Optional[str] = None
    scheduled_date: Optional[str] = None  # ISO-8601
    workshop_type: Optional[str] = None
    is_template: bool = False
    exercises: List[LessonExerciseItem] = Field(default_factory=list)


class LessonUpdateRequest(BaseModel):
    name: Optional[str] = None
    team_id: Optional[str] = None
    scheduled_date: Optional[str] = None
    workshop_type: Optional[str] = None
    # None keeps the current sequence; a list (even empty) replaces it.
    exercises: Optional[List[LessonExerciseItem]] = None


class AddExerciseRequest(LessonExerciseItem):
    pass


class ReorderExercisesRequest(BaseModel):
    lesson_exercise_ids: List[str]


class SaveAsTemplateRequest(BaseModel):
    name: Optional[str] = None


class CreateFromTemplateRequest(BaseModel):
    scheduled_date: Optional[str] = None
    name: Optional[str] = None
    team_id: Optional[str] = None
