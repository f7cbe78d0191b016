from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class CoachCreateRequest(BaseModel):
    display_name: str
    coach_id: Optional[str] = None


class TeamCreateRequest(BaseModel):
    name: str


class PerformerCreateRequest(BaseModel):
    first_name: str
    last_name: Optional[str] = None
    team_ids: List[str] = Field(default_factory=list)


class ExerciseCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    minimum_duration_minutes: Optional[int] = Field(None, ge=0)
    focus_areas: List[str] = Field(default_factory=list)
    is_public: bool = False
