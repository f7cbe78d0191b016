from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class CriterionItem(BaseModel):
    name: str
    max_score: int = Field(..., gt=0)
    description: Optional[str] = None
    focus_area: Optional[str] = None


class EvaluationTemplateCreateRequest(BaseModel):
    name: str
    criteria: List[CriterionItem] = Field(default_factory=list)
    exercise_id: Optional[str] = None  # becomes this exercise's default rubric
