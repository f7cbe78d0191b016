from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

TemplateSource = Literal["OVERRIDE", "EXERCISE_DEFAULT", "SYSTEM_DEFAULT"]


@dataclass(frozen=True, slots=True)
class EvaluationCriterion:
    name: str
    max_score: int
    description: Optional[str] = None
    focus_area: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "max_score": int(self.max_score),
            "focus_area": self.focus_area,
        }


@dataclass(frozen=True, slots=True)
class EvaluationTemplate:
    """A rubric: named, ordered list of scoring criteria."""

    template_id: str
    name: str
    criteria: Tuple[EvaluationCriterion, ...] = field(default_factory=tuple)
    is_default: bool = False
    created_by: Optional[str] = None
    exercise_id: Optional[str] = None

    def is_accessible_to(self, coach_id: Optional[str]) -> bool:
        # System rubrics have no owner.
        if self.created_by is None:
            return True
        return coach_id is not None and self.created_by == str(coach_id)

    def criterion(self, name: str) -> Optional[EvaluationCriterion]:
        for c in self.criteria:
            if c.name == name:
                return c
        return None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id,
            "name": self.name,
            "is_default": bool(self.is_default),
            "created_by": self.created_by,
            "exercise_id": self.exercise_id,
            "criteria": [c.to_payload() for c in self.criteria],
        }


@dataclass(frozen=True, slots=True)
class ResolvedTemplate:
    template: EvaluationTemplate
    source: TemplateSource

    def to_payload(self) -> Dict[str, Any]:
        out = self.template.to_payload()
        out["source"] = self.source
        return out
