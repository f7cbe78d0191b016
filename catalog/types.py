from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class Exercise:
    """Reusable exercise definition (read-only to the core)."""

    exercise_id: str
    name: str
    description: Optional[str] = None
    minimum_duration_minutes: Optional[int] = None
    focus_areas: Tuple[str, ...] = field(default_factory=tuple)
    default_template_id: Optional[str] = None
    is_public: bool = False
    is_system: bool = False
    created_by: Optional[str] = None

    def is_accessible_to(self, coach_id: Optional[str]) -> bool:
        if self.is_public or self.is_system:
            return True
        return coach_id is not None and self.created_by == str(coach_id)


@dataclass(frozen=True, slots=True)
class Team:
    team_id: str
    coach_id: str
    name: str


@dataclass(frozen=True, slots=True)
class Performer:
    performer_id: str
    coach_id: str
    first_name: str
    last_name: Optional[str] = None
    team_ids: Tuple[str, ...] = field(default_factory=tuple)
