from __future__ import annotations

"""Value types for live practice sessions.

Kept free of DB I/O. ``PracticeSession`` is immutable; the engine returns a
new instance for every transition and the repo persists it with a version
check.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Literal, Mapping, Optional, Tuple

SessionState = Literal["LIVE", "CLOSED"]


@dataclass(frozen=True, slots=True)
class PracticeSession:
    session_id: str
    lesson_id: str
    start_time: str
    end_time: Optional[str] = None
    current_exercise_id: Optional[str] = None
    current_exercise_index: int = 0
    attendee_ids: FrozenSet[str] = field(default_factory=frozenset)
    version: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return "LIVE" if self.end_time is None else "CLOSED"

    @property
    def is_live(self) -> bool:
        return self.end_time is None


@dataclass(frozen=True, slots=True)
class SceneEvaluation:
    evaluation_id: str
    lesson_exercise_id: str
    evaluated_at: str
    session_id: Optional[str] = None
    performer_ids: Tuple[str, ...] = ()
    scores: Mapping[str, int] = field(default_factory=dict)
    notes: Optional[str] = None
    rubric_type: Optional[str] = None
    template_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "evaluation_id": self.evaluation_id,
            "lesson_exercise_id": self.lesson_exercise_id,
            "session_id": self.session_id,
            "performer_ids": list(self.performer_ids),
            "scores": dict(self.scores),
            "notes": self.notes,
            "rubric_type": self.rubric_type,
            "template_id": self.template_id,
            "evaluated_at": self.evaluated_at,
        }


@dataclass(frozen=True, slots=True)
class PracticeNote:
    note_id: str
    lesson_id: str
    note_type: str
    content: str
    created_at: str
    session_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "note_id": self.note_id,
            "lesson_id": self.lesson_id,
            "session_id": self.session_id,
            "note_type": self.note_type,
            "content": self.content,
            "created_at": self.created_at,
        }
