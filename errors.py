from __future__ import annotations

"""Structured error taxonomy shared by every subsystem.

The HTTP layer maps these to 4xx/5xx responses while keeping a stable,
machine-readable ``code`` for clients.

- NotFoundError: a referenced entity does not exist or is not accessible.
- ValidationError: structurally invalid input or a forbidden transition.
- ConflictError: a stale write lost against a concurrent one (ValidationError subtype).
- ConfigurationError: a deployment defect (e.g. no system default rubric).
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional


@dataclass
class CoachingError(Exception):
    code: str
    message: str
    details: Optional[Any] = None

    status_code: ClassVar[int] = 500

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"

    def to_payload(self) -> dict:
        return {"code": str(self.code), "message": str(self.message), "details": self.details}


class NotFoundError(CoachingError):
    status_code: ClassVar[int] = 404

    @classmethod
    def for_entity(cls, kind: str, entity_id: Any, *, code: Optional[str] = None) -> "NotFoundError":
        return cls(
            code or f"{str(kind).upper()}_NOT_FOUND",
            f"{kind} not found",
            {"kind": str(kind), "id": entity_id},
        )


class ValidationError(CoachingError):
    status_code: ClassVar[int] = 400


class ConflictError(ValidationError):
    status_code: ClassVar[int] = 409


class ConfigurationError(CoachingError):
    status_code: ClassVar[int] = 500


# Error codes (stable API surface)
COACH_NOT_FOUND = "COACH_NOT_FOUND"
LESSON_NOT_FOUND = "LESSON_NOT_FOUND"
LESSON_ACCESS_DENIED = "LESSON_ACCESS_DENIED"
LESSON_NOT_TEMPLATE = "LESSON_NOT_TEMPLATE"
LESSON_BAD_PAYLOAD = "LESSON_BAD_PAYLOAD"
EXERCISE_NOT_FOUND = "EXERCISE_NOT_FOUND"
OCCURRENCE_NOT_FOUND = "OCCURRENCE_NOT_FOUND"
OCCURRENCE_NOT_IN_LESSON = "OCCURRENCE_NOT_IN_LESSON"
REORDER_SIZE_MISMATCH = "REORDER_SIZE_MISMATCH"
REORDER_UNKNOWN_ID = "REORDER_UNKNOWN_ID"
REORDER_DUPLICATE_ID = "REORDER_DUPLICATE_ID"
TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
PERFORMER_NOT_FOUND = "PERFORMER_NOT_FOUND"
TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
SYSTEM_DEFAULT_TEMPLATE_MISSING = "SYSTEM_DEFAULT_TEMPLATE_MISSING"
SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
SESSION_ALREADY_CLOSED = "SESSION_ALREADY_CLOSED"
SESSION_LESSON_MISMATCH = "SESSION_LESSON_MISMATCH"
SESSION_VERSION_CONFLICT = "SESSION_VERSION_CONFLICT"
SESSION_LOCK_TIMEOUT = "SESSION_LOCK_TIMEOUT"
SCORE_OUT_OF_RANGE = "SCORE_OUT_OF_RANGE"
NOTE_BAD_PAYLOAD = "NOTE_BAD_PAYLOAD"
BAD_INPUT = "BAD_INPUT"
