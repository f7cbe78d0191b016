from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SessionStartRequest(BaseModel):
    lesson_id: str


class VersionedRequest(BaseModel):
    # Optional optimistic check: reject with 409 if the session moved on.
    expected_version: Optional[int] = None


class AdvanceRequest(VersionedRequest):
    lesson_exercise_id: str


class EndSessionRequest(VersionedRequest):
    pass


class AttendanceRequest(VersionedRequest):
    performer_id: str
    present: bool = True


class BulkAttendanceRequest(VersionedRequest):
    performer_ids: List[str] = Field(default_factory=list)


class SceneEvaluationRequest(BaseModel):
    lesson_exercise_id: str
    session_id: Optional[str] = None
    performer_ids: List[str] = Field(default_factory=list)
    scores: Dict[str, int] = Field(default_factory=dict)
    notes: Optional[str] = None
    rubric_type: Optional[str] = None  # caller label, not checked against the rubric


class PracticeNoteRequest(BaseModel):
    lesson_id: str
    session_id: Optional[str] = None
    note_type: Optional[str] = None  # "overall" when omitted
    content: str
