from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

import practice
from app.api.deps import coach_id_header, open_repo
from app.schemas.practice import (
    AdvanceRequest,
    AttendanceRequest,
    BulkAttendanceRequest,
    EndSessionRequest,
    PracticeNoteRequest,
    SceneEvaluationRequest,
    SessionStartRequest,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.post("/api/practice/sessions", status_code=201)
async def api_start_session(req: SessionStartRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.start_session(repo=repo, coach_id=coach_id, lesson_id=req.lesson_id)


@router.get("/api/practice/sessions/{session_id}")
async def api_get_session(session_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.get_session(repo=repo, coach_id=coach_id, session_id=session_id)


@router.get("/api/lessons/{lesson_id}/sessions")
async def api_list_lesson_sessions(lesson_id: str, live_only: bool = False, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.list_sessions(repo=repo, coach_id=coach_id, lesson_id=lesson_id, live_only=live_only)


@router.post("/api/practice/sessions/{session_id}/current-exercise")
async def api_advance_session(session_id: str, req: AdvanceRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.advance_to(
            repo=repo,
            coach_id=coach_id,
            session_id=session_id,
            lesson_exercise_id=req.lesson_exercise_id,
            expected_version=req.expected_version,
        )


@router.post("/api/practice/sessions/{session_id}/end")
async def api_end_session(
    session_id: str,
    req: Optional[EndSessionRequest] = None,
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return practice.end_session(
            repo=repo,
            coach_id=coach_id,
            session_id=session_id,
            expected_version=req.expected_version if req else None,
        )


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


@router.post("/api/practice/sessions/{session_id}/attendance")
async def api_record_attendance(session_id: str, req: AttendanceRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.record_attendance(
            repo=repo,
            coach_id=coach_id,
            session_id=session_id,
            performer_id=req.performer_id,
            present=req.present,
            expected_version=req.expected_version,
        )


@router.put("/api/practice/sessions/{session_id}/attendance")
async def api_replace_attendance(session_id: str, req: BulkAttendanceRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.replace_attendance(
            repo=repo,
            coach_id=coach_id,
            session_id=session_id,
            performer_ids=req.performer_ids,
            expected_version=req.expected_version,
        )


@router.get("/api/practice/sessions/{session_id}/attendance")
async def api_get_attendees(session_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.get_attendees(repo=repo, coach_id=coach_id, session_id=session_id)


# ---------------------------------------------------------------------------
# Scene evaluations / notes
# ---------------------------------------------------------------------------


@router.post("/api/practice/evaluations", status_code=201)
async def api_record_scene_evaluation(req: SceneEvaluationRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.record_scene_evaluation(
            repo=repo,
            coach_id=coach_id,
            lesson_exercise_id=req.lesson_exercise_id,
            session_id=req.session_id,
            performer_ids=req.performer_ids,
            scores=req.scores,
            notes=req.notes,
            rubric_type=req.rubric_type,
        )


@router.get("/api/practice/sessions/{session_id}/evaluations")
async def api_list_session_evaluations(session_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.list_session_evaluations(repo=repo, coach_id=coach_id, session_id=session_id)


@router.get("/api/lesson-exercises/{lesson_exercise_id}/evaluations")
async def api_list_occurrence_evaluations(lesson_exercise_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.list_occurrence_evaluations(
            repo=repo,
            coach_id=coach_id,
            lesson_exercise_id=lesson_exercise_id,
        )


@router.post("/api/practice/notes", status_code=201)
async def api_add_practice_note(req: PracticeNoteRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return practice.add_note(
            repo=repo,
            coach_id=coach_id,
            lesson_id=req.lesson_id,
            session_id=req.session_id,
            note_type=req.note_type,
            content=req.content,
        )


@router.get("/api/lessons/{lesson_id}/notes")
async def api_list_practice_notes(
    lesson_id: str,
    session_id: Optional[str] = None,
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return practice.list_notes(repo=repo, coach_id=coach_id, lesson_id=lesson_id, session_id=session_id)
