from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

import lessons
from app.api.deps import coach_id_header, open_repo
from app.schemas.lessons import (
    AddExerciseRequest,
    CreateFromTemplateRequest,
    LessonCreateRequest,
    LessonUpdateRequest,
    ReorderExercisesRequest,
    SaveAsTemplateRequest,
)

router = APIRouter()


@router.post("/api/lessons", status_code=201)
async def api_create_lesson(req: LessonCreateRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.create_lesson(
            repo=repo,
            coach_id=coach_id,
            name=req.name,
            team_id=req.team_id,
            scheduled_date=req.scheduled_date,
            workshop_type=req.workshop_type,
            is_template=req.is_template,
            exercises=[item.model_dump() for item in req.exercises],
        )


@router.get("/api/lessons")
async def api_list_lessons(
    templates: Optional[bool] = None,
    upcoming: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=500),
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return lessons.list_lessons(repo=repo, coach_id=coach_id, templates=templates, upcoming=upcoming, limit=limit)


@router.get("/api/lessons/{lesson_id}")
async def api_get_lesson(lesson_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.get_lesson(repo=repo, coach_id=coach_id, lesson_id=lesson_id)


@router.put("/api/lessons/{lesson_id}")
async def api_update_lesson(lesson_id: str, req: LessonUpdateRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.update_lesson(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson_id,
            name=req.name,
            team_id=req.team_id,
            scheduled_date=req.scheduled_date,
            workshop_type=req.workshop_type,
            exercises=[item.model_dump() for item in req.exercises] if req.exercises is not None else None,
        )


@router.delete("/api/lessons/{lesson_id}")
async def api_delete_lesson(lesson_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.delete_lesson(repo=repo, coach_id=coach_id, lesson_id=lesson_id)


@router.post("/api/lessons/{lesson_id}/exercises", status_code=201)
async def api_add_lesson_exercise(lesson_id: str, req: AddExerciseRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.add_exercise(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson_id,
            exercise_id=req.exercise_id,
            planned_duration_minutes=req.planned_duration_minutes,
            evaluation_template_id=req.evaluation_template_id,
            exercise_notes=req.exercise_notes,
        )


@router.delete("/api/lessons/{lesson_id}/exercises/{lesson_exercise_id}")
async def api_remove_lesson_exercise(lesson_id: str, lesson_exercise_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.remove_exercise(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson_id,
            lesson_exercise_id=lesson_exercise_id,
        )


@router.put("/api/lessons/{lesson_id}/exercises/order")
async def api_reorder_lesson_exercises(
    lesson_id: str,
    req: ReorderExercisesRequest,
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return lessons.reorder_exercises(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson_id,
            lesson_exercise_ids=req.lesson_exercise_ids,
        )


@router.get("/api/lessons/{lesson_id}/time-breakdown")
async def api_lesson_time_breakdown(lesson_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return lessons.get_focus_area_breakdown(repo=repo, coach_id=coach_id, lesson_id=lesson_id)


@router.get("/api/lessons/{lesson_id}/duration-estimate")
async def api_lesson_duration_estimate(
    lesson_id: str,
    performer_count: int = Query(..., ge=1),
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return lessons.estimate_duration_for_performers(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson_id,
            performer_count=performer_count,
        )


@router.post("/api/lessons/{lesson_id}/save-as-template", status_code=201)
async def api_save_lesson_as_template(
    lesson_id: str,
    req: Optional[SaveAsTemplateRequest] = None,
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return lessons.save_as_template(
            repo=repo,
            coach_id=coach_id,
            lesson_id=lesson_id,
            name=req.name if req else None,
        )


@router.post("/api/lessons/templates/{template_id}/instantiate", status_code=201)
async def api_create_lesson_from_template(
    template_id: str,
    req: CreateFromTemplateRequest,
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return lessons.create_from_template(
            repo=repo,
            coach_id=coach_id,
            template_id=template_id,
            scheduled_date=req.scheduled_date,
            name=req.name,
            team_id=req.team_id,
        )
