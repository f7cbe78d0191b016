from __future__ import annotations

from fastapi import APIRouter, Depends

import evaluation
from app.api.deps import coach_id_header, open_repo
from app.schemas.evaluations import EvaluationTemplateCreateRequest

router = APIRouter()


@router.post("/api/evaluation-templates", status_code=201)
async def api_create_evaluation_template(
    req: EvaluationTemplateCreateRequest,
    coach_id: str = Depends(coach_id_header),
):
    with open_repo() as repo:
        return evaluation.create_template(
            repo=repo,
            coach_id=coach_id,
            name=req.name,
            criteria=[c.model_dump() for c in req.criteria],
            exercise_id=req.exercise_id,
        )


@router.get("/api/evaluation-templates/{template_id}")
async def api_get_evaluation_template(template_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return evaluation.get_template(repo=repo, coach_id=coach_id, template_id=template_id)


@router.get("/api/lesson-exercises/{lesson_exercise_id}/evaluation-template")
async def api_resolve_evaluation_template(lesson_exercise_id: str, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        return evaluation.resolve_template_for_occurrence(
            repo=repo,
            coach_id=coach_id,
            occurrence_id=lesson_exercise_id,
        )
