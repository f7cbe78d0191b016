from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import coach_id_header, open_repo
from app.schemas.catalog import (
    CoachCreateRequest,
    ExerciseCreateRequest,
    PerformerCreateRequest,
    TeamCreateRequest,
)
from catalog import service as c_service

router = APIRouter()


@router.post("/api/coaches", status_code=201)
async def api_create_coach(req: CoachCreateRequest):
    with open_repo() as repo:
        coach_id = c_service.create_coach(repo=repo, display_name=req.display_name, coach_id=req.coach_id)
    return {"coach_id": coach_id, "display_name": req.display_name}


@router.post("/api/teams", status_code=201)
async def api_create_team(req: TeamCreateRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        team_id = c_service.create_team(repo=repo, coach_id=coach_id, name=req.name)
    return {"team_id": team_id, "coach_id": coach_id, "name": req.name}


@router.post("/api/performers", status_code=201)
async def api_create_performer(req: PerformerCreateRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        performer_id = c_service.create_performer(
            repo=repo,
            coach_id=coach_id,
            first_name=req.first_name,
            last_name=req.last_name,
            team_ids=req.team_ids,
        )
    return {"performer_id": performer_id, "coach_id": coach_id, "team_ids": list(req.team_ids)}


@router.post("/api/exercises", status_code=201)
async def api_create_exercise(req: ExerciseCreateRequest, coach_id: str = Depends(coach_id_header)):
    with open_repo() as repo:
        exercise = c_service.create_exercise(
            repo=repo,
            name=req.name,
            description=req.description,
            minimum_duration_minutes=req.minimum_duration_minutes,
            focus_areas=req.focus_areas,
            is_public=req.is_public,
            created_by=coach_id,
        )
    return {
        "exercise_id": exercise.exercise_id,
        "name": exercise.name,
        "minimum_duration_minutes": exercise.minimum_duration_minutes,
        "focus_areas": list(exercise.focus_areas),
        "is_public": exercise.is_public,
        "created_by": exercise.created_by,
    }
