from fastapi import APIRouter

from app.api.routes import catalog, evaluations, lessons, practice

api_router = APIRouter()
api_router.include_router(catalog.router)
api_router.include_router(lessons.router)
api_router.include_router(practice.router)
api_router.include_router(evaluations.router)
