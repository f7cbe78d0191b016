from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from app.api.router import api_router
from coach_repo import CoachRepo
from errors import CoachingError, ConfigurationError

logger = logging.getLogger(__name__)

app = FastAPI(title="Improv Coach API")


@app.on_event("startup")
def _startup_init_db() -> None:
    # 1) DB schema init (idempotent)
    # 2) seed the system default rubric + system exercise library
    # 3) integrity validate once; refuse to serve a broken DB
    db_path = config.get_db_path()
    with CoachRepo(db_path) as repo:
        repo.init_db()
        repo.seed_defaults()
        repo.validate_integrity()
    logger.info("STARTUP_DB_READY db=%s", db_path)


@app.exception_handler(CoachingError)
async def _coaching_error_handler(request: Request, exc: CoachingError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        logger.error("CONFIGURATION_ERROR path=%s code=%s details=%s", request.url.path, exc.code, exc.details)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_payload()})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=config.get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
