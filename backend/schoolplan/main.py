import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from schoolplan.api.routes import assignments, classes, health, levels, rooms, schedule, subjects, teachers
from schoolplan.core.config import get_settings
from schoolplan.core.exceptions import AppError
from schoolplan.db.bootstrap import ensure_schema

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("schoolplan").setLevel(settings.log_level)
    ensure_schema()
    logger.info("%s started", settings.project_name)
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(levels.router, prefix=f"{settings.api_prefix}/levels", tags=["levels"])
app.include_router(classes.router, prefix=f"{settings.api_prefix}/classes", tags=["classes"])
app.include_router(rooms.router, prefix=f"{settings.api_prefix}/rooms", tags=["rooms"])
app.include_router(subjects.router, prefix=f"{settings.api_prefix}/subjects", tags=["subjects"])
app.include_router(teachers.router, prefix=f"{settings.api_prefix}/teachers", tags=["teachers"])
app.include_router(assignments.router, prefix=f"{settings.api_prefix}/assignments", tags=["assignments"])
app.include_router(schedule.router, prefix=f"{settings.api_prefix}/schedule", tags=["schedule"])
