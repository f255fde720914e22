from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .clock import Clock, SystemClock
from .errors import DataIntegrityError, NotFoundError, StorageError, ValidationError
from .logging_setup import setup_logging
from .repositories import get_repository
from .routers import tasks as tasks_router
from .service import TaskService
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Task lifecycle, search, sorting, filtering, reminders and import/export.",
    },
]


def _resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r, using UTC", name)
        return timezone.utc


def _error_response(status_code: int, error: str, message: str, detail: object = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "detail": jsonable_encoder(detail)},
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """
    Build the HTTP application around a single TaskService.

    The repository and service are constructed here once and shared by every
    request through app.state.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    clock = clock or SystemClock()

    app = FastAPI(
        title="SmartTask Store",
        description="Local task store with sorting, filtering, search and reminder data.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    repository = get_repository(settings, clock)
    app.state.settings = settings
    app.state.task_service = TaskService(repository, clock, _resolve_timezone(settings.timezone))
    logger.info("Task store backend=%s", settings.persistence_backend)

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return _error_response(422, "ValidationError", "Request validation failed", exc.errors())

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(422, "ValidationError", str(exc), exc.errors)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, "NotFoundError", "Task not found", exc.task_id)

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError) -> JSONResponse:
        return _error_response(503, "StorageError", str(exc))

    @app.exception_handler(DataIntegrityError)
    async def integrity_handler(request: Request, exc: DataIntegrityError) -> JSONResponse:
        logger.error("Data integrity failure: %s", exc)
        return _error_response(500, "DataIntegrityError", str(exc))

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the storage backend.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(tasks_router.router)
    return app
