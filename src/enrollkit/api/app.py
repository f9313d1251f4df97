"""FastAPI application setup."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from enrollkit import get_version
from enrollkit.api.dependencies import close_enrollment_service, init_enrollment_service
from enrollkit.api.models import APIResponse
from enrollkit.api.routes import courses, enrollments, students, system
from enrollkit.config import EnrollKitConfig, create_store
from enrollkit.domain import (
    ConflictError,
    EnrollmentError,
    EnrollmentService,
    NotFoundError,
    StorageError,
    ValidationError,
)
from enrollkit.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from enrollkit.kv_store import KeyValueStore

logger = get_logger("api")

UNPROCESSABLE_ENTITY = 422


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=APIResponse[None](data=None, error=message).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses in the standard envelope."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(UNPROCESSABLE_ENTITY, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(_request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save changes")

    @app.exception_handler(EnrollmentError)
    async def enrollment_error_handler(_request: Request, _exc: EnrollmentError) -> JSONResponse:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    owns_store = app.state.store is None
    store: KeyValueStore = create_store(app.state.config) if owns_store else app.state.store
    service = EnrollmentService(store)
    await service.load()
    init_enrollment_service(service)

    yield
    # Shutdown
    close_enrollment_service()
    if owns_store:
        await store.close()


def create_app(
    config: EnrollKitConfig | None = None,
    store: KeyValueStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings used to build the store. Defaults to built-in defaults.
        store: Explicit store, taking precedence over the configured backend.
    """
    app = FastAPI(
        title="EnrollKit API",
        description="REST API for student, course and enrollment records",
        version=get_version(),
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.config = config or EnrollKitConfig()
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(students.router, prefix="/api/v1")
    app.include_router(courses.router, prefix="/api/v1")
    app.include_router(enrollments.router, prefix="/api/v1")
    app.include_router(system.router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
