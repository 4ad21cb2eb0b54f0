"""
FastAPI backend for Triage Assist.

Exposes the clinical store, the onboarding and screening wizards, and
record intake as a REST API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import assist, health, onboarding, patients, records, screening, settings
from triage.config import Settings
from triage.errors import (
    CollaboratorError,
    NotFoundError,
    RateLimitedError,
    StorageError,
    ValidationError,
)
from triage.repositories import ClinicalStore
from triage.utils.logging import setup_logging


logger = logging.getLogger("triage.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    config: Settings = app.state.settings
    setup_logging(config.log_level, config.log_file)
    if getattr(app.state, "clinical", None) is None:
        app.state.clinical = ClinicalStore.open(config)
    logger.info("Triage Assist API starting")
    yield
    logger.info("Triage Assist API shutting down")


def create_app(
    config: Optional[Settings] = None,
    clinical: Optional[ClinicalStore] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings; loaded from config file and environment if None
        clinical: Pre-built store; opened from settings at startup if None
    """
    app = FastAPI(
        title="Triage Assist API",
        description="Local clinical record store with onboarding and endemic screening",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = config or Settings.load()
    app.state.clinical = clinical

    # CORS configuration for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ValidationError, _invalid)
    app.add_exception_handler(CollaboratorError, _collaborator_failed)
    app.add_exception_handler(StorageError, _storage_failed)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(patients.router, prefix="/api", tags=["Patients"])
    app.include_router(records.router, prefix="/api", tags=["Records"])
    app.include_router(onboarding.router, prefix="/api", tags=["Onboarding"])
    app.include_router(screening.router, prefix="/api", tags=["Screening"])
    app.include_router(assist.router, prefix="/api", tags=["Assist"])
    app.include_router(settings.router, prefix="/api", tags=["Settings"])
    return app


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _invalid(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


async def _collaborator_failed(request: Request, exc: CollaboratorError) -> JSONResponse:
    status = 429 if isinstance(exc, RateLimitedError) else 503
    return JSONResponse(
        status_code=status,
        content={"detail": exc.user_message, "retryable": exc.retryable},
    )


async def _storage_failed(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Could not save changes"})


load_dotenv()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
