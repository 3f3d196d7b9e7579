"""FastAPI app with health, analysis submission and status endpoints.

Submissions are queued for the in-process worker pool, which is started and
stopped with the application lifespan.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ai.placements import get_taxonomy
from .config import settings
from .db import AsyncSessionMaker
from .errors import JobAlreadySubmitted, JobNotFound
from .logging_config import setup_logging
from .pipelines.analysis import run_analysis
from .pipelines.worker import JobHandler, WorkerPool
from .status import StatusController

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Pydantic request/response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class SubmitAnalysisRequest(CamelModel):
    """Analysis submission request."""
    source_document_url: str = Field(min_length=1)
    job_id: str = Field(min_length=1, max_length=64)
    owner_id: str = Field(min_length=1, max_length=64)
    profile_id: str | None = Field(default=None, max_length=64)


class SubmitAnalysisResponse(CamelModel):
    accepted: bool
    job_id: str


class JobStatusResponse(CamelModel):
    """Job status; error fields are set only for failed jobs."""
    status: str
    error_category: str | None = None
    user_message: str | None = None
    suggested_action: str | None = None


class PlacementDTO(CamelModel):
    """Canonical placement."""
    id: int
    name: str
    category: str
    is_popular: bool


class PlacementListResponse(CamelModel):
    taxonomy_version: str
    placements: list[PlacementDTO]


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    handler: JobHandler | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        session_factory: Session factory for jobs and results (defaults to the configured database)
        handler: Job handler run by the workers (defaults to the full analysis pipeline)
    """
    session_factory = session_factory or AsyncSessionMaker
    handler = handler or partial(run_analysis, session_factory=session_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown logic."""
        # Startup
        setup_logging()
        pool = WorkerPool(handler)
        app.state.pool = pool
        app.state.controller = StatusController(session_factory, pool.queue)
        await pool.start()
        logger.info("Application starting up")

        yield

        # Shutdown
        await pool.stop(drain=True)
        logger.info("Application shutting down")

    app = FastAPI(
        title="Sponsorship Document Analysis",
        version=settings.version,
        description="Asynchronous analysis of sponsorship documents into offers, packages and placements",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],  # Frontend URLs
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(JobNotFound)
    async def job_not_found_handler(request: Request, exc: JobNotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(error="job_not_found", detail=f"No analysis job {exc}").model_dump(),
        )

    @app.exception_handler(JobAlreadySubmitted)
    async def job_already_submitted_handler(request: Request, exc: JobAlreadySubmitted):
        logger.warning(f"Duplicate submission for job {exc}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=ErrorResponse(error="job_already_submitted", detail=f"Job {exc} was already submitted").model_dump(),
        )

    def get_controller(request: Request) -> StatusController:
        return request.app.state.controller

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", version=settings.version)

    @app.post(
        "/analyses",
        response_model=SubmitAnalysisResponse,
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def submit_analysis(
        body: SubmitAnalysisRequest,
        controller: StatusController = Depends(get_controller),
    ) -> SubmitAnalysisResponse:
        """Queue a document for analysis and return immediately.

        Poll ``GET /analyses/{job_id}`` for the outcome.
        """
        logger.info(f"Received analysis request for job {body.job_id}")
        result = await controller.submit(
            body.job_id,
            body.source_document_url,
            body.owner_id,
            body.profile_id,
        )
        return SubmitAnalysisResponse(accepted=result.accepted, job_id=result.job_id)

    @app.get("/analyses/{job_id}", response_model=JobStatusResponse, response_model_exclude_none=True)
    async def get_analysis_status(
        job_id: str,
        controller: StatusController = Depends(get_controller),
    ) -> JobStatusResponse:
        view = await controller.get_status(job_id)
        return JobStatusResponse(
            status=view.status.value,
            error_category=view.error_category,
            user_message=view.user_message,
            suggested_action=view.suggested_action,
        )

    @app.get("/placements", response_model=PlacementListResponse)
    async def placements() -> PlacementListResponse:
        """Canonical placement taxonomy (read-only)."""
        taxonomy = get_taxonomy()
        return PlacementListResponse(
            taxonomy_version=taxonomy.version,
            placements=[
                PlacementDTO(id=e.id, name=e.canonical_name, category=e.category, is_popular=e.is_popular)
                for e in taxonomy.entries
            ],
        )

    return app


app = create_app()
