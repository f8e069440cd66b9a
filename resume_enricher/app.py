import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resume_enricher.application import IngestionService, StatusService
from resume_enricher.core.settings import Settings, configure_logging, load_settings
from resume_enricher.infrastructure import (
    EnrichmentGateway,
    EnrichmentRepository,
    build_enrichment_gateway,
    open_repository,
)
from resume_enricher.routes import jobs, resumes
from resume_enricher.workers.enrichment import EnrichmentWorker

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    repository: EnrichmentRepository | None = None,
    gateway: EnrichmentGateway | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    repository = repository if repository is not None else open_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not settings.embedded_worker:
            yield
            return

        worker_gateway = gateway if gateway is not None else build_enrichment_gateway(settings)
        worker = EnrichmentWorker(
            repository,
            worker_gateway,
            poll_interval=settings.poll_interval,
            item_delay=settings.item_delay,
        )
        app.state.worker = worker
        task = asyncio.create_task(worker.run(), name="enrichment-worker")
        logger.info("Embedded enrichment worker started")
        try:
            yield
        finally:
            worker.stop()
            await task
            aclose = getattr(worker_gateway, "aclose", None)
            if gateway is None and aclose is not None:
                await aclose()

    app = FastAPI(title="Resume Enricher API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.repository = repository
    app.state.ingestion_service = IngestionService(repository)
    app.state.status_service = StatusService(repository)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(resumes.router, prefix="/api")
    app.include_router(jobs.router, prefix="/api")

    @app.get("/api/health", tags=["health"])
    async def health() -> dict:
        return {"ok": True}

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Resume Enricher API",
                "docs": "/docs",
                "health": "/api/health",
            }
        )

    return app


app = create_app()
