from __future__ import annotations

from fastapi import Request

from resume_enricher.application import IngestionService, StatusService


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def get_status_service(request: Request) -> StatusService:
    return request.app.state.status_service
