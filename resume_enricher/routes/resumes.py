from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from resume_enricher.application import IngestionService, StatusService
from resume_enricher.core.validation import IngestionValidationError
from resume_enricher.routes.dependencies import get_ingestion_service, get_status_service

# Handlers are sync so blocking store calls run in the threadpool.
router = APIRouter(prefix="/resumes", tags=["resumes"])


@router.post("/ingest")
def ingest_resume(
    payload: dict,
    service: IngestionService = Depends(get_ingestion_service),
) -> dict:
    """Store a parsed resume and queue its roles for enrichment."""
    try:
        result = service.ingest(payload)
    except IngestionValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"resume_id": result.resume_id, "job_id": result.job_id}


@router.get("/{resume_id}/snapshot")
def get_resume_snapshot(
    resume_id: str,
    status: StatusService = Depends(get_status_service),
) -> dict:
    snapshot = status.resume_snapshot(resume_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="resume not found")
    return snapshot


@router.patch("/{resume_id}")
def rename_resume(
    resume_id: str,
    payload: dict,
    service: IngestionService = Depends(get_ingestion_service),
    status: StatusService = Depends(get_status_service),
) -> dict:
    if "candidate_name" not in payload:
        raise HTTPException(status_code=400, detail="candidate_name is required")
    candidate_name = payload.get("candidate_name")
    if candidate_name is not None and not isinstance(candidate_name, str):
        raise HTTPException(status_code=400, detail="candidate_name must be a string or null")
    if not service.rename(resume_id, candidate_name):
        raise HTTPException(status_code=404, detail="resume not found")
    snapshot = status.resume_snapshot(resume_id)
    if snapshot is None:  # pragma: no cover - renamed rows are never deleted
        raise HTTPException(status_code=404, detail="resume not found")
    return snapshot
