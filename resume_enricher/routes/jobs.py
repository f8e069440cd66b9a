from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from resume_enricher.application import StatusService
from resume_enricher.routes.dependencies import get_status_service

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}")
def get_job_progress(
    job_id: str,
    status: StatusService = Depends(get_status_service),
) -> dict:
    """Return status and role progress for an enrichment job."""
    progress = status.job_progress(job_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="job not found")
    return progress
