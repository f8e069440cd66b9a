"""Application service for resume ingestion."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from resume_enricher.core.validation import validate_ingest_payload
from resume_enricher.infrastructure import EnrichmentRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestResult:
    resume_id: str
    job_id: str


class IngestionService:
    """Creates a resume, its pending enrichment job and its roles in one unit."""

    def __init__(self, repository: EnrichmentRepository) -> None:
        self._repository = repository

    def ingest(self, payload: dict) -> IngestResult:
        request = validate_ingest_payload(payload)
        resume_id, job_id = self._repository.create_resume(
            request.candidate_name,
            request.job_link,
            request.role_drafts(),
        )
        logger.info(
            "Ingested resume %s with %d role(s); job %s pending",
            resume_id,
            len(request.roles),
            job_id,
        )
        return IngestResult(resume_id=resume_id, job_id=job_id)

    def rename(self, resume_id: str, candidate_name: str | None) -> bool:
        name = candidate_name.strip() if isinstance(candidate_name, str) else None
        return self._repository.rename_resume(resume_id, name or None)
