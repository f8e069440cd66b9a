"""Read-only projections polled by clients."""
from __future__ import annotations

from dataclasses import asdict

from resume_enricher.domain import JOB_COMPLETED, EnrichmentJob, RoleItem
from resume_enricher.infrastructure import EnrichmentRepository

SNAPSHOT_ROLE_FIELDS = (
    "ordinal",
    "company_name",
    "company_size",
    "company_industry",
    "role_title",
    "role_industry",
    "role_seniority",
    "role_duration",
    "role_description",
    "role_star_1",
    "role_star_2",
    "role_star_3",
    "metric_1",
    "metric_2",
    "metric_3",
    "enriched_at",
)


def _progress(job: EnrichmentJob) -> float:
    if job.total_roles <= 0:
        return 1.0 if job.status == JOB_COMPLETED else 0.0
    return round(min(job.completed_roles / job.total_roles, 1.0), 4)


def _serialise_role(role: RoleItem) -> dict[str, object]:
    data = asdict(role)
    return {"role_id": role.role_id, **{key: data[key] for key in SNAPSHOT_ROLE_FIELDS}}


class StatusService:
    def __init__(self, repository: EnrichmentRepository) -> None:
        self._repository = repository

    def job_progress(self, job_id: str) -> dict[str, object] | None:
        job = self._repository.get_job(job_id)
        if job is None:
            return None
        return {
            "job_id": job.job_id,
            "resume_id": job.resume_id,
            "job_link": job.job_link,
            "status": job.status,
            "total_roles": job.total_roles,
            "completed_roles": job.completed_roles,
            "progress": _progress(job),
            "last_error": job.last_error,
        }

    def resume_snapshot(self, resume_id: str) -> dict[str, object] | None:
        """Return the resume with every role as currently stored, nulls included."""

        resume = self._repository.get_resume(resume_id)
        if resume is None:
            return None
        roles = self._repository.list_roles(resume_id)
        return {
            "resume_id": resume.resume_id,
            "candidate_name": resume.candidate_name,
            "roles": [_serialise_role(role) for role in roles],
        }
