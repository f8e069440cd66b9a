"""Domain entities for resume ingestion and role enrichment."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

JobStatus = Literal["pending", "running", "completed", "error"]

JOB_PENDING: JobStatus = "pending"
JOB_RUNNING: JobStatus = "running"
JOB_COMPLETED: JobStatus = "completed"
JOB_ERROR: JobStatus = "error"

LAST_ERROR_MAX_LENGTH = 500

STAR_FIELDS = ("role_star_1", "role_star_2", "role_star_3")
METRIC_FIELDS = ("metric_1", "metric_2", "metric_3")


@dataclass(slots=True)
class ResumeRecord:
    """A candidate profile owning an ordered list of roles."""

    resume_id: str
    candidate_name: str | None
    created_at: str
    updated_at: str


@dataclass(slots=True)
class RoleDraft:
    """Descriptive role fields accepted at ingestion, before an id is assigned."""

    ordinal: int
    company_name: str
    role_title: str
    role_description: str
    company_size: str | None = None
    company_industry: str | None = None
    role_industry: str | None = None
    role_seniority: str | None = None
    role_duration: int | None = None
    role_star_1: str | None = None
    role_star_2: str | None = None
    role_star_3: str | None = None
    metric_1: str | None = None
    metric_2: str | None = None
    metric_3: str | None = None


@dataclass(slots=True)
class RoleItem:
    """A persisted role together with its enrichment fields."""

    role_id: str
    resume_id: str
    ordinal: int
    company_name: str
    role_title: str
    role_description: str
    company_size: str | None = None
    company_industry: str | None = None
    role_industry: str | None = None
    role_seniority: str | None = None
    role_duration: int | None = None
    role_star_1: str | None = None
    role_star_2: str | None = None
    role_star_3: str | None = None
    metric_1: str | None = None
    metric_2: str | None = None
    metric_3: str | None = None
    enriched_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def star_stories(self) -> list[str | None]:
        return [getattr(self, name) for name in STAR_FIELDS]

    @property
    def metrics(self) -> list[str | None]:
        return [getattr(self, name) for name in METRIC_FIELDS]

    def is_enriched(self) -> bool:
        """A role counts as enriched once stamped and holding a story and a metric."""

        return (
            bool(self.enriched_at)
            and any(self.star_stories)
            and any(self.metrics)
        )


@dataclass(slots=True)
class EnrichmentJob:
    """Tracks asynchronous enrichment progress for one resume."""

    job_id: str
    resume_id: str
    status: str = JOB_PENDING
    total_roles: int = 0
    completed_roles: int = 0
    job_link: str | None = None
    last_error: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
