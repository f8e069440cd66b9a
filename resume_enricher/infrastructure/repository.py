"""Infrastructure layer for resume, role and job persistence."""
from __future__ import annotations

import itertools
import threading
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Iterable, Protocol
from uuid import uuid4

from resume_enricher.domain import (
    JOB_COMPLETED,
    JOB_ERROR,
    JOB_PENDING,
    JOB_RUNNING,
    LAST_ERROR_MAX_LENGTH,
    METRIC_FIELDS,
    STAR_FIELDS,
    EnrichmentJob,
    ResumeRecord,
    RoleDraft,
    RoleItem,
)

from .enrichment import RoleEnrichment


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def truncate_error(message: str) -> str:
    return str(message)[:LAST_ERROR_MAX_LENGTH]


def enrichment_columns(enrichment: RoleEnrichment) -> dict[str, str | None]:
    """Flatten an enrichment into role columns; empty slots become ``None``."""

    columns: dict[str, str | None] = {"role_description": enrichment.role_description}
    for index, name in enumerate(STAR_FIELDS):
        stories = enrichment.star_stories
        columns[name] = (stories[index] or None) if index < len(stories) else None
    for index, name in enumerate(METRIC_FIELDS):
        metrics = enrichment.metrics
        columns[name] = (metrics[index] or None) if index < len(metrics) else None
    return columns


class EnrichmentRepository(Protocol):
    """Persistence contract shared by ingestion, the worker and status reads."""

    def create_resume(
        self,
        candidate_name: str | None,
        job_link: str | None,
        roles: Iterable[RoleDraft],
    ) -> tuple[str, str]: ...

    def get_resume(self, resume_id: str) -> ResumeRecord | None: ...

    def rename_resume(self, resume_id: str, candidate_name: str | None) -> bool: ...

    def list_roles(self, resume_id: str) -> list[RoleItem]: ...

    def save_role_enrichment(
        self,
        role_id: str,
        enrichment: RoleEnrichment,
        *,
        enriched_at: str | None = None,
    ) -> None: ...

    def claim_next_pending_job(self) -> EnrichmentJob | None: ...

    def get_job(self, job_id: str) -> EnrichmentJob | None: ...

    def increment_completed(self, job_id: str, delta: int = 1) -> None: ...

    def mark_completed(self, job_id: str) -> None: ...

    def mark_error(self, job_id: str, message: str) -> None: ...

    def reconcile_total(self, job_id: str, actual_count: int) -> None: ...


class InMemoryEnrichmentRepository:
    """Dict-backed repository for fast iteration and tests.

    Every public method runs under a single lock, which makes the pending to
    running claim one indivisible conditional write.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resumes: dict[str, ResumeRecord] = {}
        self._roles: dict[str, RoleItem] = {}
        self._jobs: dict[str, EnrichmentJob] = {}
        self._job_sequence: dict[str, int] = {}
        self._sequence = itertools.count()

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _touch_job(self, job_id: str, **changes: object) -> EnrichmentJob | None:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        for key, value in changes.items():
            setattr(job, key, value)
        job.updated_at = utcnow()
        return job

    # ------------------------------------------------------------------
    # resumes & roles
    # ------------------------------------------------------------------
    def create_resume(
        self,
        candidate_name: str | None,
        job_link: str | None,
        roles: Iterable[RoleDraft],
    ) -> tuple[str, str]:
        drafts = list(roles)
        now = utcnow()
        resume_id = new_id("resume")
        job_id = new_id("job")

        # Build every row before publishing any of them.
        role_rows: list[RoleItem] = []
        for draft in drafts:
            values = {item.name: getattr(draft, item.name) for item in fields(RoleDraft)}
            role_rows.append(
                RoleItem(
                    role_id=new_id("role"),
                    resume_id=resume_id,
                    created_at=now,
                    updated_at=now,
                    **values,
                )
            )
        resume = ResumeRecord(
            resume_id=resume_id,
            candidate_name=candidate_name,
            created_at=now,
            updated_at=now,
        )
        job = EnrichmentJob(
            job_id=job_id,
            resume_id=resume_id,
            status=JOB_PENDING,
            total_roles=len(role_rows),
            completed_roles=0,
            job_link=job_link,
            created_at=now,
            updated_at=now,
        )

        with self._lock:
            self._resumes[resume_id] = resume
            for role in role_rows:
                self._roles[role.role_id] = role
            self._jobs[job_id] = job
            self._job_sequence[job_id] = next(self._sequence)
        return resume_id, job_id

    def get_resume(self, resume_id: str) -> ResumeRecord | None:
        with self._lock:
            resume = self._resumes.get(resume_id)
            return replace(resume) if resume else None

    def rename_resume(self, resume_id: str, candidate_name: str | None) -> bool:
        with self._lock:
            resume = self._resumes.get(resume_id)
            if resume is None:
                return False
            resume.candidate_name = candidate_name
            resume.updated_at = utcnow()
            return True

    def list_roles(self, resume_id: str) -> list[RoleItem]:
        with self._lock:
            roles = [replace(role) for role in self._roles.values() if role.resume_id == resume_id]
        roles.sort(key=lambda role: role.ordinal)
        return roles

    def save_role_enrichment(
        self,
        role_id: str,
        enrichment: RoleEnrichment,
        *,
        enriched_at: str | None = None,
    ) -> None:
        columns = enrichment_columns(enrichment)
        with self._lock:
            role = self._roles.get(role_id)
            if role is None:
                raise KeyError(role_id)
            for key, value in columns.items():
                setattr(role, key, value)
            now = utcnow()
            role.enriched_at = enriched_at or now
            role.updated_at = now

    # ------------------------------------------------------------------
    # jobs
    # ------------------------------------------------------------------
    def claim_next_pending_job(self) -> EnrichmentJob | None:
        with self._lock:
            pending = [job for job in self._jobs.values() if job.status == JOB_PENDING]
            if not pending:
                return None
            oldest = min(
                pending,
                key=lambda job: (job.created_at or "", self._job_sequence[job.job_id]),
            )
            claimed = self._touch_job(oldest.job_id, status=JOB_RUNNING)
            return replace(claimed) if claimed else None

    def get_job(self, job_id: str) -> EnrichmentJob | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    def increment_completed(self, job_id: str, delta: int = 1) -> None:
        if delta < 0:
            raise ValueError("completed_roles never decreases")
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None:
                self._touch_job(job_id, completed_roles=job.completed_roles + delta)

    def mark_completed(self, job_id: str) -> None:
        with self._lock:
            self._touch_job(job_id, status=JOB_COMPLETED)

    def mark_error(self, job_id: str, message: str) -> None:
        with self._lock:
            self._touch_job(job_id, status=JOB_ERROR, last_error=truncate_error(message))

    def reconcile_total(self, job_id: str, actual_count: int) -> None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is not None and job.total_roles != actual_count:
                self._touch_job(job_id, total_roles=actual_count)
