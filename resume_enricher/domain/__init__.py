"""Domain layer definitions."""

from .resumes import (
    JOB_COMPLETED,
    JOB_ERROR,
    JOB_PENDING,
    JOB_RUNNING,
    LAST_ERROR_MAX_LENGTH,
    METRIC_FIELDS,
    STAR_FIELDS,
    EnrichmentJob,
    JobStatus,
    ResumeRecord,
    RoleDraft,
    RoleItem,
)

__all__ = [
    "JOB_COMPLETED",
    "JOB_ERROR",
    "JOB_PENDING",
    "JOB_RUNNING",
    "LAST_ERROR_MAX_LENGTH",
    "METRIC_FIELDS",
    "STAR_FIELDS",
    "EnrichmentJob",
    "JobStatus",
    "ResumeRecord",
    "RoleDraft",
    "RoleItem",
]
