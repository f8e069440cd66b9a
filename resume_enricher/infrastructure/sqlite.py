"""SQLite-backed repository shared by the API process and worker processes."""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import fields
from pathlib import Path
from typing import Iterable, Iterator

from resume_enricher.domain import (
    JOB_COMPLETED,
    JOB_ERROR,
    JOB_PENDING,
    JOB_RUNNING,
    EnrichmentJob,
    ResumeRecord,
    RoleDraft,
    RoleItem,
)

from .enrichment import RoleEnrichment
from .repository import enrichment_columns, new_id, truncate_error, utcnow

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS resumes (
    id TEXT PRIMARY KEY,
    candidate_name TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    resume_id TEXT NOT NULL REFERENCES resumes(id) ON DELETE CASCADE,
    job_link TEXT,
    status TEXT NOT NULL,
    total_roles INTEGER NOT NULL,
    completed_roles INTEGER NOT NULL,
    last_error TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_jobs_status_created
    ON jobs(status, created_at);

CREATE TABLE IF NOT EXISTS roles (
    id TEXT PRIMARY KEY,
    resume_id TEXT NOT NULL REFERENCES resumes(id) ON DELETE CASCADE,
    ordinal INTEGER NOT NULL,
    company_name TEXT NOT NULL,
    company_size TEXT,
    company_industry TEXT,
    role_title TEXT NOT NULL,
    role_industry TEXT,
    role_seniority TEXT,
    role_duration INTEGER,
    role_description TEXT NOT NULL,
    role_star_1 TEXT,
    role_star_2 TEXT,
    role_star_3 TEXT,
    metric_1 TEXT,
    metric_2 TEXT,
    metric_3 TEXT,
    enriched_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_roles_resume_ordinal
    ON roles(resume_id, ordinal);
"""

ROLE_DRAFT_COLUMNS = [item.name for item in fields(RoleDraft)]


def _row_to_job(row: sqlite3.Row) -> EnrichmentJob:
    return EnrichmentJob(
        job_id=row["id"],
        resume_id=row["resume_id"],
        status=row["status"],
        total_roles=row["total_roles"],
        completed_roles=row["completed_roles"],
        job_link=row["job_link"],
        last_error=row["last_error"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_role(row: sqlite3.Row) -> RoleItem:
    values = {key: row[key] for key in row.keys() if key != "id"}
    return RoleItem(role_id=row["id"], **values)


class SQLiteEnrichmentRepository:
    """Durable repository; each call opens its own connection to the database file."""

    def __init__(self, path: Path | str, *, timeout: float = 30.0) -> None:
        self._path = Path(path)
        self._timeout = timeout
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # connection handling
    # ------------------------------------------------------------------
    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=self._timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def ensure_schema(self) -> None:
        """Create tables on first use (idempotent)."""

        with self._schema_lock:
            if self._schema_ready:
                return
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._open()
            try:
                conn.executescript(SCHEMA)
            finally:
                conn.close()
            self._schema_ready = True
            logger.info("SQLite schema ready at %s", self._path)

    @contextmanager
    def _connect(self, *, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside one transaction, committed on success.

        Writers begin IMMEDIATE, taking the write lock before any statement
        runs; competing writers wait on the busy timeout.
        """

        self.ensure_schema()
        conn = self._open()
        try:
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        finally:
            conn.close()

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

        columns = ", ".join(["id", "resume_id", *ROLE_DRAFT_COLUMNS, "created_at", "updated_at"])
        placeholders = ", ".join("?" for _ in range(len(ROLE_DRAFT_COLUMNS) + 4))
        insert_role = f"INSERT INTO roles ({columns}) VALUES ({placeholders})"

        with self._connect(write=True) as conn:
            conn.execute(
                "INSERT INTO resumes (id, candidate_name, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (resume_id, candidate_name, now, now),
            )
            conn.execute(
                """
                INSERT INTO jobs (
                    id, resume_id, job_link, status,
                    total_roles, completed_roles, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (job_id, resume_id, job_link, JOB_PENDING, len(drafts), now, now),
            )
            for draft in drafts:
                values = [getattr(draft, name) for name in ROLE_DRAFT_COLUMNS]
                conn.execute(insert_role, (new_id("role"), resume_id, *values, now, now))
        return resume_id, job_id

    def get_resume(self, resume_id: str) -> ResumeRecord | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM resumes WHERE id = ?", (resume_id,)).fetchone()
        if row is None:
            return None
        return ResumeRecord(
            resume_id=row["id"],
            candidate_name=row["candidate_name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def rename_resume(self, resume_id: str, candidate_name: str | None) -> bool:
        with self._connect(write=True) as conn:
            cursor = conn.execute(
                "UPDATE resumes SET candidate_name = ?, updated_at = ? WHERE id = ?",
                (candidate_name, utcnow(), resume_id),
            )
            changed = cursor.rowcount
        return changed == 1

    def list_roles(self, resume_id: str) -> list[RoleItem]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM roles WHERE resume_id = ? ORDER BY ordinal ASC",
                (resume_id,),
            ).fetchall()
        return [_row_to_role(row) for row in rows]

    def save_role_enrichment(
        self,
        role_id: str,
        enrichment: RoleEnrichment,
        *,
        enriched_at: str | None = None,
    ) -> None:
        columns = enrichment_columns(enrichment)
        now = utcnow()
        assignments = ", ".join(f"{name} = ?" for name in columns)
        with self._connect(write=True) as conn:
            cursor = conn.execute(
                f"UPDATE roles SET {assignments}, enriched_at = ?, updated_at = ? WHERE id = ?",
                (*columns.values(), enriched_at or now, now, role_id),
            )
            changed = cursor.rowcount
        if changed != 1:
            raise KeyError(role_id)

    # ------------------------------------------------------------------
    # jobs
    # ------------------------------------------------------------------
    def claim_next_pending_job(self) -> EnrichmentJob | None:
        with self._connect() as conn:
            pending = conn.execute(
                """
                SELECT id FROM jobs
                 WHERE status = ?
                 ORDER BY created_at ASC, rowid ASC
                 LIMIT 1
                """,
                (JOB_PENDING,),
            ).fetchone()
        if pending is None:
            return None

        job_id = pending["id"]
        with self._connect(write=True) as conn:
            cursor = conn.execute(
                "UPDATE jobs SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (JOB_RUNNING, utcnow(), job_id, JOB_PENDING),
            )
            changed = cursor.rowcount
        if changed != 1:
            logger.debug("Lost claim race for job %s", job_id)
            return None
        return self.get_job(job_id)

    def get_job(self, job_id: str) -> EnrichmentJob | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        return _row_to_job(row) if row else None

    def increment_completed(self, job_id: str, delta: int = 1) -> None:
        if delta < 0:
            raise ValueError("completed_roles never decreases")
        with self._connect(write=True) as conn:
            conn.execute(
                "UPDATE jobs SET completed_roles = completed_roles + ?, updated_at = ? WHERE id = ?",
                (delta, utcnow(), job_id),
            )

    def mark_completed(self, job_id: str) -> None:
        with self._connect(write=True) as conn:
            conn.execute(
                "UPDATE jobs SET status = ?, updated_at = ? WHERE id = ?",
                (JOB_COMPLETED, utcnow(), job_id),
            )

    def mark_error(self, job_id: str, message: str) -> None:
        with self._connect(write=True) as conn:
            conn.execute(
                "UPDATE jobs SET status = ?, last_error = ?, updated_at = ? WHERE id = ?",
                (JOB_ERROR, truncate_error(message), utcnow(), job_id),
            )

    def reconcile_total(self, job_id: str, actual_count: int) -> None:
        with self._connect(write=True) as conn:
            conn.execute(
                "UPDATE jobs SET total_roles = ?, updated_at = ? WHERE id = ? AND total_roles <> ?",
                (actual_count, utcnow(), job_id, actual_count),
            )
