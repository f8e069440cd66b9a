from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, TypeVar

from resume_enricher.domain import JOB_RUNNING, EnrichmentJob, RoleItem
from resume_enricher.infrastructure import EnrichmentGateway, EnrichmentRepository, RoleContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EnrichmentWorker:
    """Claims pending jobs one at a time and enriches their roles in ordinal order.

    The worker is a single cooperative task.  ``stop()`` is honoured between
    claims and between roles: the role in flight finishes, no further claim is
    made, and an interrupted job is left ``running`` with partial progress.
    """

    def __init__(
        self,
        repository: EnrichmentRepository,
        gateway: EnrichmentGateway,
        *,
        poll_interval: float = 2.0,
        item_delay: float = 0.3,
    ) -> None:
        self._repository = repository
        self._gateway = gateway
        self._poll_interval = poll_interval
        self._item_delay = item_delay
        self._stopping = False
        self._wakeup: asyncio.Event | None = None

    @property
    def stopping(self) -> bool:
        return self._stopping

    def stop(self) -> None:
        self._stopping = True
        if self._wakeup is not None:
            self._wakeup.set()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    async def _call(func: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(func, *args)

    async def _sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        if self._wakeup is None:
            await asyncio.sleep(seconds)
            return
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _process_role(self, job_id: str, role: RoleItem) -> bool:
        """Enrich one role; returns whether new enrichment was stored."""

        if role.is_enriched():
            logger.info("[%s] Role %s already enriched; skipping", job_id, role.role_id)
            return False

        logger.info(
            "[%s] Enriching role #%s (%s @ %s)",
            job_id,
            role.ordinal,
            role.role_title,
            role.company_name,
        )
        try:
            enrichment = await self._gateway.enrich(RoleContext.from_role(role))
            await self._call(self._repository.save_role_enrichment, role.role_id, enrichment)
        except Exception:
            logger.exception("[%s] Failed enriching role %s; fields left unchanged", job_id, role.role_id)
            return False
        logger.info("[%s] Enriched role %s (%s)", job_id, role.role_id, enrichment.provider)
        return True

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def process_job(self, job: EnrichmentJob) -> None:
        """Drive one claimed job through its roles and finalise its status."""

        roles = await self._call(self._repository.list_roles, job.resume_id)
        if not roles:
            logger.warning("Job %s has no roles; marking completed", job.job_id)
            await self._call(self._repository.mark_completed, job.job_id)
            return

        await self._call(self._repository.reconcile_total, job.job_id, len(roles))

        for index, role in enumerate(roles):
            if self._stopping:
                logger.info("Stop requested; leaving job %s before role #%s", job.job_id, role.ordinal)
                break
            latest = await self._call(self._repository.get_job, job.job_id)
            if latest is None:
                logger.warning("Job %s disappeared mid-run; aborting", job.job_id)
                break
            if latest.status != JOB_RUNNING:
                logger.warning(
                    "Job %s status changed to %s; aborting enrichment loop",
                    job.job_id,
                    latest.status,
                )
                break

            await self._process_role(job.job_id, role)
            await self._call(self._repository.increment_completed, job.job_id, 1)

            if index < len(roles) - 1 and not self._stopping:
                await self._sleep(self._item_delay)

        final = await self._call(self._repository.get_job, job.job_id)
        if final is None or final.status != JOB_RUNNING:
            return
        if final.completed_roles >= final.total_roles:
            await self._call(self._repository.mark_completed, job.job_id)
            logger.info(
                "Job %s completed (roles: %d/%d)",
                job.job_id,
                final.completed_roles,
                final.total_roles,
            )
        else:
            logger.warning(
                "Job %s ended loop but not complete (%d/%d); status still running",
                job.job_id,
                final.completed_roles,
                final.total_roles,
            )

    async def run_once(self) -> bool:
        """Claim and process at most one job; returns whether a job was claimed."""

        job = await self._call(self._repository.claim_next_pending_job)
        if job is None:
            return False

        logger.info("Claimed job %s (resume=%s)", job.job_id, job.resume_id)
        try:
            await self.process_job(job)
        except Exception as exc:
            logger.exception("Job %s failed", job.job_id)
            try:
                await self._call(
                    self._repository.mark_error,
                    job.job_id,
                    f"{type(exc).__name__}: {exc}",
                )
            except Exception:
                logger.exception("Could not record failure for job %s", job.job_id)
        return True

    def _arm_wakeup(self) -> None:
        self._wakeup = asyncio.Event()
        if self._stopping:
            self._wakeup.set()

    async def run(self) -> None:
        """Poll for claimable jobs until :meth:`stop` is called."""

        self._arm_wakeup()
        logger.info("Enrichment worker started")
        try:
            while not self._stopping:
                try:
                    claimed = await self.run_once()
                except Exception:
                    logger.exception("Worker loop error")
                    claimed = False
                if not claimed and not self._stopping:
                    await self._sleep(self._poll_interval)
        finally:
            self._wakeup = None
            logger.info("Enrichment worker shutting down")

    async def drain(self) -> int:
        """Process pending jobs until none can be claimed; returns how many ran."""

        self._arm_wakeup()
        processed = 0
        try:
            while not self._stopping and await self.run_once():
                processed += 1
        finally:
            self._wakeup = None
        return processed
