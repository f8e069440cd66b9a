from __future__ import annotations

import asyncio
import time

from conftest import RecordingGateway, role_draft
from resume_enricher.infrastructure import InMemoryEnrichmentRepository, RoleEnrichment
from resume_enricher.workers.enrichment import EnrichmentWorker


def _seed(repository, role_count: int = 3) -> tuple[str, str]:
    drafts = [role_draft(index) for index in range(1, role_count + 1)]
    return repository.create_resume("Ada Lovelace", None, drafts)


def _worker(repository, gateway, **kwargs) -> EnrichmentWorker:
    kwargs.setdefault("poll_interval", 0.01)
    kwargs.setdefault("item_delay", 0)
    return EnrichmentWorker(repository, gateway, **kwargs)


def test_worker_enriches_every_role_and_completes(repository):
    resume_id, job_id = _seed(repository)
    gateway = RecordingGateway()

    assert asyncio.run(_worker(repository, gateway).run_once()) is True

    job = repository.get_job(job_id)
    assert job.status == "completed"
    assert job.completed_roles == job.total_roles == 3
    assert [call.company_name for call in gateway.calls] == ["Company 1", "Company 2", "Company 3"]
    for role in repository.list_roles(resume_id):
        assert role.is_enriched()
        assert role.role_description == f"Built payment systems at company {role.ordinal}."


def test_worker_returns_false_when_nothing_is_pending(repository):
    gateway = RecordingGateway()
    assert asyncio.run(_worker(repository, gateway).run_once()) is False
    assert gateway.calls == []


def test_worker_stops_when_job_status_changes_externally(repository):
    _, job_id = _seed(repository)

    def cancel(call_count, context):
        if call_count == 1:
            repository.mark_error(job_id, "cancelled by operator")

    gateway = RecordingGateway(on_call=cancel)
    asyncio.run(_worker(repository, gateway).run_once())

    job = repository.get_job(job_id)
    assert job.status == "error"
    assert job.last_error == "cancelled by operator"
    assert job.completed_roles == 1
    assert len(gateway.calls) == 1


def test_stop_after_role_leaves_job_running_with_partial_progress(repository):
    resume_id, job_id = _seed(repository)
    worker: EnrichmentWorker | None = None

    def stop_after_first(call_count, context):
        worker.stop()

    gateway = RecordingGateway(on_call=stop_after_first)
    worker = _worker(repository, gateway)
    asyncio.run(worker.run_once())

    job = repository.get_job(job_id)
    assert job.status == "running"
    assert job.completed_roles == 1
    assert len(gateway.calls) == 1
    roles = repository.list_roles(resume_id)
    assert roles[0].is_enriched()
    assert roles[1].enriched_at is None


def test_stop_during_item_delay_processes_no_further_role(repository):
    _, job_id = _seed(repository)
    worker: EnrichmentWorker | None = None

    def stop_while_pacing(call_count, context):
        if call_count == 1:
            asyncio.get_running_loop().call_later(0.05, worker.stop)

    gateway = RecordingGateway(on_call=stop_while_pacing)
    worker = _worker(repository, gateway, item_delay=0.3)
    asyncio.run(worker.run_once())

    job = repository.get_job(job_id)
    assert len(gateway.calls) == 1
    assert job.status == "running"
    assert job.completed_roles == 1


def test_stop_cuts_item_delay_short_when_draining(repository):
    _, job_id = _seed(repository)
    worker: EnrichmentWorker | None = None

    def stop_while_pacing(call_count, context):
        if call_count == 1:
            asyncio.get_running_loop().call_later(0.05, worker.stop)

    gateway = RecordingGateway(on_call=stop_while_pacing)
    worker = _worker(repository, gateway, item_delay=10)

    started = time.monotonic()
    assert asyncio.run(worker.drain()) == 1
    elapsed = time.monotonic() - started

    assert elapsed < 5
    assert len(gateway.calls) == 1
    assert repository.get_job(job_id).completed_roles == 1


def test_already_enriched_roles_are_counted_but_not_reenriched(repository):
    resume_id, job_id = _seed(repository)
    first = repository.list_roles(resume_id)[0]
    repository.save_role_enrichment(
        first.role_id,
        RoleEnrichment(role_description="Done", star_stories=["Story"], metrics=["Metric"]),
        enriched_at="2026-01-01T00:00:00+00:00",
    )

    gateway = RecordingGateway()
    asyncio.run(_worker(repository, gateway).run_once())

    job = repository.get_job(job_id)
    assert job.status == "completed"
    assert job.completed_roles == job.total_roles == 3
    assert [call.company_name for call in gateway.calls] == ["Company 2", "Company 3"]
    kept = repository.list_roles(resume_id)[0]
    assert kept.enriched_at == "2026-01-01T00:00:00+00:00"
    assert kept.role_description == "Done"


def test_gateway_failure_leaves_role_unchanged_but_counts_progress(repository):
    resume_id, job_id = _seed(repository)

    def explode_on_second(call_count, context):
        if call_count == 2:
            raise RuntimeError("backend exploded")

    asyncio.run(_worker(repository, RecordingGateway(on_call=explode_on_second)).run_once())

    job = repository.get_job(job_id)
    assert job.status == "completed"
    assert job.completed_roles == 3
    roles = repository.list_roles(resume_id)
    assert roles[0].is_enriched()
    assert roles[1].enriched_at is None
    assert roles[1].role_star_1 is None
    assert roles[2].is_enriched()


def test_job_without_roles_completes_immediately(repository):
    _, job_id = repository.create_resume("Empty", None, [])
    gateway = RecordingGateway()

    asyncio.run(_worker(repository, gateway).run_once())

    job = repository.get_job(job_id)
    assert job.status == "completed"
    assert job.total_roles == 0
    assert gateway.calls == []


def test_worker_reconciles_stale_total(repository):
    _, job_id = _seed(repository, role_count=2)
    repository.reconcile_total(job_id, 5)

    asyncio.run(_worker(repository, RecordingGateway()).run_once())

    job = repository.get_job(job_id)
    assert job.total_roles == 2
    assert job.completed_roles == 2
    assert job.status == "completed"


class FlakyRepository(InMemoryEnrichmentRepository):
    def __init__(self) -> None:
        super().__init__()
        self.failures_left = 1

    def list_roles(self, resume_id: str):
        if self.failures_left:
            self.failures_left -= 1
            raise RuntimeError("storage unavailable")
        return super().list_roles(resume_id)


def test_job_failure_marks_error_and_worker_moves_on():
    repository = FlakyRepository()
    _, failed_job = _seed(repository)
    _, next_job = _seed(repository)

    processed = asyncio.run(_worker(repository, RecordingGateway()).drain())

    assert processed == 2
    failed = repository.get_job(failed_job)
    assert failed.status == "error"
    assert failed.last_error == "RuntimeError: storage unavailable"
    assert repository.get_job(next_job).status == "completed"


def test_run_loop_processes_jobs_and_exits_after_stop(repository):
    _, job_id = _seed(repository, role_count=2)
    worker = _worker(repository, RecordingGateway(), poll_interval=30)

    async def scenario() -> None:
        task = asyncio.create_task(worker.run())
        for _ in range(200):
            if repository.get_job(job_id).status == "completed":
                break
            await asyncio.sleep(0.01)
        worker.stop()
        await asyncio.wait_for(task, timeout=5)

    asyncio.run(scenario())

    assert worker.stopping
    assert repository.get_job(job_id).status == "completed"
