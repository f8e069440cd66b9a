from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from resume_enricher.domain import RoleDraft
from resume_enricher.infrastructure import (
    InMemoryEnrichmentRepository,
    RoleContext,
    RoleEnrichment,
    SQLiteEnrichmentRepository,
    build_fallback_enrichment,
)


def role_payload(ordinal: int, **overrides: object) -> dict:
    data: dict[str, object] = {
        "ordinal": ordinal,
        "company_name": f"Company {ordinal}",
        "company_size": "51-200",
        "company_industry": "Software",
        "role_title": f"Engineer {ordinal}",
        "role_industry": "Fintech",
        "role_seniority": "Senior",
        "role_duration": 24,
        "role_description": f"Built payment systems at company {ordinal}.",
    }
    data.update(overrides)
    return data


def resume_payload(role_count: int = 3, **overrides: object) -> dict:
    data: dict[str, object] = {
        "candidate_name": "Ada Lovelace",
        "job_link": "https://jobs.example.com/posting/42",
        "roles": [role_payload(index) for index in range(1, role_count + 1)],
    }
    data.update(overrides)
    return data


def role_draft(ordinal: int, **overrides: object) -> RoleDraft:
    return RoleDraft(**role_payload(ordinal, **overrides))


class RecordingGateway:
    """Deterministic gateway that records every context it is asked to enrich."""

    def __init__(self, on_call=None) -> None:
        self.calls: list[RoleContext] = []
        self._on_call = on_call

    async def enrich(self, context: RoleContext) -> RoleEnrichment:
        self.calls.append(context)
        if self._on_call is not None:
            self._on_call(len(self.calls), context)
        result = build_fallback_enrichment(context)
        result.provider = "recording"
        return result


@pytest.fixture(params=["memory", "sqlite"])
def repository(request, tmp_path):
    if request.param == "memory":
        return InMemoryEnrichmentRepository()
    return SQLiteEnrichmentRepository(tmp_path / "enrichment.db")
