"""Construct the repository and gateway selected by configuration."""
from __future__ import annotations

import logging

from resume_enricher.core.settings import Settings

from .enrichment import EnrichmentGateway, FallbackEnrichmentGateway
from .llm import LLMEnrichmentGateway
from .repository import EnrichmentRepository, InMemoryEnrichmentRepository
from .sqlite import SQLiteEnrichmentRepository

logger = logging.getLogger(__name__)


def open_repository(settings: Settings) -> EnrichmentRepository:
    if settings.store == "memory":
        logger.info("Using in-memory repository")
        return InMemoryEnrichmentRepository()
    if settings.store != "sqlite":
        raise ValueError(f"unsupported ENRICHMENT_STORE: {settings.store!r}")
    logger.info("Using SQLite repository at %s", settings.database_path)
    return SQLiteEnrichmentRepository(settings.database_path)


def build_enrichment_gateway(settings: Settings) -> EnrichmentGateway:
    if not settings.llm_api_key:
        logger.info("No LLM API key configured; roles receive deterministic fallback enrichment")
        return FallbackEnrichmentGateway()
    return LLMEnrichmentGateway(
        settings.llm_api_key,
        api_base=settings.llm_base_url,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )
