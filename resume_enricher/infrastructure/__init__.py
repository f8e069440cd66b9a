"""Infrastructure layer exports."""

from .enrichment import (
    EnrichmentGateway,
    FallbackEnrichmentGateway,
    RoleContext,
    RoleEnrichment,
    build_fallback_enrichment,
)
from .factory import build_enrichment_gateway, open_repository
from .llm import LLMEnrichmentGateway
from .repository import EnrichmentRepository, InMemoryEnrichmentRepository
from .sqlite import SQLiteEnrichmentRepository

__all__ = [
    "EnrichmentGateway",
    "EnrichmentRepository",
    "FallbackEnrichmentGateway",
    "InMemoryEnrichmentRepository",
    "LLMEnrichmentGateway",
    "RoleContext",
    "RoleEnrichment",
    "SQLiteEnrichmentRepository",
    "build_enrichment_gateway",
    "build_fallback_enrichment",
    "open_repository",
]
