"""Role enrichment gateway contract and deterministic fallback.

The worker asks a gateway to turn one role's descriptive fields into STAR
stories and metrics.  Gateways never raise: when no text-generation backend is
configured, or the backend misbehaves, they answer with the deterministic
output built by :func:`build_fallback_enrichment`.  The only visible difference
between a live answer and a fallback is content quality.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from resume_enricher.domain import RoleItem

MAX_STAR_STORIES = 3
MAX_METRICS = 3
EMPTY_DESCRIPTION = "(No original description)"


@dataclass(slots=True)
class RoleContext:
    """Minimal role shape needed to request an enrichment."""

    company_name: str
    role_title: str
    role_description: str
    role_duration: int | None = None
    company_industry: str | None = None
    role_industry: str | None = None
    role_seniority: str | None = None

    @classmethod
    def from_role(cls, role: RoleItem) -> "RoleContext":
        return cls(
            company_name=role.company_name,
            role_title=role.role_title,
            role_description=role.role_description,
            role_duration=role.role_duration,
            company_industry=role.company_industry,
            role_industry=role.role_industry,
            role_seniority=role.role_seniority,
        )


@dataclass(slots=True)
class RoleEnrichment:
    """Container returned by :class:`EnrichmentGateway` implementations."""

    role_description: str
    star_stories: list[str] = field(default_factory=list)
    metrics: list[str] = field(default_factory=list)
    provider: str = "fallback"


class EnrichmentGateway(Protocol):
    """Contract for role enrichment backends."""

    async def enrich(self, context: RoleContext) -> RoleEnrichment:
        """Return generated text fields for the role."""


def build_fallback_enrichment(context: RoleContext) -> RoleEnrichment:
    description = (context.role_description or "").strip() or EMPTY_DESCRIPTION
    return RoleEnrichment(
        role_description=description,
        star_stories=[
            f"Delivered measurable improvements at {context.company_name} as {context.role_title}.",
            "Collaborated cross-functionally to unblock key initiatives.",
            "Applied structured problem solving to enhance team outcomes.",
        ],
        metrics=[
            "Improved efficiency by 20% (est.)",
            "Reduced turnaround time (qualitative)",
            "Increased reliability / stability (qualitative)",
        ],
        provider="fallback",
    )


class FallbackEnrichmentGateway:
    """Gateway used when no text-generation backend is configured."""

    async def enrich(self, context: RoleContext) -> RoleEnrichment:
        return build_fallback_enrichment(context)
