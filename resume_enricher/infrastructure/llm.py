"""Integration with OpenAI-compatible chat completion APIs."""
from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from .enrichment import (
    MAX_METRICS,
    MAX_STAR_STORIES,
    RoleContext,
    RoleEnrichment,
    build_fallback_enrichment,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert resume enhancer. Output JSON only."


class LLMResponseError(RuntimeError):
    """Raised when the completion payload cannot be turned into an enrichment."""


class LLMEnrichmentGateway:
    """Enrich roles through a chat completion endpoint, falling back on any failure."""

    def __init__(
        self,
        api_key: str,
        *,
        api_base: str = "https://api.openai.com/v1",
        model: str = "o3",
        timeout: float = 300.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        self._api_key = api_key
        self._model = model
        self._request_url = f"{api_base.rstrip('/')}/chat/completions"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def build_prompt(context: RoleContext) -> str:
        months = (
            f"{context.role_duration} month(s)"
            if context.role_duration is not None
            else "unknown duration"
        )
        return f"""
You will receive a role record.
Leave the description alone.
Generate up to {MAX_STAR_STORIES} STAR-format bullet stories from the description and up to {MAX_METRICS} quant/qual metrics.
Return STRICT JSON only (no markdown, no commentary):

{{
  "role_description": "...",
  "star_stories": ["...", "...", "..."],
  "metrics": ["...", "...", "..."]
}}

Guidelines:
- Keep each STAR story <= 280 chars.
- Avoid repeating identical phrases.
- Metrics can be qualitative if no precise number is given; prefer plausible specifics but do NOT hallucinate precise proprietary data.
- NEVER include personally identifiable info beyond what is already given.
- If information is missing, infer responsibly but stay high-level.

ROLE INPUT:
Company Name: {context.company_name}
Title: {context.role_title}
Seniority: {context.role_seniority or "(none)"}
Role Industry: {context.role_industry or "(none)"}
Company Industry: {context.company_industry or "(none)"}
Duration: {months}
Original Description: {context.role_description}
""".strip()

    def _build_payload(self, context: RoleContext) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self.build_prompt(context)},
            ],
        }

    @staticmethod
    def extract_json(raw: str) -> dict[str, Any]:
        """Parse the outermost ``{...}`` block, tolerating surrounding commentary."""

        text = raw.strip()
        if not text:
            raise LLMResponseError("empty completion")
        first = text.find("{")
        last = text.rfind("}")
        if first != -1 and last > first:
            text = text[first : last + 1]
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LLMResponseError(f"completion is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise LLMResponseError("completion JSON is not an object")
        return parsed

    @staticmethod
    def _clean_list(value: Any, limit: int) -> list[str]:
        if not isinstance(value, list):
            return []
        cleaned: list[str] = []
        for entry in value:
            if not isinstance(entry, str):
                continue
            text = entry.strip()
            if text:
                cleaned.append(text)
        return cleaned[:limit]

    @classmethod
    def normalise(cls, parsed: dict[str, Any], context: RoleContext) -> RoleEnrichment:
        fallback = build_fallback_enrichment(context)

        description = parsed.get("role_description")
        if not isinstance(description, str) or not description.strip():
            description = fallback.role_description

        stories = cls._clean_list(parsed.get("star_stories"), MAX_STAR_STORIES)
        metrics = cls._clean_list(parsed.get("metrics"), MAX_METRICS)

        # Missing slots take the deterministic text; the parsed description is kept.
        stories.extend(fallback.star_stories[len(stories) : MAX_STAR_STORIES])
        metrics.extend(fallback.metrics[len(metrics) : MAX_METRICS])

        return RoleEnrichment(
            role_description=description.strip(),
            star_stories=stories,
            metrics=metrics,
            provider="llm",
        )

    @staticmethod
    def _completion_text(payload: Any) -> str:
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError("completion payload missing message content") from exc
        if not isinstance(content, str):
            raise LLMResponseError("completion content is not text")
        return content

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def complete(self, context: RoleContext) -> RoleEnrichment:
        """Call the backend and parse its answer; raises on any failure."""

        response = await self._client.post(
            self._request_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json=self._build_payload(context),
        )
        response.raise_for_status()
        raw = self._completion_text(response.json())
        return self.normalise(self.extract_json(raw), context)

    async def enrich(self, context: RoleContext) -> RoleEnrichment:
        try:
            return await self.complete(context)
        except Exception as exc:  # noqa: BLE001 - every failure resolves to the fallback
            logger.warning(
                "LLM enrichment failed for %s @ %s; using fallback: %s",
                context.role_title,
                context.company_name,
                exc,
            )
            return build_fallback_enrichment(context)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["LLMEnrichmentGateway", "LLMResponseError"]
