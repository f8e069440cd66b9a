from __future__ import annotations

from pydantic import ValidationError

from resume_enricher.core.schema import IngestRequest


class IngestionValidationError(ValueError):
    """Raised when an ingestion payload is rejected before anything is written."""


def _describe(exc: ValidationError) -> str:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = str(error.get("msg") or "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "invalid payload"


def validate_ingest_payload(payload: object) -> IngestRequest:
    if not isinstance(payload, dict):
        raise IngestionValidationError("payload must be a JSON object")
    try:
        return IngestRequest.model_validate(payload)
    except ValidationError as exc:
        raise IngestionValidationError(_describe(exc)) from exc
