"""Application services."""

from .ingestion import IngestionService, IngestResult
from .status import StatusService

__all__ = [
    "IngestResult",
    "IngestionService",
    "StatusService",
]
