from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@dataclass(slots=True)
class Settings:
    store: str = "sqlite"
    database_path: Path = field(default_factory=lambda: Path.cwd() / "db" / "dev.db")
    llm_api_key: str | None = None
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "o3"
    llm_timeout: float = 300.0
    poll_interval: float = 2.0
    item_delay: float = 0.3
    embedded_worker: bool = False
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value < 0:
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Build settings from the process environment."""

    db_path = os.getenv("ENRICHMENT_DB_PATH")
    database_path = (
        Path(db_path).expanduser().resolve() if db_path else Path.cwd() / "db" / "dev.db"
    )

    api_key = (os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY") or "").strip()

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]

    return Settings(
        store=(os.getenv("ENRICHMENT_STORE") or "sqlite").strip().lower(),
        database_path=database_path,
        llm_api_key=api_key or None,
        llm_base_url=(os.getenv("LLM_BASE_URL") or "https://api.openai.com/v1").rstrip("/"),
        llm_model=(os.getenv("LLM_MODEL") or "o3").strip(),
        llm_timeout=_env_float("LLM_TIMEOUT", 300.0),
        poll_interval=_env_float("WORKER_POLL_INTERVAL", 2.0),
        item_delay=_env_float("WORKER_ITEM_DELAY", 0.3),
        embedded_worker=_env_bool("ENRICHMENT_EMBEDDED_WORKER", False),
        cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
