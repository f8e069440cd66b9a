from __future__ import annotations

from pathlib import Path

import pytest

from resume_enricher.core.settings import Settings, load_settings
from resume_enricher.infrastructure import (
    InMemoryEnrichmentRepository,
    SQLiteEnrichmentRepository,
    open_repository,
)

ENV_NAMES = (
    "ENRICHMENT_STORE",
    "ENRICHMENT_DB_PATH",
    "LLM_API_KEY",
    "OPENAI_API_KEY",
    "LLM_BASE_URL",
    "LLM_MODEL",
    "LLM_TIMEOUT",
    "WORKER_POLL_INTERVAL",
    "WORKER_ITEM_DELAY",
    "ENRICHMENT_EMBEDDED_WORKER",
    "API_CORS_ORIGINS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment():
    settings = load_settings()
    assert settings.store == "sqlite"
    assert settings.database_path == Path.cwd() / "db" / "dev.db"
    assert settings.llm_api_key is None
    assert settings.llm_model == "o3"
    assert settings.poll_interval == 2.0
    assert settings.item_delay == 0.3
    assert settings.embedded_worker is False


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("ENRICHMENT_STORE", "Memory")
    monkeypatch.setenv("ENRICHMENT_DB_PATH", str(tmp_path / "x.db"))
    monkeypatch.setenv("OPENAI_API_KEY", " sk-test ")
    monkeypatch.setenv("LLM_BASE_URL", "https://llm.internal/v1/")
    monkeypatch.setenv("WORKER_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("WORKER_ITEM_DELAY", "not-a-number")
    monkeypatch.setenv("ENRICHMENT_EMBEDDED_WORKER", "yes")
    monkeypatch.setenv("API_CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings()
    assert settings.store == "memory"
    assert settings.database_path == (tmp_path / "x.db").resolve()
    assert settings.llm_api_key == "sk-test"
    assert settings.llm_base_url == "https://llm.internal/v1"
    assert settings.poll_interval == 0.5
    assert settings.item_delay == 0.3
    assert settings.embedded_worker is True
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.log_level == "DEBUG"


def test_llm_api_key_takes_precedence(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "primary")
    monkeypatch.setenv("OPENAI_API_KEY", "secondary")
    assert load_settings().llm_api_key == "primary"


def test_open_repository_by_store(tmp_path):
    assert isinstance(open_repository(Settings(store="memory")), InMemoryEnrichmentRepository)
    sqlite_repo = open_repository(Settings(store="sqlite", database_path=tmp_path / "db" / "e.db"))
    assert isinstance(sqlite_repo, SQLiteEnrichmentRepository)
    with pytest.raises(ValueError):
        open_repository(Settings(store="postgres"))
