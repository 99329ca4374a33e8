"""
Configuration loading tests.
"""

import pytest
from pydantic import ValidationError

from adaptive_rag.config import RAGConfig, RetrievalConfig, load_config


def test_defaults_when_file_missing(tmp_path, monkeypatch):
    for name in ("OPENAI_API_KEY", "SERPER_API_KEY", "REDIS_URL", "DATABASE_URL", "VECTOR_STORE_PATH"):
        monkeypatch.delenv(name, raising=False)

    config = load_config(tmp_path / "missing.yaml")

    assert config.retrieval.confidence_threshold == 0.7
    assert config.retrieval.max_context_age == 10
    assert config.retrieval.max_retrieval_history == 5
    assert config.retrieval.stale_after_ms == 300_000
    assert config.llm.model == "gpt-3.5-turbo"
    assert config.web_search.api_key is None


def test_yaml_values_and_env_overrides(tmp_path, monkeypatch):
    config_file = tmp_path / "rag_config.yaml"
    config_file.write_text(
        "retrieval:\n"
        "  confidence_threshold: 0.8\n"
        "  max_retrieval_history: 3\n"
        "redis:\n"
        "  url: redis://cache:6379\n"
    )
    monkeypatch.setenv("SERPER_API_KEY", "serper-key")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/rag")
    monkeypatch.delenv("REDIS_URL", raising=False)

    config = load_config(config_file)

    assert config.retrieval.confidence_threshold == 0.8
    assert config.retrieval.max_retrieval_history == 3
    assert config.redis.url == "redis://cache:6379"
    assert config.web_search.api_key == "serper-key"
    assert config.database.connection_string == "postgresql://db/rag"


def test_connection_string_from_parts():
    config = RAGConfig(database={"host": "db", "port": 5433, "name": "rag", "user": "u", "password": "p"})

    assert config.database.connection_string == "postgresql://u:p@db:5433/rag"


def test_history_bound_must_be_positive():
    with pytest.raises(ValidationError):
        RetrievalConfig(max_retrieval_history=0)
