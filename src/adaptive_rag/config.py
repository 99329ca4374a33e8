"""
Configuration

Loads and manages system configuration from rag_config.yaml
"""

import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists
env_path = Path.cwd() / ".env"
if env_path.exists():
    load_dotenv(env_path)


class DatabaseConfig(BaseModel):
    """Database connection configuration."""
    host: str = "localhost"
    port: int = 5432
    name: str = "adaptive_rag"
    user: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None  # Takes precedence over the discrete fields

    @property
    def connection_string(self) -> str:
        """Generate PostgreSQL connection string."""
        if self.url:
            return self.url
        if self.user and self.password:
            return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"
        return f"postgresql://{self.host}:{self.port}/{self.name}"


class RedisConfig(BaseModel):
    """Session cache configuration."""
    url: str = "redis://localhost:6379"
    key_prefix: str = "session:"
    session_ttl_seconds: int = 3600


class LLMConfig(BaseModel):
    """Chat model configuration."""
    model: str = "gpt-3.5-turbo"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout_seconds: float = 30.0

    # Answer generation
    temperature: float = 0.7
    max_tokens: int = 800
    history_window: int = 6  # Most recent messages sent with each prompt


class EmbeddingConfig(BaseModel):
    """Embedding model configuration."""
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    api_key: Optional[str] = None


class RetrievalConfig(BaseModel):
    """Retrieval decision and augmentation thresholds.

    The same confidence_threshold gates both cache reuse and
    web-search escalation.
    """
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_context_age: int = 10  # Turns before a cached episode goes stale
    max_retrieval_history: int = Field(default=5, ge=1)
    stale_after_ms: int = 300_000  # Wall-clock staleness bound (5 minutes)
    default_k: int = 5
    confidence_scores: Dict[str, float] = Field(
        default_factory=lambda: {"HIGH": 0.9, "MEDIUM": 0.7, "LOW": 0.4}
    )


class WebSearchConfig(BaseModel):
    """Web search fallback configuration (Serper API)."""
    api_key: Optional[str] = None
    endpoint: str = "https://google.serper.dev/search"
    max_results: int = 5
    timeout_seconds: float = 10.0


class VectorStoreConfig(BaseModel):
    """Location of the prebuilt vector index."""
    path: str = "./vector_store"


class MonitoringConfig(BaseModel):
    """Pipeline metrics configuration."""
    enabled: bool = True
    log_dir: str = "logs"


class RAGConfig(BaseModel):
    """Main configuration model."""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    web_search: WebSearchConfig = Field(default_factory=WebSearchConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


def load_config(config_path: Optional[Path] = None) -> RAGConfig:
    """
    Load configuration from YAML file.

    Falls back to environment variables and defaults.
    """
    if config_path is None:
        config_path = Path.cwd() / "config" / "rag_config.yaml"

    config_data = {}

    if config_path.exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Override with environment variables
    env_overrides = [
        ("OPENAI_API_KEY", "llm", "api_key"),
        ("SERPER_API_KEY", "web_search", "api_key"),
        ("REDIS_URL", "redis", "url"),
        ("DATABASE_URL", "database", "url"),
        ("VECTOR_STORE_PATH", "vector_store", "path"),
    ]
    for env_name, section, key in env_overrides:
        value = os.getenv(env_name)
        if value:
            config_data.setdefault(section, {})[key] = value

    return RAGConfig(**config_data)
