"""Retrieval sources - vector index and web search fallback."""

from adaptive_rag.retrieval.vector_store import VectorIndex
from adaptive_rag.retrieval.web_search import WebSearchClient, WebSearchResult

__all__ = ["VectorIndex", "WebSearchClient", "WebSearchResult"]
