"""LLM package - chat completion and embedding clients."""

from adaptive_rag.llm.client import LLMClient

__all__ = ["LLMClient"]
