"""
Adaptive RAG

Retrieval-augmented chat backend with per-session retrieval caching,
confidence-gated web-search fallback and streaming answers.
"""

from adaptive_rag.engine.chat_engine import RAGChatSystem
from adaptive_rag.models.document import Document
from adaptive_rag.models.retrieval import AugmentationResult, RetrievalDecision

__version__ = "0.1.0"
__all__ = ["AugmentationResult", "Document", "RAGChatSystem", "RetrievalDecision"]
