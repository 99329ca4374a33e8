"""Data models package."""

from adaptive_rag.models.chat import ChatResult, SourceSummary
from adaptive_rag.models.document import ChatMessage, Document
from adaptive_rag.models.retrieval import (
    AugmentationResult,
    ConfidenceAssessment,
    ConfidenceLevel,
    RetrievalDecision,
)
from adaptive_rag.models.session import RetrievalEpisode, SessionRetrievalState

__all__ = [
    "AugmentationResult",
    "ChatMessage",
    "ChatResult",
    "ConfidenceAssessment",
    "ConfidenceLevel",
    "Document",
    "RetrievalDecision",
    "RetrievalEpisode",
    "SessionRetrievalState",
    "SourceSummary",
]
