"""
Retrieval Result Data Models

Outputs of the confidence assessor, the decision engine and the
augmentation orchestrator.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from adaptive_rag.models.document import Document
from adaptive_rag.models.session import SessionRetrievalState


class ConfidenceLevel(str, Enum):
    """Discrete confidence levels returned by the classifier."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ConfidenceAssessment(BaseModel):
    """
    Score of a query against a context.

    level keeps the raw (normalized) classifier output, so an unknown
    label survives here even though its score falls back to MEDIUM's.
    """
    level: str
    score: float = Field(..., ge=0.0, le=1.0)


class RetrievalDecision(BaseModel):
    """Whether to reuse cached documents or retrieve new ones."""
    should_retrieve: bool = True
    reason: str = "initial_retrieval"
    cached_documents: Optional[List[Document]] = None
    cache_age_in_turns: int = 0


class AugmentationResult(BaseModel):
    """
    Final output of the augmentation pipeline for one query.

    Carries the assembled context, the ordered document list (web results
    first when present) and the updated session state for persistence.
    """
    context: str
    documents: List[Document] = Field(default_factory=list)
    session_state: SessionRetrievalState
    decision: RetrievalDecision
    confidence: ConfidenceAssessment
    documents_used: Literal["new", "cached"] = "new"
    web_search_used: bool = False
