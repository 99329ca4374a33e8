"""
Chat Result Data Model

Returned by the chat engine for a completed (non-streaming) exchange.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from adaptive_rag.models.retrieval import AugmentationResult


class SourceSummary(BaseModel):
    """Short preview of a document used to answer."""
    id: int
    content: str
    metadata: dict = Field(default_factory=dict)


class ChatResult(BaseModel):
    session_id: str
    query: str
    response: str
    augmentation: AugmentationResult
    timestamp: datetime = Field(default_factory=datetime.now)

    def sources(self, limit: int = 3, preview_chars: int = 150) -> List[SourceSummary]:
        """Previews of the first documents in final order."""
        return [
            SourceSummary(
                id=index,
                content=doc.content[:preview_chars] + "...",
                metadata=dict(doc.metadata),
            )
            for index, doc in enumerate(self.augmentation.documents[:limit], start=1)
        ]
