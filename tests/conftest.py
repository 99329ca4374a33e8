"""
Shared test helpers.
"""

from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from adaptive_rag.models.document import Document
from adaptive_rag.models.retrieval import ConfidenceAssessment
from adaptive_rag.models.session import RetrievalEpisode


def make_docs(*contents: str, doc_type: str = "vector") -> List[Document]:
    return [
        Document(content=content, metadata={"source": f"src-{i}", "type": doc_type})
        for i, content in enumerate(contents)
    ]


def make_episode(
    query: str,
    contents: List[str],
    message_index: int = 0,
    timestamp: int = 1_000_000,
) -> RetrievalEpisode:
    return RetrievalEpisode(
        query=query,
        documents=make_docs(*contents),
        timestamp=timestamp,
        message_index=message_index,
    )


class FixedClock:
    """Injectable millisecond clock."""

    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


def scripted_assessor(scores: Optional[Dict[str, float]] = None, default: float = 0.4) -> AsyncMock:
    """
    Assessor mock whose score depends on the context it is given.

    scores maps a substring of the context to the score returned.
    """
    scores = scores or {}
    assessor = AsyncMock()

    async def assess(query: str, context: str) -> ConfidenceAssessment:
        for needle, score in scores.items():
            if needle in context:
                return ConfidenceAssessment(level="SCRIPTED", score=score)
        return ConfidenceAssessment(level="SCRIPTED", score=default)

    assessor.assess.side_effect = assess
    return assessor


@pytest.fixture
def clock():
    return FixedClock()
