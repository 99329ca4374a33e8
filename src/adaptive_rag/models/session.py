"""
Session Retrieval State

Per-session record of past retrieval episodes. This is the unit handed to
and from the session store between requests.
"""

import time
from typing import List

from pydantic import BaseModel, Field

from adaptive_rag.models.document import Document


def now_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class RetrievalEpisode(BaseModel):
    """
    One past retrieval event within a session.

    Created right after a fresh vector-index retrieval. An episode never
    holds an empty document list.
    """

    query: str = Field(..., description="Question that triggered retrieval")
    documents: List[Document] = Field(..., min_length=1)
    timestamp: int = Field(
        default_factory=now_ms,
        description="Creation time, ms since epoch"
    )
    message_index: int = Field(
        ...,
        ge=0,
        description="Conversation length at the time of retrieval"
    )

    @property
    def context(self) -> str:
        """Documents' content joined with blank lines, in document order."""
        return "\n\n".join(doc.content for doc in self.documents)


class SessionRetrievalState(BaseModel):
    """
    Mutable per-session retrieval history.

    Episodes are kept in chronological order. The list is bounded by
    add_episode(); staleness is not interpreted here, the decision engine
    ignores stale episodes without deleting them.
    """

    episodes: List[RetrievalEpisode] = Field(default_factory=list)
    conversation_length: int = Field(default=0, ge=0)

    def add_episode(self, episode: RetrievalEpisode, max_history: int) -> None:
        """
        Append an episode, evicting oldest entries beyond max_history.

        Args:
            episode: Newly created retrieval episode
            max_history: Upper bound on stored episodes (>= 1)
        """
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.episodes.append(episode)
        overflow = len(self.episodes) - max_history
        if overflow > 0:
            del self.episodes[:overflow]

    def record_exchange(self) -> None:
        """Count one user/assistant exchange (two turns)."""
        self.conversation_length += 2
