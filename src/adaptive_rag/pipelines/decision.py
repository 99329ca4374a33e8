"""
Retrieval Decision Engine

Decides per query whether a cached retrieval episode is good enough to
reuse or whether the vector index must be queried again.

This is a greedy best-of-N lookup: every still-valid episode is scored
with the confidence assessor (one call at a time, in insertion order)
and the single best one is reused if it clears the threshold.
"""

import logging
from typing import Callable, List, Optional

from adaptive_rag.config import RetrievalConfig
from adaptive_rag.models.document import Document
from adaptive_rag.models.retrieval import RetrievalDecision
from adaptive_rag.models.session import RetrievalEpisode, SessionRetrievalState, now_ms
from adaptive_rag.pipelines.confidence import ConfidenceAssessor

logger = logging.getLogger("adaptive_rag.decision")


class RetrievalDecisionEngine:
    """
    Chooses between cache reuse and fresh retrieval.

    Episodes older than max_context_age turns or stale_after_ms
    milliseconds are skipped, whatever their confidence would be.
    """

    def __init__(
        self,
        assessor: ConfidenceAssessor,
        config: Optional[RetrievalConfig] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.assessor = assessor
        self.config = config or RetrievalConfig()
        self.clock = clock

    def is_stale(self, episode: RetrievalEpisode, state: SessionRetrievalState, now: int) -> bool:
        """True when the episode is too old in turns or in wall-clock time."""
        messages_since = state.conversation_length - episode.message_index
        time_since = now - episode.timestamp
        return (
            messages_since > self.config.max_context_age
            or time_since > self.config.stale_after_ms
        )

    async def decide(self, query: str, state: SessionRetrievalState) -> RetrievalDecision:
        """
        Decide whether to retrieve new documents for query.

        Args:
            query: Incoming user question
            state: The session's retrieval history

        Returns:
            RetrievalDecision; should_retrieve=False carries the cached documents
        """
        decision = RetrievalDecision()

        if state.episodes:
            now = self.clock()
            best_confidence = -1.0
            best_docs: Optional[List[Document]] = None
            best_age = 0

            for episode in state.episodes:
                if self.is_stale(episode, state, now):
                    continue

                confidence = await self.assessor.assess(query, episode.context)
                # Strict comparison keeps the earliest episode on ties
                if confidence.score > best_confidence:
                    best_confidence = confidence.score
                    best_docs = episode.documents
                    best_age = state.conversation_length - episode.message_index

            if best_docs is not None and best_confidence > self.config.confidence_threshold:
                decision = RetrievalDecision(
                    should_retrieve=False,
                    reason=f"high_confidence_with_cache_{best_confidence:.2f}",
                    cached_documents=list(best_docs),
                    cache_age_in_turns=best_age,
                )
                logger.info(f"Decision: using cached context (confidence: {best_confidence:.2f})")
                return decision

        logger.info(f"Decision: retrieving new documents ({decision.reason})")
        return decision
