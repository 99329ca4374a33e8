"""
Confidence Assessor

Scores how well a context can answer a query by asking the chat model
for a single word (HIGH, MEDIUM or LOW) and mapping it to a number.

The assessor is fail-open: confidence is a heuristic gate that only
changes how much retrieval work happens, so any failure of the model
call yields the MEDIUM assessment instead of an exception.
"""

import logging
from typing import Dict, Optional

from adaptive_rag.llm.client import LLMClient
from adaptive_rag.models.retrieval import ConfidenceAssessment, ConfidenceLevel

logger = logging.getLogger("adaptive_rag.confidence")

DEFAULT_CONFIDENCE_SCORES: Dict[str, float] = {
    ConfidenceLevel.HIGH.value: 0.9,
    ConfidenceLevel.MEDIUM.value: 0.7,
    ConfidenceLevel.LOW.value: 0.4,
}


class ConfidenceAssessor:
    """Maps single-word model judgments onto a fixed level -> score table."""

    def __init__(
        self,
        llm_client: LLMClient,
        scores: Optional[Dict[str, float]] = None,
    ):
        self.llm = llm_client
        self.scores = {k.upper(): v for k, v in (scores or DEFAULT_CONFIDENCE_SCORES).items()}
        self.fallback_level = ConfidenceLevel.MEDIUM.value
        self.fallback_score = self.scores.get(self.fallback_level, 0.7)

    def score_for(self, level: str) -> float:
        """Score for a level; unknown levels get the MEDIUM score."""
        return self.scores.get(level, self.fallback_score)

    async def assess(self, query: str, context: str) -> ConfidenceAssessment:
        """
        Assess whether context suffices to answer query.

        Never raises.
        """
        try:
            raw = await self.llm.assess_confidence(query, context)
        except Exception as e:
            logger.warning(f"Confidence assessment failed, assuming {self.fallback_level}: {e}")
            return ConfidenceAssessment(level=self.fallback_level, score=self.fallback_score)

        level = raw.strip().upper()
        score = self.score_for(level)
        logger.info(f"Confidence assessment: {level} ({score})")
        return ConfidenceAssessment(level=level, score=score)
