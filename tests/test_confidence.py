"""
Unit Tests for the Confidence Assessor

The LLM client is mocked; no API key required.
"""

import pytest
from unittest.mock import AsyncMock

from adaptive_rag.errors import CollaboratorUnavailableError, MalformedResponseError
from adaptive_rag.pipelines.confidence import ConfidenceAssessor


def make_assessor(raw=None, error=None) -> ConfidenceAssessor:
    llm = AsyncMock()
    if error is not None:
        llm.assess_confidence.side_effect = error
    else:
        llm.assess_confidence.return_value = raw
    return ConfidenceAssessor(llm)


class TestConfidenceAssessor:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw, level, score",
        [
            ("HIGH", "HIGH", 0.9),
            ("MEDIUM", "MEDIUM", 0.7),
            ("LOW", "LOW", 0.4),
        ],
    )
    async def test_levels_map_to_scores(self, raw, level, score):
        result = await make_assessor(raw).assess("Who won?", "Candidate A won.")

        assert result.level == level
        assert result.score == score

    @pytest.mark.asyncio
    async def test_output_is_trimmed_and_upper_cased(self):
        result = await make_assessor("  high\n").assess("q", "ctx")

        assert result.level == "HIGH"
        assert result.score == 0.9

    @pytest.mark.asyncio
    async def test_unknown_level_falls_back_to_medium_score(self):
        """An unrecognized label keeps its text but scores like MEDIUM."""
        result = await make_assessor("Probably").assess("q", "ctx")

        assert result.level == "PROBABLY"
        assert result.score == 0.7

    @pytest.mark.asyncio
    async def test_unavailable_model_returns_medium(self):
        assessor = make_assessor(error=CollaboratorUnavailableError("openai", "timeout"))

        result = await assessor.assess("q", "ctx")

        assert result.level == "MEDIUM"
        assert result.score == 0.7

    @pytest.mark.asyncio
    async def test_malformed_response_returns_medium(self):
        assessor = make_assessor(error=MalformedResponseError("openai", "no choices"))

        result = await assessor.assess("q", "ctx")

        assert result.level == "MEDIUM"
        assert result.score == 0.7

    @pytest.mark.asyncio
    async def test_assessment_is_repeatable(self):
        assessor = make_assessor("LOW")

        first = await assessor.assess("q", "ctx")
        second = await assessor.assess("q", "ctx")

        assert first == second

    @pytest.mark.asyncio
    async def test_passes_query_and_context_through(self):
        assessor = make_assessor("HIGH")

        await assessor.assess("Who won?", "Document 1: Candidate A won.")

        assessor.llm.assess_confidence.assert_awaited_once_with(
            "Who won?", "Document 1: Candidate A won."
        )

    def test_custom_score_table(self):
        assessor = ConfidenceAssessor(AsyncMock(), scores={"high": 0.95, "medium": 0.6, "low": 0.1})

        assert assessor.score_for("HIGH") == 0.95
        assert assessor.score_for("NONSENSE") == 0.6
