"""
Response Generation

Builds the answer prompt from the augmented context and recent
conversation history, and runs it through the chat model.
"""

import logging
from typing import AsyncIterator, List, Optional, Sequence

from adaptive_rag.config import LLMConfig
from adaptive_rag.errors import GenerationError
from adaptive_rag.llm.client import LLMClient
from adaptive_rag.models.document import ChatMessage

logger = logging.getLogger("adaptive_rag.generate")

SYSTEM_PROMPT = (
    "You are a helpful news assistant. Answer user questions based on the "
    "provided context from news articles. Be conversational, accurate, and "
    "cite relevant information from the context when possible. If the "
    "context doesn't have the answer, say you don't know."
)


class ResponseGenerator:
    """Answer generation over an assembled context."""

    def __init__(self, llm_client: LLMClient, config: Optional[LLMConfig] = None):
        self.llm = llm_client
        self.config = config or LLMConfig()

    def build_messages(
        self,
        query: str,
        context: str,
        history: Sequence[ChatMessage],
    ) -> List[ChatMessage]:
        """System prompt, the last history_window turns, then the question with context."""
        messages = [ChatMessage(role="system", content=SYSTEM_PROMPT)]
        window = self.config.history_window
        recent = list(history)[-window:] if window > 0 else []
        messages.extend(msg for msg in recent if msg.role != "system")
        messages.append(
            ChatMessage(
                role="user",
                content=f"Context from news articles:\n{context}\n\nUser Question: {query}",
            )
        )
        return messages

    async def generate(
        self,
        query: str,
        context: str,
        history: Sequence[ChatMessage],
    ) -> str:
        """
        Generate a complete answer.

        Raises:
            GenerationError: If the model call fails for any reason
        """
        messages = self.build_messages(query, context, history)
        try:
            return await self.llm.generate_response(
                messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except Exception as e:
            logger.error(f"Answer generation failed: {e}")
            raise GenerationError("Failed to generate response") from e

    async def stream(
        self,
        query: str,
        context: str,
        history: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """
        Stream answer tokens.

        Raises:
            GenerationError: If the stream fails, possibly after some tokens
        """
        messages = self.build_messages(query, context, history)
        try:
            async for token in self.llm.iter_response(
                messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            ):
                yield token
        except Exception as e:
            logger.error(f"Streaming generation failed: {e}")
            raise GenerationError("Failed to generate response") from e
