"""
Chat Engine - Abstract Base Class

Defines the interface the HTTP layer talks to.
"""

from abc import ABC, abstractmethod
from typing import Optional

from adaptive_rag.models.chat import ChatResult


class ChatEngine(ABC):
    """
    Abstract base class for the retrieval-augmented chat engine.

    Core operations:
    1. chat() - answer a question in one response
    2. stream_chat() - answer a question token by token
    3. create_session() / get_session_history() / delete_session()
    """

    @abstractmethod
    async def chat(
        self,
        query: str,
        session_id: str,
        k: Optional[int] = None,
    ) -> ChatResult:
        """
        Answer a query within a session.

        Process:
        1. Load the session's retrieval state and message history
        2. Run the augmentation pipeline (cache / vector index / web search)
        3. Generate the answer
        4. Persist session state; store messages in the background

        Args:
            query: User question
            session_id: Conversation identifier
            k: Number of vector-index results to request

        Returns:
            ChatResult with the answer and the augmentation details
        """
        pass

    @abstractmethod
    async def stream_chat(
        self,
        query: str,
        session_id: str,
        k: Optional[int] = None,
    ):
        """
        Prepare a streamed answer.

        Augmentation runs before this returns, so retrieval failures
        surface before any token is sent.
        """
        pass

    @abstractmethod
    async def create_session(self) -> str:
        pass

    @abstractmethod
    async def get_session_history(self, session_id: str) -> Optional[dict]:
        pass

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool:
        pass
