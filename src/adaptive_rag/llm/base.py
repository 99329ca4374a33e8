"""
Base classes for embedding providers.

This module defines the abstract interface that lets the vector index
and the LLM client support multiple embedding backends through the
adapter pattern.
"""

from abc import ABC, abstractmethod
from typing import List

from adaptive_rag.errors import CollaboratorUnavailableError


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Implementations must provide batch embedding functionality
    for efficient API usage.
    """

    @abstractmethod
    async def batch_embed(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in a single API call.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors in the same order as input texts

        Raises:
            EmbeddingError: If the embedding API fails
        """
        pass

    @abstractmethod
    def get_embedding_dimension(self) -> int:
        """Dimension of vectors produced by this provider."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        pass


class EmbeddingError(CollaboratorUnavailableError):
    """Exception raised when embedding generation fails."""

    def __init__(self, message: str):
        super().__init__("embeddings", message)
