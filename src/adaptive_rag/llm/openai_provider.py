"""
OpenAI embedding provider implementation.
"""

from typing import List, Optional

from openai import AsyncOpenAI

from .base import EmbeddingProvider, EmbeddingError


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI embedding provider.

    Defaults to text-embedding-3-small, which is cheaper than ada-002
    at the same dimension. Batches natively through the embeddings API.
    """

    _DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "text-embedding-3-small",
        timeout: float = 30.0,
    ):
        """
        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            base_url: Optional base URL for OpenAI-compatible APIs
            model: Embedding model name
            timeout: Per-request timeout in seconds
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self.model = model

    async def batch_embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []

        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=texts,
            )
        except Exception as e:
            raise EmbeddingError(f"OpenAI embedding failed: {e}") from e

        data = list(response.data)
        if len(data) != len(texts):
            raise EmbeddingError(
                f"OpenAI returned {len(data)} embeddings for {len(texts)} inputs"
            )
        return [item.embedding for item in data]

    def get_embedding_dimension(self) -> int:
        return self._DIMENSIONS.get(self.model, 1536)

    def get_model_name(self) -> str:
        return self.model
