"""
LLM Client

Handles all language-model interactions:
- Chat completion (blocking and streaming)
- Single-word confidence classification
- Embeddings with an LRU cache
"""

import inspect
import logging
import os
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from openai import AsyncOpenAI, OpenAIError

from adaptive_rag.errors import CollaboratorUnavailableError, MalformedResponseError
from adaptive_rag.llm.base import EmbeddingProvider
from adaptive_rag.llm.openai_provider import OpenAIEmbeddingProvider
from adaptive_rag.models.document import ChatMessage

logger = logging.getLogger("adaptive_rag.llm")

MessageLike = Union[ChatMessage, Dict[str, str]]
TokenCallback = Callable[[str], Optional[Awaitable[None]]]
DoneCallback = Callable[[], Optional[Awaitable[None]]]
ErrorCallback = Callable[[Exception], Optional[Awaitable[None]]]

CONFIDENCE_SYSTEM_PROMPT = (
    "You are an AI assistant evaluating whether you can confidently answer a "
    "user's question based on provided context. Respond with only one word: "
    "HIGH, MEDIUM, or LOW."
)


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    """Call a callback that may be sync or async."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class LLMClient:
    """
    Client for chat-model and embedding calls using the OpenAI API.

    Transport failures surface as CollaboratorUnavailableError and
    responses without usable text as MalformedResponseError. No retries
    happen here; the underlying SDK timeout applies.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-3.5-turbo",
        timeout: float = 30.0,
        usage_callback: Optional[Callable] = None,
        enable_embedding_cache: bool = True,
        max_cache_size: int = 1000,
        embedding_model: str = "text-embedding-3-small",
        embedding_provider: Optional[EmbeddingProvider] = None,
    ):
        self.model = model
        self.usage_callback = usage_callback
        self.client = AsyncOpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
        )

        self._embedding_provider = embedding_provider or OpenAIEmbeddingProvider(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url,
            model=embedding_model,
            timeout=timeout,
        )

        # Embedding cache (LRU)
        self.enable_embedding_cache = enable_embedding_cache
        self.max_cache_size = max_cache_size
        self._embedding_cache: dict[str, List[float]] = {}
        self._cache_order: list[str] = []

        self._cache_hits = 0
        self._cache_misses = 0

    async def _report_usage(self, response: Any) -> None:
        """Report token usage via callback. Accounting failures never fail the call."""
        usage = getattr(response, "usage", None)
        if not (self.usage_callback and usage):
            return
        try:
            await self.usage_callback(
                self.model,
                usage.prompt_tokens,
                getattr(usage, "completion_tokens", 0),
                usage.total_tokens,
            )
        except Exception as e:
            logger.warning(f"Token usage report failed: {e}")

    @staticmethod
    def _to_payload(messages: Sequence[MessageLike]) -> List[Dict[str, str]]:
        payload = []
        for message in messages:
            if isinstance(message, ChatMessage):
                payload.append({"role": message.role, "content": message.content})
            else:
                payload.append({"role": message["role"], "content": message["content"]})
        return payload

    @staticmethod
    def _extract_content(response: Any) -> str:
        """Validate a completion response and return its text."""
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise MalformedResponseError("openai", f"unexpected completion shape: {e}") from e
        if not isinstance(content, str):
            raise MalformedResponseError("openai", "completion has no text content")
        return content

    async def generate_response(
        self,
        messages: Sequence[MessageLike],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """
        Run a non-streaming chat completion.

        Args:
            messages: Ordered conversation, system prompt first
            temperature: Sampling temperature
            max_tokens: Completion length cap

        Returns:
            The completion text
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self._to_payload(messages),
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise CollaboratorUnavailableError("openai", str(e)) from e

        await self._report_usage(response)
        return self._extract_content(response)

    async def iter_response(
        self,
        messages: Sequence[MessageLike],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """
        Stream a chat completion token by token.

        Empty deltas (role headers, the final stop chunk) are skipped.
        """
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": self._to_payload(messages),
            "temperature": temperature,
            "stream": True,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        try:
            stream = await self.client.chat.completions.create(**kwargs)
            async for chunk in stream:
                choices = getattr(chunk, "choices", None)
                if not choices:
                    continue
                delta = getattr(choices[0], "delta", None)
                if delta is None:
                    raise MalformedResponseError("openai", "stream chunk without delta")
                token = delta.content or ""
                if token:
                    yield token
        except OpenAIError as e:
            raise CollaboratorUnavailableError("openai", str(e)) from e

    async def stream_response(
        self,
        messages: Sequence[MessageLike],
        on_token: TokenCallback,
        on_complete: DoneCallback,
        on_error: ErrorCallback,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> None:
        """
        Callback form of iter_response().

        on_token is called zero or more times, then exactly one of
        on_complete or on_error. Errors are delivered to on_error and
        not raised.
        """
        try:
            async for token in self.iter_response(messages, temperature, max_tokens):
                await _invoke(on_token, token)
        except Exception as e:
            logger.error(f"Streaming completion failed: {e}")
            await _invoke(on_error, e)
            return
        await _invoke(on_complete)

    async def assess_confidence(self, query: str, context: str) -> str:
        """
        Ask the model whether the context can answer the query.

        Returns the raw model output; callers normalize and map it.
        """
        messages = [
            {"role": "system", "content": CONFIDENCE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f"""Context: {context}

User Question: {query}

Rate your confidence in answering this question based ONLY on the provided context:
- HIGH: Context contains clear, relevant information to fully answer
- MEDIUM: Context contains some relevant information but may be incomplete
- LOW: Context lacks sufficient relevant information

Confidence:""",
            },
        ]
        return await self.generate_response(messages, temperature=0.1, max_tokens=10)

    async def generate_embedding(self, text: str) -> List[float]:
        """Embed a single text through the cached batch path."""
        embeddings = await self.batch_generate_embeddings([text])
        return embeddings[0]

    async def batch_generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in a single API call.

        Cached texts are served from the LRU cache; only the rest go to
        the provider, and the results are stitched back in input order.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors in the same order as input texts
        """
        if not texts:
            return []

        uncached_texts = []
        uncached_indices = []
        result_embeddings: List[Optional[List[float]]] = [None] * len(texts)

        for i, text in enumerate(texts):
            if self.enable_embedding_cache and text in self._embedding_cache:
                self._cache_hits += 1
                self._touch_cache(text)
                result_embeddings[i] = self._embedding_cache[text]
            else:
                uncached_texts.append(text)
                uncached_indices.append(i)

        if not uncached_texts:
            return result_embeddings

        self._cache_misses += len(uncached_texts)
        embeddings_from_api = await self._embedding_provider.batch_embed(uncached_texts)

        for i, embedding in enumerate(embeddings_from_api):
            original_index = uncached_indices[i]
            text = uncached_texts[i]
            result_embeddings[original_index] = embedding
            if self.enable_embedding_cache:
                self._add_to_cache(text, embedding)

        return result_embeddings

    async def batch_embed(self, texts: List[str]) -> List[List[float]]:
        """Embedder protocol used by the vector index."""
        return await self.batch_generate_embeddings(texts)

    def _touch_cache(self, key: str) -> None:
        """Update LRU order for cache hit."""
        if key in self._cache_order:
            self._cache_order.remove(key)
        self._cache_order.append(key)

    def _add_to_cache(self, key: str, value: List[float]) -> None:
        """Add to cache with LRU eviction."""
        if len(self._embedding_cache) >= self.max_cache_size:
            if self._cache_order:
                oldest = self._cache_order.pop(0)
                del self._embedding_cache[oldest]

        self._embedding_cache[key] = value
        self._cache_order.append(key)

    def get_cache_stats(self) -> dict:
        """Get cache hit/miss statistics."""
        total = self._cache_hits + self._cache_misses
        hit_rate = (self._cache_hits / total * 100) if total > 0 else 0

        return {
            "hits": self._cache_hits,
            "misses": self._cache_misses,
            "total_requests": total,
            "hit_rate_percent": round(hit_rate, 2),
            "cache_size": len(self._embedding_cache),
            "max_cache_size": self.max_cache_size,
        }

    async def close(self) -> None:
        await self.client.close()
