"""
Adaptive RAG Chat System - Main Engine Implementation

Owns every collaborator (LLM client, vector index, web search, session
store, message repository) and wires them into the augmentation and
generation pipelines. Built once at process start and passed to request
handlers by reference.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, List, Optional, Set
from uuid import uuid4

from adaptive_rag.config import RAGConfig, load_config
from adaptive_rag.database.repository import MessageRepository
from adaptive_rag.database.schema import DatabaseSchema
from adaptive_rag.engine.base import ChatEngine
from adaptive_rag.errors import IndexNotLoadedError
from adaptive_rag.llm.client import LLMClient
from adaptive_rag.models.chat import ChatResult
from adaptive_rag.models.document import ChatMessage
from adaptive_rag.models.retrieval import AugmentationResult
from adaptive_rag.models.session import SessionRetrievalState, now_ms
from adaptive_rag.monitoring.performance import PerformanceMonitor
from adaptive_rag.pipelines.augment import AugmentationPipeline
from adaptive_rag.pipelines.confidence import ConfidenceAssessor
from adaptive_rag.pipelines.generate import ResponseGenerator
from adaptive_rag.pipelines.hooks import PipelineHookManager
from adaptive_rag.retrieval.vector_store import VectorIndex
from adaptive_rag.retrieval.web_search import WebSearchClient
from adaptive_rag.session.store import SessionStore

logger = logging.getLogger("adaptive_rag.engine")


class ChatStream:
    """
    A prepared streaming answer.

    The augmentation result is available immediately; tokens() yields
    the answer and, once the model finishes, records the exchange.
    """

    def __init__(
        self,
        system: "RAGChatSystem",
        session_id: str,
        query: str,
        history: List[ChatMessage],
        augmentation: AugmentationResult,
    ):
        self.session_id = session_id
        self.query = query
        self.augmentation = augmentation
        self._system = system
        self._history = history

    async def tokens(self) -> AsyncIterator[str]:
        """
        Yield answer tokens.

        Raises:
            GenerationError: If the model stream fails; nothing is persisted
        """
        parts: List[str] = []
        async for token in self._system.generator.stream(
            self.query, self.augmentation.context, self._history
        ):
            parts.append(token)
            yield token

        # An empty completion still counts as a turn and keeps its episode
        await self._system._finish_exchange(
            self.session_id, self.query, "".join(parts), self.augmentation.session_state
        )


class RAGChatSystem(ChatEngine):
    """
    Main implementation of the retrieval-augmented chat backend.

    Usage:
        system = RAGChatSystem()
        await system.initialize()

        session_id = await system.create_session()
        result = await system.chat("What happened in the election?", session_id)

        await system.close()

    Message persistence is best-effort: each exchange is written by a
    background task whose failure is logged, never retried and never
    blocks the response. Session state is last-writer-wins.
    """

    def __init__(
        self,
        config: Optional[RAGConfig] = None,
        llm_client: Optional[LLMClient] = None,
        vector_index: Optional[VectorIndex] = None,
        web_search: Optional[WebSearchClient] = None,
        session_store: Optional[SessionStore] = None,
        repository: Optional[MessageRepository] = None,
        schema: Optional[DatabaseSchema] = None,
        monitor: Optional[PerformanceMonitor] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config or load_config()
        db_url = self.config.database.connection_string

        self.schema = schema or DatabaseSchema(db_url)
        self.repository = repository or MessageRepository(db_url)
        self.llm = llm_client or LLMClient(
            api_key=self.config.llm.api_key,
            base_url=self.config.llm.base_url,
            model=self.config.llm.model,
            timeout=self.config.llm.timeout_seconds,
            usage_callback=self.repository.record_token_usage,
            embedding_model=self.config.embedding.model,
        )
        self.web_search = web_search or WebSearchClient(
            api_key=self.config.web_search.api_key,
            endpoint=self.config.web_search.endpoint,
            max_results=self.config.web_search.max_results,
            timeout=self.config.web_search.timeout_seconds,
        )
        self.session_store = session_store or SessionStore(
            redis_url=self.config.redis.url,
            key_prefix=self.config.redis.key_prefix,
            default_ttl=self.config.redis.session_ttl_seconds,
        )
        self.vector_index = vector_index
        self.hooks = PipelineHookManager()
        self.monitor = monitor
        if self.monitor is None and self.config.monitoring.enabled:
            self.monitor = PerformanceMonitor(log_dir=self.config.monitoring.log_dir)
        if self.monitor is not None:
            self.monitor.attach(self.hooks)

        self.clock = clock
        self.assessor = ConfidenceAssessor(self.llm, self.config.retrieval.confidence_scores)
        self.generator = ResponseGenerator(self.llm, self.config.llm)
        self.pipeline: Optional[AugmentationPipeline] = None

        self._background_tasks: Set[asyncio.Task] = set()
        self._initialized = False

    async def initialize(self) -> None:
        """
        Initialize all system components.

        - Creates database schema and connects the pool
        - Connects the session store (falls back to memory)
        - Loads the vector index; a missing store is fatal

        Raises:
            IndexNotFoundError: If the vector store does not exist
        """
        if self._initialized:
            return

        await self.schema.initialize()
        await self.repository.connect()
        await self.session_store.connect()

        if self.vector_index is None:
            self.vector_index = await VectorIndex.load(self.config.vector_store.path, self.llm)

        if not self.web_search.enabled:
            logger.warning("SERPER_API_KEY not found. Web search fallback will be disabled.")

        self.pipeline = AugmentationPipeline(
            vector_index=self.vector_index,
            web_search=self.web_search,
            assessor=self.assessor,
            config=self.config.retrieval,
            hooks=self.hooks,
            clock=self.clock,
        )
        self._initialized = True
        logger.info("RAG chat system initialized")

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.pipeline is not None

    def _require_pipeline(self) -> AugmentationPipeline:
        if self.pipeline is None:
            raise IndexNotLoadedError("RAG system not fully initialized")
        return self.pipeline

    async def _prepare(
        self,
        query: str,
        session_id: str,
        k: Optional[int],
    ) -> tuple[List[ChatMessage], AugmentationResult]:
        pipeline = self._require_pipeline()
        logger.info(f"Processing: \"{query}\" [{session_id[:8]}...]")

        state = await self.session_store.get(session_id)
        history = await self.repository.get_messages(session_id)
        # Background writes may lag behind the cached counter
        state.conversation_length = max(state.conversation_length, len(history))

        augmentation = await pipeline.execute(query, state, k)
        return history, augmentation

    async def chat(
        self,
        query: str,
        session_id: str,
        k: Optional[int] = None,
    ) -> ChatResult:
        history, augmentation = await self._prepare(query, session_id, k)
        response = await self.generator.generate(query, augmentation.context, history)
        await self._finish_exchange(session_id, query, response, augmentation.session_state)

        return ChatResult(
            session_id=session_id,
            query=query,
            response=response,
            augmentation=augmentation,
        )

    async def stream_chat(
        self,
        query: str,
        session_id: str,
        k: Optional[int] = None,
    ) -> ChatStream:
        history, augmentation = await self._prepare(query, session_id, k)
        return ChatStream(self, session_id, query, history, augmentation)

    async def _finish_exchange(
        self,
        session_id: str,
        query: str,
        response: str,
        state: SessionRetrievalState,
    ) -> None:
        """Record the exchange: background message write, then session state."""
        state.record_exchange()
        self._persist_messages(session_id, query, response)
        await self.session_store.put(session_id, state)

    # ========== Background persistence ==========

    def _persist_messages(self, session_id: str, user_content: str, assistant_content: str) -> None:
        task = asyncio.create_task(
            self.repository.save_messages(session_id, user_content, assistant_content)
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._on_persist_done)

    def _on_persist_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Database save error: {error}")

    async def flush_background_tasks(self) -> None:
        """Wait for pending message writes (used on shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # ========== Sessions ==========

    async def create_session(self) -> str:
        session_id = str(uuid4())
        await self.repository.create_session(session_id)
        logger.info(f"New session created: {session_id}")
        return session_id

    async def get_session_history(self, session_id: str) -> Optional[dict]:
        """Messages plus cached retrieval episodes; None for an unknown session."""
        if not await self.repository.session_exists(session_id):
            return None
        messages = await self.repository.get_messages(session_id)
        state = await self.session_store.get(session_id)
        return {
            "session_id": session_id,
            "history": [message.model_dump() for message in messages],
            "retrieval_cache": [
                {
                    "query": episode.query,
                    "timestamp": episode.timestamp,
                    "message_index": episode.message_index,
                }
                for episode in state.episodes
            ],
        }

    async def delete_session(self, session_id: str) -> bool:
        deleted = await self.repository.delete_session(session_id)
        await self.session_store.delete(session_id)
        if deleted:
            logger.info(f"Session cleared: {session_id}")
        return deleted

    async def get_stats(self) -> dict:
        stats = {
            "initialized": self.is_ready,
            "documents_indexed": len(self.vector_index) if self.vector_index else 0,
            "session_store": "redis" if self.session_store.using_redis else "memory",
            "web_search_enabled": self.web_search.enabled,
            "embedding_cache": self.llm.get_cache_stats(),
        }
        try:
            stats["token_usage"] = await self.repository.get_token_usage()
        except Exception as e:
            logger.warning(f"Token usage unavailable: {e}")
            stats["token_usage"] = []
        if self.monitor is not None:
            stats["pipeline"] = self.monitor.get_summary()
            stats["recent_requests"] = self.monitor.get_recent_metrics(limit=10)
        return stats

    async def close(self) -> None:
        """Drain background writes and release every connection."""
        await self.flush_background_tasks()
        await self.session_store.close()
        await self.repository.disconnect()
        await self.web_search.close()
        await self.llm.close()
        self._initialized = False
