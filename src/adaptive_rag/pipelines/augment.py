"""
Augmentation Pipeline

Turns a query and the session's retrieval history into the context
handed to answer generation:

1. Decide: reuse a cached episode or retrieve new documents
2. Retrieve: top-k from the vector index (recorded as a new episode)
3. Assemble: numbered "Document N:" context
4. Assess: second confidence pass on the assembled context
5. Web search: when confidence is below threshold, prepend web results

At most one vector-index query and one web search happen per call.
Index failures propagate to the caller; assessor and web search
failures never do.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from adaptive_rag.config import RetrievalConfig
from adaptive_rag.models.document import Document
from adaptive_rag.models.retrieval import AugmentationResult
from adaptive_rag.models.session import RetrievalEpisode, SessionRetrievalState, now_ms
from adaptive_rag.pipelines.confidence import ConfidenceAssessor
from adaptive_rag.pipelines.decision import RetrievalDecisionEngine
from adaptive_rag.pipelines.hooks import PipelineHookManager
from adaptive_rag.retrieval.vector_store import VectorIndex
from adaptive_rag.retrieval.web_search import WebSearchClient

logger = logging.getLogger("adaptive_rag.augment")

WEB_SECTION_HEADER = "[Web Search Results]"
ORIGINAL_SECTION_HEADER = "[Original Retrieved Documents]"

# After-only stage fired once the result is assembled
COMPLETE_STAGE = "complete"


def build_context(documents: Sequence[Document], label: str = "Document") -> str:
    """Render documents as numbered blocks separated by blank lines."""
    return "\n\n".join(
        f"{label} {index}: {doc.content}"
        for index, doc in enumerate(documents, start=1)
    )


def merge_web_context(web_documents: Sequence[Document], context: str) -> str:
    """Two labeled sections: web results first, then the original context."""
    web_context = build_context(web_documents, label="Web Result")
    return f"{WEB_SECTION_HEADER}\n{web_context}\n\n{ORIGINAL_SECTION_HEADER}\n{context}"


class AugmentationPipeline:
    """
    Confidence-gated retrieval augmentation.

    All collaborators are injected; the pipeline holds no per-request
    state of its own, so one instance serves every request.
    """

    def __init__(
        self,
        vector_index: VectorIndex,
        web_search: WebSearchClient,
        assessor: ConfidenceAssessor,
        config: Optional[RetrievalConfig] = None,
        hooks: Optional[PipelineHookManager] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.vector_index = vector_index
        self.web_search = web_search
        self.assessor = assessor
        self.config = config or RetrievalConfig()
        self.hooks = hooks or PipelineHookManager()
        self.clock = clock
        self.decision_engine = RetrievalDecisionEngine(assessor, self.config, clock=clock)

    async def execute(
        self,
        query: str,
        state: SessionRetrievalState,
        k: Optional[int] = None,
    ) -> AugmentationResult:
        """
        Run the augmentation pipeline for one query.

        Args:
            query: User question
            state: Session retrieval state; mutated in place when a new
                episode is recorded and returned in the result
            k: Number of index results (defaults to config.default_k)

        Returns:
            AugmentationResult with final context, documents and state

        Raises:
            RetrievalError: If the vector index query fails
        """
        k = k or self.config.default_k
        ctx: Dict[str, Any] = {"query": query, "k": k, "start_time": time.perf_counter()}

        # 1. Decide
        async with self.hooks.stage("decide", ctx):
            decision = await self.decision_engine.decide(query, state)
            ctx["decision"] = decision

        # 2/3. Retrieve or reuse
        if decision.should_retrieve:
            async with self.hooks.stage("retrieve", ctx):
                matches = await self.vector_index.similarity_search(query, k)
                documents: List[Document] = [doc for doc, _score in matches]
                ctx["documents"] = documents
            if documents:
                state.add_episode(
                    RetrievalEpisode(
                        query=query,
                        documents=documents,
                        timestamp=self.clock(),
                        message_index=state.conversation_length,
                    ),
                    self.config.max_retrieval_history,
                )
            else:
                logger.warning(f"Vector index returned no documents for '{query}'")
            documents_used = "new"
        else:
            documents = list(decision.cached_documents or [])
            documents_used = "cached"

        # 4. Assemble
        context = build_context(documents)

        # 5. Second confidence pass gates web search
        async with self.hooks.stage("assess", ctx):
            confidence = await self.assessor.assess(query, context)
            ctx["confidence"] = confidence

        web_search_used = False
        if confidence.score < self.config.confidence_threshold:
            logger.info(f"Low confidence ({confidence.score}), performing web search...")
            web_search_used = True
            async with self.hooks.stage("web_search", ctx):
                results = await self.web_search.search(query)
                web_documents = [result.to_document() for result in results[:5]]
                ctx["web_documents"] = web_documents

            if web_documents:
                context = merge_web_context(web_documents, context)
                documents = web_documents + documents

        result = AugmentationResult(
            context=context,
            documents=documents,
            session_state=state,
            decision=decision,
            confidence=confidence,
            documents_used=documents_used,
            web_search_used=web_search_used,
        )
        ctx["result"] = result
        await self.hooks.execute_after(COMPLETE_STAGE, ctx)
        return result
