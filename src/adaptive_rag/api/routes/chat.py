"""
Chat API Routes

Endpoints for retrieval-augmented conversation.
"""

import json
import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from adaptive_rag.api.main import get_system
from adaptive_rag.engine.chat_engine import ChatStream, RAGChatSystem
from adaptive_rag.errors import GenerationError, IndexNotLoadedError, RetrievalError

logger = logging.getLogger("adaptive_rag.api.chat")

router = APIRouter()


class ChatRequest(BaseModel):
    """Chat request. sessionId is accepted as an alias."""
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    k: int = Field(default=5, ge=1, le=50)


class RetrievalInfo(BaseModel):
    decision: dict
    documents_used: str
    confidence: dict
    web_search_used: bool


class ChatResponse(BaseModel):
    session_id: str
    query: str
    response: str
    retrieval_info: RetrievalInfo
    sources: list[dict]
    timestamp: str


def _validate(request: ChatRequest) -> None:
    if not request.query or not request.session_id:
        raise HTTPException(status_code=400, detail="Query and sessionId are required")


def _raise_http(error: Exception) -> None:
    if isinstance(error, IndexNotLoadedError):
        raise HTTPException(status_code=503, detail=str(error))
    logger.error(f"Chat error: {error}")
    raise HTTPException(status_code=500, detail=f"Failed to process chat message: {error}")


@router.post("", response_model=ChatResponse)
async def chat(request: ChatRequest, system: RAGChatSystem = Depends(get_system)):
    """
    Answer a question in one response.

    The answer is grounded on cached or freshly retrieved documents,
    plus web results when confidence is low.
    """
    _validate(request)
    try:
        result = await system.chat(request.query, request.session_id, request.k)
    except (RetrievalError, GenerationError) as e:
        _raise_http(e)

    augmentation = result.augmentation
    decision = augmentation.decision
    return ChatResponse(
        session_id=result.session_id,
        query=result.query,
        response=result.response,
        retrieval_info=RetrievalInfo(
            decision=decision.model_dump(exclude={"cached_documents"}),
            documents_used=augmentation.documents_used,
            confidence=augmentation.confidence.model_dump(),
            web_search_used=augmentation.web_search_used,
        ),
        sources=[source.model_dump() for source in result.sources()],
        timestamp=result.timestamp.isoformat(),
    )


def _sse(payload: str) -> str:
    return f"data: {payload}\n\n"


async def _event_stream(stream: ChatStream) -> AsyncIterator[str]:
    """Token events, then [DONE]; a mid-stream failure sends one error event and ends."""
    try:
        async for token in stream.tokens():
            yield _sse(json.dumps({"token": token}))
    except GenerationError as e:
        logger.error(f"Streaming error: {e}")
        yield _sse(json.dumps({"error": str(e)}))
        return
    yield _sse("[DONE]")


@router.post("/stream")
async def chat_stream(request: ChatRequest, system: RAGChatSystem = Depends(get_system)):
    """
    Answer a question as server-sent events.

    Retrieval runs before the stream opens, so its failures still get
    a regular JSON error response.
    """
    _validate(request)
    try:
        stream = await system.stream_chat(request.query, request.session_id, request.k)
    except RetrievalError as e:
        _raise_http(e)

    return StreamingResponse(
        _event_stream(stream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
