"""
Adaptive RAG API Server

FastAPI application exposing chat and session endpoints.

The RAGChatSystem is built once in the lifespan handler and stored on
app.state; routes reach it through the get_system dependency.
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from adaptive_rag.config import load_config
from adaptive_rag.engine.chat_engine import RAGChatSystem


def get_system(request: Request) -> RAGChatSystem:
    """Dependency returning the app's chat system."""
    system: Optional[RAGChatSystem] = getattr(request.app.state, "system", None)
    if system is None or not system.is_ready:
        raise HTTPException(status_code=503, detail="RAG system not fully initialized")
    return system


def create_app(system: Optional[RAGChatSystem] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        system: Prebuilt chat system. When omitted, one is constructed
            from configuration and initialized at startup; startup fails
            if the vector store is missing.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = system is None
        app.state.system = system or RAGChatSystem(load_config())
        if owned:
            await app.state.system.initialize()
        yield
        if owned:
            await app.state.system.close()
        app.state.system = None

    app = FastAPI(
        title="Adaptive RAG API",
        description="Retrieval-augmented chat with confidence-gated web search",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from adaptive_rag.api.routes import chat, session

    app.include_router(chat.router, prefix="/chat", tags=["Chat"])
    app.include_router(session.router, prefix="/session", tags=["Session"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/stats")
    async def get_stats(request: Request):
        """Pipeline, cache and index statistics."""
        current: Optional[RAGChatSystem] = getattr(request.app.state, "system", None)
        if current is None:
            return {"initialized": False}
        return await current.get_stats()

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "adaptive_rag.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
