"""
Session API Routes

Create, inspect and delete chat sessions.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from adaptive_rag.api.main import get_system
from adaptive_rag.engine.chat_engine import RAGChatSystem

logger = logging.getLogger("adaptive_rag.api.session")

router = APIRouter()


@router.post("/new")
async def new_session(system: RAGChatSystem = Depends(get_system)):
    try:
        session_id = await system.create_session()
    except Exception as e:
        logger.error(f"Failed to create new session: {e}")
        raise HTTPException(status_code=500, detail="Failed to create new session")
    return {"session_id": session_id}


@router.get("/{session_id}/history")
async def session_history(session_id: str, system: RAGChatSystem = Depends(get_system)):
    """Message history plus a summary of the cached retrieval episodes."""
    try:
        history = await system.get_session_history(session_id)
    except Exception as e:
        logger.error(f"Failed to get session history: {e}")
        raise HTTPException(status_code=500, detail="Failed to get session history")
    if history is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return history


@router.delete("/{session_id}")
async def delete_session(session_id: str, system: RAGChatSystem = Depends(get_system)):
    try:
        deleted = await system.delete_session(session_id)
    except Exception as e:
        logger.error(f"Failed to clear session: {e}")
        raise HTTPException(status_code=500, detail="Failed to clear session")
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session cleared successfully"}
