"""Engine package - the chat system that owns all collaborators."""

from adaptive_rag.engine.base import ChatEngine
from adaptive_rag.engine.chat_engine import ChatStream, RAGChatSystem

__all__ = ["ChatEngine", "ChatStream", "RAGChatSystem"]
