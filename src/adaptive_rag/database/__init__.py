"""Database package - PostgreSQL persistence of sessions and messages."""

from adaptive_rag.database.schema import DatabaseSchema
from adaptive_rag.database.repository import MessageRepository

__all__ = ["DatabaseSchema", "MessageRepository"]
