"""Session package - persistence of per-session retrieval state."""

from adaptive_rag.session.store import SessionStore

__all__ = ["SessionStore"]
