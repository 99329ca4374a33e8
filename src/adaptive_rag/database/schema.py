"""
Database Schema

Creates the PostgreSQL tables for chat sessions and their messages.
"""

import asyncpg

SCHEMA_SQL = """
-- 1. Sessions
CREATE TABLE IF NOT EXISTS sessions (
    id TEXT PRIMARY KEY,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- 2. Messages: ordered conversation turns
CREATE TABLE IF NOT EXISTS messages (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
    role VARCHAR(16) NOT NULL CHECK (role IN ('user', 'assistant')),
    content TEXT NOT NULL,
    created_at TIMESTAMPTZ DEFAULT clock_timestamp()
);

-- 3. Token Usage: Cost Tracking
CREATE TABLE IF NOT EXISTS token_usage (
    model TEXT PRIMARY KEY,
    prompt_tokens BIGINT DEFAULT 0,
    completion_tokens BIGINT DEFAULT 0,
    total_tokens BIGINT DEFAULT 0,
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_messages_session
    ON messages(session_id, created_at);
"""


class DatabaseSchema:
    """Manages PostgreSQL schema creation."""

    def __init__(self, connection_string: str = None):
        self.connection_string = connection_string or "postgresql://localhost/adaptive_rag"
        self._initialized = False

    async def initialize(self) -> None:
        """Create all tables and indexes if they don't exist."""
        if self._initialized:
            return

        conn = await asyncpg.connect(self.connection_string)
        try:
            await conn.execute(SCHEMA_SQL)
        finally:
            await conn.close()

        self._initialized = True

    async def drop_all(self) -> None:
        """
        Drop all tables. USE WITH CAUTION - this destroys all data.
        """
        drop_sql = """
        DROP TABLE IF EXISTS messages CASCADE;
        DROP TABLE IF EXISTS sessions CASCADE;
        DROP TABLE IF EXISTS token_usage CASCADE;
        """
        conn = await asyncpg.connect(self.connection_string)
        try:
            await conn.execute(drop_sql)
        finally:
            await conn.close()
