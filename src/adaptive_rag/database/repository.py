"""
Message Repository

CRUD operations for chat sessions, their message history and
cumulative token usage.
"""

from typing import List, Optional

import asyncpg

from adaptive_rag.models.document import ChatMessage


class MessageRepository:
    """
    Repository for all database operations on conversation data.

    Provides methods for:
    - Session lifecycle (create, exists, delete)
    - Ordered message history
    - Token usage accounting
    """

    def __init__(self, connection_string: str = None):
        self.connection_string = connection_string or "postgresql://127.0.0.1/adaptive_rag"
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Initialize connection pool."""
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(self.connection_string, min_size=2, max_size=10)

    async def disconnect(self) -> None:
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    # ========== Session Operations ==========

    async def create_session(self, session_id: str) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                "INSERT INTO sessions (id) VALUES ($1) ON CONFLICT (id) DO NOTHING",
                session_id,
            )

    async def session_exists(self, session_id: str) -> bool:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow("SELECT 1 FROM sessions WHERE id = $1", session_id)
            return row is not None

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and, by cascade, its messages. Returns False if absent."""
        async with self._pool.acquire() as conn:
            result = await conn.execute("DELETE FROM sessions WHERE id = $1", session_id)
            return result.endswith(" 1")

    # ========== Message Operations ==========

    async def get_messages(self, session_id: str) -> List[ChatMessage]:
        """Full conversation history in chronological order."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT role, content FROM messages
                WHERE session_id = $1
                ORDER BY created_at ASC
                """,
                session_id,
            )
            return [ChatMessage(role=row["role"], content=row["content"]) for row in rows]

    async def save_messages(
        self,
        session_id: str,
        user_content: str,
        assistant_content: str,
    ) -> None:
        """Store one exchange atomically, creating the session row if needed."""
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    "INSERT INTO sessions (id) VALUES ($1) ON CONFLICT (id) DO NOTHING",
                    session_id,
                )
                await conn.executemany(
                    "INSERT INTO messages (session_id, role, content) VALUES ($1, $2, $3)",
                    [
                        (session_id, "user", user_content),
                        (session_id, "assistant", assistant_content),
                    ],
                )

    # ========== Token Usage ==========

    async def record_token_usage(
        self,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        total_tokens: int
    ) -> None:
        """Update cumulative token usage for a model."""
        if not self._pool:
            return

        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO token_usage (model, prompt_tokens, completion_tokens, total_tokens, updated_at)
                VALUES ($1, $2, $3, $4, NOW())
                ON CONFLICT (model) DO UPDATE SET
                    prompt_tokens = token_usage.prompt_tokens + EXCLUDED.prompt_tokens,
                    completion_tokens = token_usage.completion_tokens + EXCLUDED.completion_tokens,
                    total_tokens = token_usage.total_tokens + EXCLUDED.total_tokens,
                    updated_at = NOW()
                """,
                model,
                prompt_tokens,
                completion_tokens,
                total_tokens,
            )

    async def get_token_usage(self) -> List[dict]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT model, prompt_tokens, completion_tokens, total_tokens FROM token_usage"
            )
            return [
                {
                    "model": row["model"],
                    "prompt": row["prompt_tokens"],
                    "completion": row["completion_tokens"],
                    "total": row["total_tokens"],
                }
                for row in rows
            ]
