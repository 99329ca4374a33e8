"""
Session Store

Persists SessionRetrievalState between requests in Redis, keyed
"session:<id>" with a TTL. When Redis is unreachable the store keeps
state in an in-process dict owned by this instance.

There is no per-session locking: two concurrent requests for the same
session race, and the last put() wins.
"""

import logging
from typing import Dict, Optional

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from adaptive_rag.models.session import SessionRetrievalState

logger = logging.getLogger("adaptive_rag.session")


class SessionStore:
    """Redis-backed store for per-session retrieval state."""

    def __init__(
        self,
        redis_url: Optional[str] = "redis://localhost:6379",
        key_prefix: str = "session:",
        default_ttl: int = 3600,
        redis: Optional[Redis] = None,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl
        self._redis: Optional[Redis] = redis
        self._memory: Dict[str, SessionRetrievalState] = {}

    @property
    def using_redis(self) -> bool:
        return self._redis is not None

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def connect(self) -> None:
        """Connect to Redis, falling back to in-memory storage on failure."""
        if self._redis is not None or not self.redis_url:
            return
        client = Redis.from_url(self.redis_url)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.warning(f"Redis unavailable, using in-memory session storage: {e}")
            await client.aclose()
            return
        self._redis = client
        logger.info("Redis connected")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def get(self, session_id: str) -> SessionRetrievalState:
        """Return the session's state, or an empty state if none is stored."""
        if self._redis is not None:
            try:
                raw = await self._redis.get(self._key(session_id))
            except RedisError as e:
                logger.warning(f"Redis read failed for {session_id[:8]}, using memory: {e}")
            else:
                if raw is None:
                    return SessionRetrievalState()
                try:
                    return SessionRetrievalState.model_validate_json(raw)
                except ValidationError as e:
                    logger.error(f"Discarding corrupt session state for {session_id[:8]}: {e}")
                    return SessionRetrievalState()

        cached = self._memory.get(session_id)
        return cached.model_copy(deep=True) if cached else SessionRetrievalState()

    async def put(
        self,
        session_id: str,
        state: SessionRetrievalState,
        ttl: Optional[int] = None,
    ) -> None:
        ttl = ttl or self.default_ttl
        if self._redis is not None:
            try:
                await self._redis.set(self._key(session_id), state.model_dump_json(), ex=ttl)
                return
            except RedisError as e:
                logger.warning(f"Redis write failed for {session_id[:8]}, using memory: {e}")
        self._memory[session_id] = state.model_copy(deep=True)

    async def delete(self, session_id: str) -> None:
        self._memory.pop(session_id, None)
        if self._redis is not None:
            try:
                await self._redis.delete(self._key(session_id))
            except RedisError as e:
                logger.warning(f"Redis delete failed for {session_id[:8]}: {e}")
