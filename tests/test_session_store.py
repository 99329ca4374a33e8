"""
Unit Tests for the Session Store

Redis is replaced by an AsyncMock client or bypassed for the in-memory
fallback; no Redis server required.
"""

import pytest
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError

from adaptive_rag.models.session import SessionRetrievalState
from adaptive_rag.session.store import SessionStore

from conftest import make_episode


def make_state() -> SessionRetrievalState:
    state = SessionRetrievalState(conversation_length=2)
    state.add_episode(make_episode("Who won?", ["Candidate A won."]), max_history=5)
    return state


class TestMemoryFallback:
    @pytest.mark.asyncio
    async def test_missing_session_is_empty(self):
        store = SessionStore(redis_url=None)
        await store.connect()

        state = await store.get("unknown")

        assert state == SessionRetrievalState()
        assert store.using_redis is False

    @pytest.mark.asyncio
    async def test_put_then_get(self):
        store = SessionStore(redis_url=None)

        await store.put("s1", make_state())

        assert await store.get("s1") == make_state()

    @pytest.mark.asyncio
    async def test_get_returns_independent_copy(self):
        """Mutating a fetched state does not touch the stored one."""
        store = SessionStore(redis_url=None)
        await store.put("s1", make_state())

        fetched = await store.get("s1")
        fetched.record_exchange()

        assert (await store.get("s1")).conversation_length == 2

    @pytest.mark.asyncio
    async def test_last_writer_wins(self):
        store = SessionStore(redis_url=None)
        first = make_state()
        second = make_state()
        second.conversation_length = 8

        await store.put("s1", first)
        await store.put("s1", second)

        assert (await store.get("s1")).conversation_length == 8

    @pytest.mark.asyncio
    async def test_delete(self):
        store = SessionStore(redis_url=None)
        await store.put("s1", make_state())

        await store.delete("s1")

        assert await store.get("s1") == SessionRetrievalState()


class TestRedisBackend:
    @pytest.fixture
    def redis(self):
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_put_writes_json_with_ttl(self, redis):
        store = SessionStore(redis=redis, default_ttl=3600)
        state = make_state()

        await store.put("s1", state)

        redis.set.assert_awaited_once_with("session:s1", state.model_dump_json(), ex=3600)

    @pytest.mark.asyncio
    async def test_get_parses_stored_state(self, redis):
        redis.get.return_value = make_state().model_dump_json().encode()
        store = SessionStore(redis=redis)

        state = await store.get("s1")

        redis.get.assert_awaited_once_with("session:s1")
        assert state == make_state()

    @pytest.mark.asyncio
    async def test_get_missing_key_is_empty(self, redis):
        redis.get.return_value = None
        store = SessionStore(redis=redis)

        assert await store.get("s1") == SessionRetrievalState()

    @pytest.mark.asyncio
    async def test_corrupt_state_is_discarded(self, redis):
        redis.get.return_value = b'{"episodes": [{"query": "q", "documents": []}]}'
        store = SessionStore(redis=redis)

        assert await store.get("s1") == SessionRetrievalState()

    @pytest.mark.asyncio
    async def test_write_failure_falls_back_to_memory(self, redis):
        redis.set.side_effect = RedisConnectionError("down")
        redis.get.side_effect = RedisConnectionError("down")
        store = SessionStore(redis=redis)

        await store.put("s1", make_state())

        assert await store.get("s1") == make_state()

    @pytest.mark.asyncio
    async def test_delete_failure_is_logged_not_raised(self, redis, caplog):
        redis.set.side_effect = RedisConnectionError("down")
        redis.get.side_effect = RedisConnectionError("down")
        redis.delete.side_effect = RedisConnectionError("down")
        store = SessionStore(redis=redis)
        await store.put("s1", make_state())

        await store.delete("s1")

        redis.delete.assert_awaited_once_with("session:s1")
        assert "Redis delete failed" in caplog.text
        assert await store.get("s1") == SessionRetrievalState()

    @pytest.mark.asyncio
    async def test_custom_ttl_and_prefix(self, redis):
        store = SessionStore(redis=redis, key_prefix="rag:")

        await store.put("s1", make_state(), ttl=60)

        assert redis.set.await_args.args[0] == "rag:s1"
        assert redis.set.await_args.kwargs["ex"] == 60

    @pytest.mark.asyncio
    async def test_close_releases_client(self, redis):
        store = SessionStore(redis=redis)

        await store.close()

        redis.aclose.assert_awaited_once()
        assert store.using_redis is False
