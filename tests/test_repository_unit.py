"""
Unit Tests for Message Repository

Tests repository logic using mocks for the database connection.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from adaptive_rag.database.repository import MessageRepository
from adaptive_rag.models.document import ChatMessage


def async_context(value=None):
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=value)
    ctx.__aexit__ = AsyncMock(return_value=None)
    return ctx


class TestRepositoryUnit:
    """Unit tests for MessageRepository."""

    @pytest.fixture
    def mock_conn(self):
        conn = AsyncMock()
        conn.transaction = MagicMock(return_value=async_context())
        return conn

    @pytest.fixture
    def mock_repo(self, mock_conn):
        """Create a repository with mocked pool."""
        repo = MessageRepository(connection_string="mock://")
        mock_pool = MagicMock()
        mock_pool.acquire.return_value = async_context(mock_conn)
        repo._pool = mock_pool
        return repo

    @pytest.mark.asyncio
    async def test_get_messages_returns_chat_messages(self, mock_repo, mock_conn):
        mock_conn.fetch.return_value = [
            {"role": "user", "content": "Who won?"},
            {"role": "assistant", "content": "Candidate A."},
        ]

        messages = await mock_repo.get_messages("s1")

        assert messages == [
            ChatMessage(role="user", content="Who won?"),
            ChatMessage(role="assistant", content="Candidate A."),
        ]
        sql = mock_conn.fetch.call_args[0][0]
        assert "ORDER BY created_at ASC" in sql

    @pytest.mark.asyncio
    async def test_save_messages_writes_exchange_in_transaction(self, mock_repo, mock_conn):
        await mock_repo.save_messages("s1", "Who won?", "Candidate A.")

        mock_conn.transaction.assert_called_once()
        upsert_sql = mock_conn.execute.call_args[0][0]
        assert "ON CONFLICT (id) DO NOTHING" in upsert_sql
        rows = mock_conn.executemany.call_args[0][1]
        assert rows == [("s1", "user", "Who won?"), ("s1", "assistant", "Candidate A.")]

    @pytest.mark.asyncio
    async def test_delete_session_reports_row_count(self, mock_repo, mock_conn):
        mock_conn.execute.return_value = "DELETE 1"
        assert await mock_repo.delete_session("s1") is True

        mock_conn.execute.return_value = "DELETE 0"
        assert await mock_repo.delete_session("s1") is False

    @pytest.mark.asyncio
    async def test_session_exists(self, mock_repo, mock_conn):
        mock_conn.fetchrow.return_value = None
        assert await mock_repo.session_exists("s1") is False

        mock_conn.fetchrow.return_value = {"?column?": 1}
        assert await mock_repo.session_exists("s1") is True

    @pytest.mark.asyncio
    async def test_record_token_usage_accumulates(self, mock_repo, mock_conn):
        await mock_repo.record_token_usage("gpt-3.5-turbo", 100, 5, 105)

        sql = mock_conn.execute.call_args[0][0]
        assert "ON CONFLICT (model) DO UPDATE" in sql
        assert mock_conn.execute.call_args[0][1:] == ("gpt-3.5-turbo", 100, 5, 105)

    @pytest.mark.asyncio
    async def test_record_token_usage_without_pool_is_noop(self):
        repo = MessageRepository(connection_string="mock://")

        await repo.record_token_usage("gpt-3.5-turbo", 1, 1, 2)

    @pytest.mark.asyncio
    async def test_get_token_usage(self, mock_repo, mock_conn):
        mock_conn.fetch.return_value = [
            {"model": "gpt-3.5-turbo", "prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12}
        ]

        usage = await mock_repo.get_token_usage()

        assert usage == [{"model": "gpt-3.5-turbo", "prompt": 10, "completion": 2, "total": 12}]
