"""
Unit Tests for the Web Search Client

Uses httpx.MockTransport; no network access or API key required.
"""

import json
import logging

import httpx
import pytest

from adaptive_rag.errors import CollaboratorUnavailableError, MalformedResponseError
from adaptive_rag.retrieval.web_search import WebSearchClient, WebSearchResult


def make_client(handler, api_key="test-key", max_results=5) -> WebSearchClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebSearchClient(api_key=api_key, max_results=max_results, http_client=http)


def organic(count: int) -> dict:
    return {
        "organic": [
            {"title": f"Result {i}", "link": f"https://news.example/{i}", "snippet": f"Snippet {i}"}
            for i in range(count)
        ]
    }


class TestWebSearchClient:
    @pytest.mark.asyncio
    async def test_search_returns_results_in_order(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["key"] = request.headers["X-API-KEY"]
            return httpx.Response(200, json=organic(2))

        client = make_client(handler)
        results = await client.search("election results")

        assert seen == {"body": {"q": "election results"}, "key": "test-key"}
        assert [r.title for r in results] == ["Result 0", "Result 1"]
        await client.close()

    @pytest.mark.asyncio
    async def test_results_capped_at_max_results(self):
        client = make_client(lambda request: httpx.Response(200, json=organic(9)))

        results = await client.search("q")

        assert len(results) == 5
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_key_returns_empty_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=organic(1))

        client = make_client(handler, api_key=None)

        assert client.enabled is False
        assert await client.search("q") == []
        assert calls == []
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_returns_empty(self):
        client = make_client(lambda request: httpx.Response(500, text="boom"))

        assert await client.search("q") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_returns_empty(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        assert await client.search("q") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_empty(self):
        client = make_client(lambda request: httpx.Response(200, json={"organic": [{"snippet": "no title"}]}))

        assert await client.search("q") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_bad_hit_is_skipped_and_others_kept(self, caplog):
        payload = organic(3)
        payload["organic"].insert(1, {"snippet": "no title"})
        payload["organic"].append("not an object")
        client = make_client(lambda request: httpx.Response(200, json=payload), max_results=3)

        with caplog.at_level(logging.WARNING, logger="adaptive_rag.web_search"):
            results = await client.search("q")

        assert [r.title for r in results] == ["Result 0", "Result 1", "Result 2"]
        assert "hit #1" in caplog.text
        await client.close()

    @pytest.mark.asyncio
    async def test_non_list_organic_is_malformed(self):
        client = make_client(lambda request: httpx.Response(200, json={"organic": {"title": "x"}}))

        with pytest.raises(MalformedResponseError):
            await client._fetch("q")
        assert await client.search("q") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_organic_is_empty(self):
        client = make_client(lambda request: httpx.Response(200, json={"searchParameters": {}}))

        assert await client.search("q") == []
        await client.close()

    @pytest.mark.asyncio
    async def test_fetch_distinguishes_failure_kinds(self):
        unavailable = make_client(lambda request: httpx.Response(503))
        malformed = make_client(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(CollaboratorUnavailableError):
            await unavailable._fetch("q")
        with pytest.raises(MalformedResponseError):
            await malformed._fetch("q")

        await unavailable.close()
        await malformed.close()


class TestWebSearchResult:
    def test_to_document(self):
        result = WebSearchResult(title="Live results", link="https://news.example/a", snippet="A wins")

        doc = result.to_document()

        assert doc.content == "Title: Live results\nSnippet: A wins"
        assert doc.metadata == {
            "source": "https://news.example/a",
            "title": "Live results",
            "type": "web_search",
        }
        assert doc.source_type == "web_search"
