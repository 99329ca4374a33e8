"""
Web Search Client

Serper (google.serper.dev) client used as the low-confidence fallback.

search() never raises: a missing API key, a transport error, a non-2xx
status or a payload without a hit list all yield an empty list.
Individual hits that fail validation are dropped.
"""

import logging
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from adaptive_rag.errors import CollaboratorUnavailableError, MalformedResponseError
from adaptive_rag.models.document import Document

logger = logging.getLogger("adaptive_rag.web_search")


class WebSearchResult(BaseModel):
    """A single organic search hit."""
    title: str
    link: str
    snippet: str = ""

    def to_document(self) -> Document:
        return Document(
            content=f"Title: {self.title}\nSnippet: {self.snippet}",
            metadata={
                "source": self.link,
                "title": self.title,
                "type": "web_search",
            },
        )


class SerperResponse(BaseModel):
    """Subset of the Serper response we consume. Hits are validated one by one."""
    organic: List[Any] = Field(default_factory=list)


class WebSearchClient:
    """
    Async Serper client.

    The underlying httpx.AsyncClient is owned by this instance and
    released with close().
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: str = "https://google.serper.dev/search",
        max_results: int = 5,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.max_results = max_results
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _fetch(self, query: str) -> SerperResponse:
        """
        Call the API and validate the payload.

        Raises:
            CollaboratorUnavailableError: Missing key, transport error, non-2xx
            MalformedResponseError: Body is not JSON or has no hit list
        """
        if not self.api_key:
            raise CollaboratorUnavailableError("serper", "SERPER_API_KEY not configured")

        try:
            response = await self._http.post(
                self.endpoint,
                json={"q": query},
                headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CollaboratorUnavailableError(
                "serper", f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError("serper", str(e)) from e

        try:
            return SerperResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise MalformedResponseError("serper", str(e)) from e

    async def search(self, query: str) -> List[WebSearchResult]:
        """
        Search the web and return at most max_results organic hits.

        Args:
            query: Raw user query

        Returns:
            Ordered results, empty on any failure
        """
        try:
            payload = await self._fetch(query)
        except CollaboratorUnavailableError as e:
            logger.warning(f"Web search unavailable, skipping: {e}")
            return []
        except MalformedResponseError as e:
            logger.error(f"Web search returned a malformed response: {e}")
            return []

        results = []
        for position, hit in enumerate(payload.organic):
            try:
                results.append(WebSearchResult.model_validate(hit))
            except ValidationError as e:
                logger.warning(f"Skipping malformed web search hit #{position}: {e.error_count()} errors")
        results = results[: self.max_results]
        logger.info(f"Web search for '{query}' returned {len(results)} results")
        return results

    async def close(self) -> None:
        await self._http.aclose()
