"""
External search execution.

Behavioral Contract:
- A search runs only after explicit user confirmation
- run_confirmed_search is the only producer of a confirmed SearchContext
- Provider failures and empty queries yield no results; they never raise
- Results are ephemeral: never cached, never persisted
"""

import logging
import os
from datetime import datetime, timezone
from typing import List, Optional, Protocol
from urllib.parse import urlparse

import httpx

from pachai_kernel.models.search import SearchContext, SearchResult

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_RESULTS = 5
UNTITLED = "Sem título"


class SearchProvider(Protocol):
    def search(self, query: str, max_results: int = DEFAULT_MAX_RESULTS) -> List[SearchResult]:
        ...


def _hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or url
    except ValueError:
        return url


class TavilySearchProvider:
    """
    Tavily web search over httpx.

    Usage:
        provider = TavilySearchProvider.from_env()
        results = provider.search("onboarding em SaaS B2B")
    """

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.Client] = None,
        url: str = TAVILY_SEARCH_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._api_key = api_key
        self._url = url
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_env(cls, client: Optional[httpx.Client] = None) -> Optional["TavilySearchProvider"]:
        """Build a provider from TAVILY_API_KEY, or None when the key is absent."""
        api_key = os.getenv("TAVILY_API_KEY")
        if not api_key:
            logger.warning("[Search] TAVILY_API_KEY not configured; external search disabled")
            return None
        return cls(api_key=api_key, client=client)

    def search(self, query: str, max_results: int = DEFAULT_MAX_RESULTS) -> List[SearchResult]:
        response = self._client.post(
            self._url,
            json={
                "api_key": self._api_key,
                "query": query,
                "search_depth": "basic",
                "max_results": max_results,
            },
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected search payload: {type(payload).__name__}")

        results = []
        for item in payload.get("results") or []:
            if not isinstance(item, dict):
                continue
            url = item.get("url") or ""
            results.append(SearchResult(
                title=item.get("title") or UNTITLED,
                snippet=item.get("content") or "",
                source=_hostname(url) if url else "",
                url=url,
            ))
        return results[:max_results]

    def close(self) -> None:
        self._client.close()


def execute_external_search(
    provider: Optional[SearchProvider],
    query: str,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> List[SearchResult]:
    """Run a search; any failure degrades to an empty result list."""
    query = (query or "").strip()
    if not query:
        return []
    if provider is None:
        logger.warning("[Search] No search provider configured")
        return []

    try:
        results = provider.search(query, max_results=max_results)
    except Exception as e:
        logger.error(f"[Search] Search for {query!r} failed: {e}")
        return []

    logger.info(f"[Search] {len(results)} results for {query!r}")
    return results


def run_confirmed_search(
    provider: Optional[SearchProvider],
    query: str,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> SearchContext:
    """Execute a user-confirmed search and wrap it as a confirmed SearchContext."""
    query = (query or "").strip()
    return SearchContext(
        query=query,
        results=execute_external_search(provider, query, max_results=max_results),
        executed_at=datetime.now(timezone.utc),
        confirmed_by_user=True,
    )
