"""A tool that searches the web through DuckDuckGo's HTML interface."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import httpx
from bs4 import BeautifulSoup

from pyano.tools.base import Tool

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://duckduckgo.com/html/"


@dataclass(frozen=True)
class SearchResult:
    title: str
    link: str
    snippet: str


def _text_of(result: Any, selector: str) -> str:
    element = result.select_one(selector)
    return element.get_text() if element is not None else ""


def parse_search_results(html: str, max_results: int) -> list[SearchResult]:
    """Extract at most ``max_results`` results from a search results page."""
    document = BeautifulSoup(html, "html.parser")
    results = [
        SearchResult(
            title=_text_of(result, ".result__a"),
            link=_text_of(result, ".result__url").strip(),
            snippet=_text_of(result, ".result__snippet"),
        )
        for result in document.select(".web-result")
    ]
    return results[:max_results]


class DuckDuckGoSearchResults(Tool):
    """Searches DuckDuckGo and returns titles, links and snippets."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        url: str = _SEARCH_URL,
        max_results: int = 4,
    ) -> None:
        self.client = client
        self.url = url
        self.max_results = max_results

    def with_max_results(self, max_results: int) -> DuckDuckGoSearchResults:
        self.max_results = max_results
        return self

    async def search(self, query: str) -> list[SearchResult]:
        logger.info("Query: %s", query)
        if self.client is not None:
            response = await self.client.get(self.url, params={"q": query})
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(self.url, params={"q": query})
        return parse_search_results(response.text, self.max_results)

    @staticmethod
    def extract_links_from_results(response: Any) -> list[str]:
        results = response.get("results") if isinstance(response, dict) else None
        if not isinstance(results, list):
            logger.error("No valid results found in the response.")
            return []
        return [
            item["link"]
            for item in results
            if isinstance(item, dict) and isinstance(item.get("link"), str)
        ]

    def name(self) -> str:
        return "DuckDuckGoSearch"

    def description(self) -> str:
        return (
            '"Wrapper for DuckDuckGo Search API. "\n'
            '\t"Useful for when you need to answer questions about current events. "\n'
            '\t"Always one of the first options when you need to find information on internet"\n'
            '\t"Input should be a search query. Output is a JSON array of the query results.'
        )

    def parameters(self) -> dict[str, Any]:
        prompt = (
            "A wrapper around DuckDuckGo Search.\n"
            "            Useful for when you need to answer questions about current events.\n"
            "            Input should be a search query. Output is a JSON array of the query results."
        )
        return {
            "description": prompt,
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to look up",
                }
            },
            "required": ["query"],
        }

    async def run(self, input: Any) -> dict[str, Any]:
        query = input.get("query") if isinstance(input, dict) else None
        if not isinstance(query, str):
            raise ValueError("Input must be a JSON object with a 'query' field of type string")
        try:
            results = await self.search(query)
        except Exception as exc:
            return {"query": query, "error": f"Error performing search: {exc}"}
        return {"query": query, "results": [asdict(result) for result in results]}