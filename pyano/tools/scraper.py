"""A tool that downloads web pages and returns their visible text."""

from __future__ import annotations

import re
from typing import Any

import httpx
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

from pyano.tools.base import Tool

_USER_AGENT = "Mozilla/5.0 (compatible; WebScraper/1.0)"
_NON_TEXT = (Comment, CData, Declaration, Doctype, ProcessingInstruction)
_WHITESPACE = re.compile(r"\s+")


def fix_url(url: str) -> str:
    """Add a scheme, and ``www.`` where missing, to a bare address."""
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("www."):
        return f"https://{url}"
    return f"https://www.{url}"


def _collect_text(element: Tag, skip: frozenset[str], pieces: list[str]) -> None:
    for node in element.children:
        if isinstance(node, Tag):
            if node.name in skip:
                continue
            _collect_text(node, skip, pieces)
        elif isinstance(node, NavigableString) and not isinstance(node, _NON_TEXT):
            pieces.append(str(node))


def extract_text(html: str) -> str:
    """The text of a page's body outside of scripts, with whitespace collapsed."""
    document = BeautifulSoup(html, "html.parser")
    pieces: list[str] = []
    bodies = document.find_all("body")
    if bodies:
        for body in bodies:
            _collect_text(body, frozenset({"script"}), pieces)
    else:
        _collect_text(document, frozenset({"script", "head"}), pieces)
    joined = " ".join(pieces).replace("\n", " ").replace("\t", " ")
    return _WHITESPACE.sub(" ", joined)


async def scrape_url(url: str, client: httpx.AsyncClient | None = None) -> str:
    """Fetch a page and return its text."""
    headers = {"User-Agent": _USER_AGENT}
    if client is not None:
        response = await client.get(url, headers=headers)
    else:
        async with httpx.AsyncClient(follow_redirects=True) as own_client:
            response = await own_client.get(url, headers=headers)
    return extract_text(response.text)


class WebScrapper(Tool):
    """Scrapes a list of URLs and returns the text of each page."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.client = client

    def name(self) -> str:
        return "Web Scraper"

    def description(self) -> str:
        return (
            "Web Scraper will scan a URL and return the content of the web page. "
            'Input should be a working URL in JSON format, e.g., { "url": "https://example.com" }.'
        )

    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The URL of the web page to scrape",
                }
            },
            "required": ["url"],
        }

    async def run(self, input: Any) -> dict[str, Any]:
        urls = input.get("urls") if isinstance(input, dict) else None
        if not isinstance(urls, list):
            raise ValueError("Input should contain a valid 'urls' field as an array of strings.")
        results: list[dict[str, Any]] = []
        for url in urls:
            if not isinstance(url, str):
                results.append({"error": "Invalid URL format, expected a string."})
                continue
            try:
                content = await scrape_url(fix_url(url), self.client)
            except Exception as exc:
                results.append({"url": url, "error": f"Error scraping {url}: {exc}"})
            else:
                results.append({"url": url, "content": content})
        return {"results": results}