import httpx
import pytest

from pyano.tools.duckduckgo import (
    DuckDuckGoSearchResults,
    SearchResult,
    parse_search_results,
)


def _result_html(title, link, snippet):
    return (
        '<div class="result web-result">'
        f'<a class="result__a" href="#">{title}</a>'
        f'<a class="result__url" href="#">  {link}  </a>'
        f'<a class="result__snippet" href="#">{snippet}</a>'
        "</div>"
    )


PAGE = (
    "<html><body>"
    + _result_html("First <b>Title</b>", "first.example.com", "one")
    + _result_html("Second", "second.example.com", "two")
    + _result_html("Third", "third.example.com", "three")
    + "</body></html>"
)


def test_parse_search_results_extracts_fields():
    results = parse_search_results(PAGE, 10)
    assert results[0] == SearchResult("First Title", "first.example.com", "one")
    assert [r.link for r in results] == [
        "first.example.com",
        "second.example.com",
        "third.example.com",
    ]


def test_parse_search_results_respects_limit():
    assert len(parse_search_results(PAGE, 2)) == 2
    assert parse_search_results(PAGE, 0) == []


def test_missing_fields_become_empty():
    html = '<div class="web-result"><a class="result__a">Only title</a></div>'
    assert parse_search_results(html, 4) == [SearchResult("Only title", "", "")]


def test_extract_links_from_results():
    response = {"results": [{"link": "a.example.com"}, {"title": "x"}, {"link": "b.example.com"}]}
    links = DuckDuckGoSearchResults.extract_links_from_results(response)
    assert links == ["a.example.com", "b.example.com"]
    assert DuckDuckGoSearchResults.extract_links_from_results({"error": "x"}) == []
    assert DuckDuckGoSearchResults.extract_links_from_results(None) == []


def test_with_max_results_and_metadata():
    tool = DuckDuckGoSearchResults().with_max_results(3)
    assert tool.max_results == 3
    assert tool.name() == "DuckDuckGoSearch"
    assert tool.parameters()["required"] == ["query"]


@pytest.mark.asyncio
async def test_run_searches_with_query_parameter():
    seen = []

    def handler(request):
        seen.append(request.url.params["q"])
        return httpx.Response(200, text=PAGE)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    tool = DuckDuckGoSearchResults(client=client).with_max_results(2)
    result = await tool.json_call("who is who")
    await client.aclose()
    assert seen == ["who is who"]
    assert result["query"] == "who is who"
    assert len(result["results"]) == 2
    assert result["results"][1]["title"] == "Second"


@pytest.mark.asyncio
async def test_run_reports_search_errors():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    result = await DuckDuckGoSearchResults(client=client).run({"query": "peru"})
    await client.aclose()
    assert result["query"] == "peru"
    assert result["error"].startswith("Error performing search: ")
    assert "results" not in result


@pytest.mark.asyncio
async def test_run_requires_string_query():
    with pytest.raises(ValueError):
        await DuckDuckGoSearchResults().run({"query": 5})