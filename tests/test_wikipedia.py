"""Tests for the Wikipedia summary fallback."""

import httpx

from silvia.knowledge.wikipedia import WikipediaSummarizer, _title_for


def _summarizer(handler) -> WikipediaSummarizer:
    return WikipediaSummarizer(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_title_for_collapses_whitespace_and_quotes() -> None:
    assert _title_for("  Buenos   Aires ") == "Buenos_Aires"
    assert _title_for("C/C++") == "C%2FC%2B%2B"


async def test_returns_extract() -> None:
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json={"type": "standard", "extract": "Buenos Aires es la capital."})

    summary = await _summarizer(handler).summarize("Buenos Aires", "es")

    assert summary == "Buenos Aires es la capital."
    assert seen[0].host == "es.wikipedia.org"
    assert seen[0].path.endswith("/page/summary/Buenos_Aires")


async def test_locale_selects_wiki_language() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        return httpx.Response(200, json={"extract": "Capital of Argentina."})

    await _summarizer(handler).summarize("Buenos Aires", "en")
    assert seen == ["en.wikipedia.org"]


async def test_not_found_returns_none() -> None:
    summary = await _summarizer(lambda r: httpx.Response(404)).summarize("zzqx", "es")
    assert summary is None


async def test_server_error_returns_none() -> None:
    summary = await _summarizer(lambda r: httpx.Response(503)).summarize("algo", "es")
    assert summary is None


async def test_disambiguation_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"type": "disambiguation", "extract": "may refer to"})

    assert await _summarizer(handler).summarize("Mercurio", "es") is None


async def test_empty_extract_returns_none() -> None:
    summary = await _summarizer(lambda r: httpx.Response(200, json={"extract": "  "})).summarize(
        "algo", "es"
    )
    assert summary is None


async def test_network_error_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    assert await _summarizer(handler).summarize("algo", "es") is None


async def test_blank_query_skips_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    assert await _summarizer(handler).summarize("   ", "es") is None
    assert calls == []
