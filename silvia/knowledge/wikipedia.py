"""Wikipedia page summaries, used when the LLM cannot answer."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from silvia.config import settings

logger = logging.getLogger(__name__)

SUMMARY_URL = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"
DEFAULT_USER_AGENT = "SilviaBot/1.0 (Telegram assistant)"
MAX_QUERY_LENGTH = 200


def _title_for(query: str) -> str:
    """Turn free text into a Wikipedia page title path segment."""
    title = " ".join(query.split())[:MAX_QUERY_LENGTH]
    return quote(title.replace(" ", "_"), safe="")


class WikipediaSummarizer:
    """Fetches the lead summary of the Wikipedia page matching a query."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=settings.external_call_timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": DEFAULT_USER_AGENT},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def summarize(self, query: str, locale: str = "es") -> str | None:
        """Return the page extract for *query*, or None if nothing usable."""
        if not query.strip():
            return None

        url = SUMMARY_URL.format(lang=locale or "es", title=_title_for(query))
        try:
            resp = await self._get_client().get(url)
        except httpx.HTTPError as exc:
            logger.warning("Wikipedia lookup failed for %r: %s", query[:80], exc)
            return None

        if resp.status_code == 404:
            logger.debug("No Wikipedia page for %r", query[:80])
            return None
        if resp.status_code != 200:
            logger.warning("Wikipedia lookup returned %d for %r", resp.status_code, query[:80])
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Wikipedia returned invalid JSON for %r", query[:80])
            return None

        if data.get("type") == "disambiguation":
            return None
        extract = (data.get("extract") or "").strip()
        return extract or None
