"""Key-free web search with provider fallback: SearXNG, DuckDuckGo instant, DuckDuckGo HTML."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Iterable

import requests
from bs4 import BeautifulSoup

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DDG_HTML_URL = "https://duckduckgo.com/html/"
DDG_INSTANT_URL = "https://api.duckduckgo.com/"
REQUEST_TIMEOUT = 20
MAX_RESULTS = 10

_CHALLENGE_MARKERS = (
    "anomaly-modal",
    "bots use DuckDuckGo too",
    "challenge-form",
    "Please complete the following challenge",
)


class SearchError(Exception):
    """A search provider failed or returned nothing usable."""


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    snippet: str


def trim_snippet(text: str, limit: int) -> str:
    """Collapse whitespace and cut to `limit` characters, adding '...' when cut."""
    normalized = " ".join(text.split())
    if len(normalized) > limit:
        return normalized[:limit] + "..."
    return normalized


def dedupe_results(results: Iterable[SearchResult], limit: int) -> list[SearchResult]:
    """Drop results with empty or repeated URLs (case-insensitive) and keep at most `limit`."""
    seen: set[str] = set()
    kept: list[SearchResult] = []
    for item in results:
        key = item.url.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(item)
    return kept[:limit]


def is_ddg_bot_challenge(status: int, html: str) -> bool:
    """Return True when DuckDuckGo answered with a bot challenge instead of results."""
    return status == 202 or any(marker in html for marker in _CHALLENGE_MARKERS)


def _str_field(item: Any, key: str) -> str:
    if not isinstance(item, dict):
        return ""
    value = item.get(key)
    return value if isinstance(value, str) else ""


def collect_instant_topics(values: Iterable[Any]) -> list[SearchResult]:
    """Flatten DuckDuckGo RelatedTopics (with nested Topics groups) into results."""
    found: list[SearchResult] = []
    for item in values:
        topics = item.get("Topics") if isinstance(item, dict) else None
        if isinstance(topics, list):
            found.extend(collect_instant_topics(topics))
            continue
        text = _str_field(item, "Text").strip()
        url = _str_field(item, "FirstURL").strip()
        if text and url:
            found.append(
                SearchResult(
                    title=trim_snippet(text, 80),
                    url=url,
                    snippet=trim_snippet(text, 160),
                )
            )
    return found


def parse_searxng_results(payload: Any) -> list[SearchResult]:
    """Turn a SearXNG JSON response into deduplicated results."""
    if not isinstance(payload, dict):
        raise SearchError("Failed to parse SearXNG JSON: expected an object")
    items = payload.get("results") or []
    if not isinstance(items, list):
        raise SearchError("Failed to parse SearXNG JSON: 'results' is not a list")
    results = []
    for item in items:
        title = _str_field(item, "title").strip()
        url = _str_field(item, "url").strip()
        if title and url:
            snippet = trim_snippet(_str_field(item, "content"), 180)
            results.append(SearchResult(title=title, url=url, snippet=snippet))
    return dedupe_results(results, MAX_RESULTS)


def parse_ddg_instant(payload: Any) -> list[SearchResult]:
    """Turn a DuckDuckGo instant-answer JSON response into deduplicated results."""
    if not isinstance(payload, dict):
        raise SearchError("Failed to parse DuckDuckGo instant JSON: expected an object")
    abstract_text = _str_field(payload, "AbstractText")
    abstract_url = _str_field(payload, "AbstractURL")
    related = payload.get("RelatedTopics") or []
    if not isinstance(related, list):
        raise SearchError("Failed to parse DuckDuckGo instant JSON: bad RelatedTopics")

    results: list[SearchResult] = []
    if abstract_text.strip() and abstract_url.strip():
        results.append(
            SearchResult(
                title=trim_snippet(abstract_text, 80),
                url=abstract_url,
                snippet=trim_snippet(abstract_text, 180),
            )
        )
    results.extend(collect_instant_topics(related))
    return dedupe_results(results, MAX_RESULTS)


def parse_ddg_html(html: str) -> list[SearchResult]:
    """Extract organic results from a DuckDuckGo HTML results page."""
    document = BeautifulSoup(html, "html.parser")
    results = []
    for card in document.select(".result__body")[:MAX_RESULTS]:
        title_el = card.select_one(".result__title a")
        snippet_el = card.select_one(".result__snippet")
        title = title_el.get_text().strip() if title_el is not None else ""
        href = title_el.get("href") if title_el is not None else None
        url = href if isinstance(href, str) else ""
        snippet = snippet_el.get_text().strip() if snippet_el is not None else ""
        if title and url:
            results.append(SearchResult(title=title, url=url, snippet=snippet))
    return dedupe_results(results, MAX_RESULTS)


def search_searxng(
    session: requests.Session, query: str, base_url: str | None = None
) -> list[SearchResult]:
    """Query a SearXNG instance; the base URL defaults to SEARXNG_BASE_URL."""
    raw_base = base_url if base_url is not None else os.environ.get("SEARXNG_BASE_URL")
    base = (raw_base or "").strip().rstrip("/")
    if not base:
        raise SearchError("SEARXNG_BASE_URL not configured")

    try:
        response = session.get(
            f"{base}/search",
            params={"q": query, "format": "json", "categories": "general"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise SearchError(f"SearXNG request failed: {exc}") from exc
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise SearchError(f"SearXNG returned error status: {exc}") from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise SearchError(f"Failed to parse SearXNG JSON: {exc}") from exc

    results = parse_searxng_results(payload)
    if not results:
        raise SearchError("SearXNG returned no usable results")
    return results


def search_ddg_instant(session: requests.Session, query: str) -> list[SearchResult]:
    """Query the DuckDuckGo instant-answer API."""
    try:
        response = session.get(
            DDG_INSTANT_URL,
            params={
                "q": query,
                "format": "json",
                "no_html": "1",
                "no_redirect": "1",
                "skip_disambig": "0",
            },
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise SearchError(f"DuckDuckGo instant request failed: {exc}") from exc
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise SearchError(f"DuckDuckGo instant status error: {exc}") from exc
    try:
        payload = response.json()
    except ValueError as exc:
        raise SearchError(f"Failed to parse DuckDuckGo instant JSON: {exc}") from exc

    results = parse_ddg_instant(payload)
    if not results:
        raise SearchError("DuckDuckGo instant API returned no related topics")
    return results


def search_ddg_html(session: requests.Session, query: str) -> list[SearchResult]:
    """Scrape the DuckDuckGo HTML results page, detecting bot challenges."""
    try:
        response = session.get(
            DDG_HTML_URL, params={"q": query}, timeout=REQUEST_TIMEOUT
        )
        html = response.text
    except requests.RequestException as exc:
        raise SearchError(f"DuckDuckGo HTML request failed: {exc}") from exc

    if is_ddg_bot_challenge(response.status_code, html):
        raise SearchError(
            "DuckDuckGo blocked the automated request with a bot challenge "
            f"(HTTP {response.status_code})"
        )

    results = parse_ddg_html(html)
    if not results:
        raise SearchError("DuckDuckGo HTML returned no organic results")
    return results


def web_search(query: str) -> list[SearchResult]:
    """Search the web, trying SearXNG, DuckDuckGo instant answers, then DuckDuckGo HTML.

    Raises SearchError listing every provider's failure if none succeeds.
    """
    failures: list[str] = []
    with requests.Session() as session:
        session.headers["User-Agent"] = USER_AGENT
        for provider in (search_searxng, search_ddg_instant, search_ddg_html):
            try:
                return provider(session, query)
            except SearchError as exc:
                failures.append(str(exc))
    raise SearchError(f"All search providers failed: {' | '.join(failures)}")