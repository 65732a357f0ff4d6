import pytest
import requests
import responses
from responses import matchers

from sirin.search import (
    DDG_HTML_URL,
    DDG_INSTANT_URL,
    SearchError,
    SearchResult,
    collect_instant_topics,
    dedupe_results,
    is_ddg_bot_challenge,
    parse_ddg_html,
    parse_ddg_instant,
    parse_searxng_results,
    search_ddg_html,
    search_ddg_instant,
    search_searxng,
    trim_snippet,
    web_search,
)

RESULTS_HTML = """
<html><body>
<div class="result__body">
  <h2 class="result__title"><a href="https://a.example.com">Alpha</a></h2>
  <a class="result__snippet"> Alpha snippet </a>
</div>
<div class="result__body">
  <h2 class="result__title"><a href="https://b.example.com">Beta</a></h2>
  <a class="result__snippet">Beta snippet</a>
</div>
<div class="result__body">
  <h2 class="result__title"><a href="https://A.example.com">Alpha again</a></h2>
</div>
<div class="result__body">
  <h2 class="result__title"><a>No link</a></h2>
</div>
</body></html>
"""


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def test_detects_ddg_challenge_pages():
    html = "<div class='anomaly-modal'>Please complete the following challenge</div>"
    assert is_ddg_bot_challenge(202, html)


def test_challenge_markers_and_status():
    assert is_ddg_bot_challenge(200, "<form id='challenge-form'></form>")
    assert is_ddg_bot_challenge(202, "")
    assert not is_ddg_bot_challenge(200, "<div class='result__body'></div>")


def test_deduplicates_search_results():
    results = dedupe_results(
        [
            SearchResult(title="One", url="https://example.com", snippet="A"),
            SearchResult(title="Duplicate", url="https://example.com", snippet="B"),
        ],
        10,
    )
    assert len(results) == 1
    assert results[0].title == "One"


def test_dedupe_drops_empty_urls_and_truncates():
    items = [SearchResult(title=str(i), url=f"https://e{i}.example.com", snippet="") for i in range(5)]
    items.insert(0, SearchResult(title="blank", url="  ", snippet=""))
    kept = dedupe_results(items, 3)
    assert [r.title for r in kept] == ["0", "1", "2"]


def test_trim_snippet():
    assert trim_snippet("  a   b\nc ", 10) == "a b c"
    assert trim_snippet("abcdef", 3) == "abc..."
    assert trim_snippet("abc", 3) == "abc"


def test_collect_instant_topics_nested():
    values = [
        {"Text": "Rust language", "FirstURL": "https://r.example.com"},
        {"Topics": [{"Text": "Nested topic", "FirstURL": "https://n.example.com"}]},
        {"Text": "", "FirstURL": "https://x.example.com"},
        "not an object",
    ]
    found = collect_instant_topics(values)
    assert [r.url for r in found] == ["https://r.example.com", "https://n.example.com"]
    assert found[0].title == "Rust language"


def test_parse_ddg_instant_with_abstract():
    payload = {
        "AbstractText": "About Rust",
        "AbstractURL": "https://about.example.com",
        "RelatedTopics": [{"Text": "More", "FirstURL": "https://more.example.com"}],
    }
    results = parse_ddg_instant(payload)
    assert results[0] == SearchResult(
        title="About Rust", url="https://about.example.com", snippet="About Rust"
    )
    assert results[1].url == "https://more.example.com"


def test_parse_searxng_results():
    payload = {
        "results": [
            {"title": " T1 ", "url": "https://1.example.com", "content": "c  one"},
            {"title": None, "url": "https://2.example.com"},
            {"title": "T3", "url": "https://1.example.com", "content": "dup"},
        ]
    }
    assert parse_searxng_results(payload) == [
        SearchResult(title="T1", url="https://1.example.com", snippet="c one")
    ]
    assert parse_searxng_results({}) == []
    with pytest.raises(SearchError):
        parse_searxng_results([1, 2])


def test_parse_ddg_html():
    results = parse_ddg_html(RESULTS_HTML)
    assert results == [
        SearchResult(title="Alpha", url="https://a.example.com", snippet="Alpha snippet"),
        SearchResult(title="Beta", url="https://b.example.com", snippet="Beta snippet"),
    ]


def test_search_searxng_not_configured(monkeypatch):
    monkeypatch.delenv("SEARXNG_BASE_URL", raising=False)
    with pytest.raises(SearchError, match="SEARXNG_BASE_URL not configured"):
        search_searxng(requests.Session(), "rust", None)


def test_search_searxng_request(mocked):
    mocked.add(
        responses.GET,
        "http://searx.example.com/search",
        json={"results": [{"title": "Hit", "url": "https://hit.example.com", "content": "x"}]},
        match=[matchers.query_param_matcher({"q": "rust", "format": "json", "categories": "general"})],
    )
    results = search_searxng(requests.Session(), "rust", " http://searx.example.com/ ")
    assert results == [SearchResult(title="Hit", url="https://hit.example.com", snippet="x")]


def test_search_searxng_error_status(mocked):
    mocked.add(responses.GET, "http://searx.example.com/search", status=500)
    with pytest.raises(SearchError, match="SearXNG returned error status"):
        search_searxng(requests.Session(), "rust", "http://searx.example.com")


def test_search_ddg_instant_empty(mocked):
    mocked.add(responses.GET, DDG_INSTANT_URL, json={"RelatedTopics": []})
    with pytest.raises(SearchError, match="no related topics"):
        search_ddg_instant(requests.Session(), "rust")


def test_search_ddg_html_challenge(mocked):
    mocked.add(responses.GET, DDG_HTML_URL, body="<div class='anomaly-modal'></div>", status=202)
    with pytest.raises(SearchError, match=r"bot challenge \(HTTP 202\)"):
        search_ddg_html(requests.Session(), "rust")


def test_web_search_falls_back_to_html(mocked, monkeypatch):
    monkeypatch.delenv("SEARXNG_BASE_URL", raising=False)
    mocked.add(responses.GET, DDG_INSTANT_URL, json={"AbstractText": "", "RelatedTopics": []})
    mocked.add(responses.GET, DDG_HTML_URL, body=RESULTS_HTML)
    results = web_search("rust")
    assert [r.url for r in results] == ["https://a.example.com", "https://b.example.com"]


def test_web_search_prefers_instant(mocked, monkeypatch):
    monkeypatch.delenv("SEARXNG_BASE_URL", raising=False)
    mocked.add(
        responses.GET,
        DDG_INSTANT_URL,
        json={"RelatedTopics": [{"Text": "Instant", "FirstURL": "https://i.example.com"}]},
    )
    results = web_search("rust")
    assert results == [SearchResult(title="Instant", url="https://i.example.com", snippet="Instant")]


def test_web_search_all_fail(mocked, monkeypatch):
    monkeypatch.delenv("SEARXNG_BASE_URL", raising=False)
    mocked.add(responses.GET, DDG_INSTANT_URL, status=500)
    mocked.add(responses.GET, DDG_HTML_URL, body="challenge-form", status=200)
    with pytest.raises(SearchError) as info:
        web_search("rust")
    message = str(info.value)
    assert message.startswith("All search providers failed: SEARXNG_BASE_URL not configured | ")
    assert "DuckDuckGo instant status error" in message
    assert message.count(" | ") == 2