from __future__ import annotations

from typing import Callable

import httpx
import pytest

from conftest import FakeClock
from newsflash.config import Settings
from newsflash.exceptions import NewsAPIError
from newsflash.news import FilterOptions, NewsClient
from newsflash.quota import QuotaTracker, policies_from_settings
from newsflash.storage import MemoryStore
from newsflash.summarization import TextSummarizer


ARTICLE_TEXT = (
    "<p>The city council approved a new transit budget on Monday.</p>"
    "<p>Transit riders have waited years for the transit expansion.</p>"
    "<p>Critics said the council ignored road repairs entirely.</p>"
)

NEWS_PAYLOAD = {
    "status": "success",
    "totalResults": 1,
    "results": [
        {
            "article_id": "a1",
            "title": "Council approves transit budget",
            "link": "https://example.com/a1",
            "country": ["us"],
            "category": ["politics"],
            "sentiment": "neutral",
        }
    ],
}


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    clock: FakeClock,
    **kwargs,
) -> NewsClient:
    settings = Settings()
    tracker = QuotaTracker(policies_from_settings(settings.quota), MemoryStore(), clock)
    http = httpx.Client(transport=httpx.MockTransport(handler))
    kwargs.setdefault("news_api_key", "test-key")
    return NewsClient(settings, tracker, TextSummarizer(), http, **kwargs)


def test_fetch_news_records_success(clock: FakeClock) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=NEWS_PAYLOAD)

    client = _client(handler, clock)
    news = client.fetch_news(FilterOptions(category="politics", q="transit"))

    assert news.results[0].article_id == "a1"
    assert news.results[0].category == ["politics"]
    params = seen[0].url.params
    assert params["apikey"] == "test-key"
    assert params["language"] == "en"
    assert params["size"] == "10"
    assert params["category"] == "politics"
    assert params["q"] == "transit"
    assert "country" not in params
    assert client.tracker.get_remaining_requests("news") == 199


@pytest.mark.parametrize(
    "status,is_rate_limit",
    [(429, True), (401, False), (403, False), (500, False)],
)
def test_fetch_news_http_errors_do_not_consume_quota(clock: FakeClock, status: int, is_rate_limit: bool) -> None:
    client = _client(lambda request: httpx.Response(status, json={}), clock)
    with pytest.raises(NewsAPIError) as exc_info:
        client.fetch_news()
    assert exc_info.value.status == status
    assert exc_info.value.is_rate_limit is is_rate_limit
    assert client.tracker.get_remaining_requests("news") == 200


def test_fetch_news_error_payload(clock: FakeClock) -> None:
    client = _client(lambda request: httpx.Response(200, json={"status": "error", "message": "bad query"}), clock)
    with pytest.raises(NewsAPIError, match="bad query"):
        client.fetch_news()
    assert client.tracker.get_remaining_requests("news") == 200


def test_fetch_news_network_error(clock: FakeClock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler, clock)
    with pytest.raises(NewsAPIError, match="Network error"):
        client.fetch_news()
    assert client.tracker.get_remaining_requests("news") == 200


def test_fetch_news_refused_when_quota_exhausted(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=NEWS_PAYLOAD)

    client = _client(handler, clock)
    for _ in range(200):
        client.tracker.record_successful_request("news")

    with pytest.raises(NewsAPIError) as exc_info:
        client.fetch_news()
    assert exc_info.value.status == 429
    assert exc_info.value.is_rate_limit
    assert calls == []


def test_fetch_news_requires_api_key(clock: FakeClock, monkeypatch) -> None:
    monkeypatch.delenv("NEWSDATA_API_KEY", raising=False)
    client = _client(lambda request: httpx.Response(200, json=NEWS_PAYLOAD), clock, news_api_key=None)
    with pytest.raises(NewsAPIError) as exc_info:
        client.fetch_news()
    assert exc_info.value.status == 401


def test_summarize_article_remote(clock: FakeClock) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"sm_api_content": "Remote summary."})

    client = _client(handler, clock)
    result = client.summarize_article(ARTICLE_TEXT)
    assert result.source == "remote"
    assert result.summary == "Remote summary."
    assert seen[0].method == "POST"
    assert b"sm_api_input=" in seen[0].content
    assert b"%3Cp%3E" not in seen[0].content
    assert client.tracker.get_remaining_requests("summary") == 99


@pytest.mark.parametrize(
    "response",
    [httpx.Response(500, text="boom"), httpx.Response(200, json={"sm_api_error": 3})],
)
def test_summarize_article_falls_back_locally(clock: FakeClock, response: httpx.Response) -> None:
    client = _client(lambda request: response, clock)
    result = client.summarize_article(ARTICLE_TEXT)
    assert result.source == "local"
    assert "<p>" not in result.summary
    assert result.summary.endswith(".")
    assert client.tracker.get_remaining_requests("summary") == 100


def test_summarize_article_skips_remote_when_quota_exhausted(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"sm_api_content": "Remote summary."})

    client = _client(handler, clock)
    for _ in range(100):
        client.tracker.record_successful_request("summary")
    result = client.summarize_article(ARTICLE_TEXT)
    assert result.source == "local"
    assert calls == []


def test_summarize_article_empty_text(clock: FakeClock) -> None:
    client = _client(lambda request: httpx.Response(500), clock)
    result = client.summarize_article("   ")
    assert result == result.__class__(summary="No content available for summarization.", source="local")


def test_get_api_usage_stats(clock: FakeClock) -> None:
    client = _client(lambda request: httpx.Response(200, json=NEWS_PAYLOAD), clock)
    client.fetch_news()
    stats = client.get_api_usage_stats()
    assert set(stats) == {"news", "summary"}
    assert stats["news"].used == 1
    assert stats["summary"].remaining == 100


def test_fetch_news_accepts_null_lists(clock: FakeClock) -> None:
    payload = {
        "status": "success",
        "totalResults": 1,
        "results": [
            {"article_id": "a2", "title": "T", "link": "https://example.com/a2", "category": None, "country": None}
        ],
    }
    client = _client(lambda request: httpx.Response(200, json=payload), clock)
    news = client.fetch_news()
    assert news.results[0].category == []
    assert news.results[0].country == []
    assert client.tracker.get_remaining_requests("news") == 199


def test_fetch_news_counts_success_even_when_payload_is_unusable(clock: FakeClock) -> None:
    payload = {"status": "success", "results": [{"title": "missing id and link"}]}
    client = _client(lambda request: httpx.Response(200, json=payload), clock)
    with pytest.raises(NewsAPIError):
        client.fetch_news()
    assert client.tracker.get_remaining_requests("news") == 199
