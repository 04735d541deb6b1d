from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional

import httpx
from pydantic import ValidationError

from newsflash.config import Settings
from newsflash.exceptions import NewsAPIError
from newsflash.preprocessing.cleaning import clean_text
from newsflash.quota import QuotaTracker, UsageStats
from newsflash.summarization import TextSummarizer

from .models import FilterOptions, NewsResponse


logger = logging.getLogger("newsflash.news")

NEWS_IDENTITY = "news"
SUMMARY_IDENTITY = "summary"
USER_AGENT = "NewsFlash/1.0"


@dataclass(frozen=True)
class ArticleSummary:
    summary: str
    source: Literal["remote", "local"]


class NewsClient:
    """Talks to the news and summary APIs without overspending their quotas.

    A call is attempted only when the tracker allows it and is recorded only
    after it succeeded. Summaries degrade to the local extractive summarizer.
    """

    def __init__(
        self,
        settings: Settings,
        tracker: QuotaTracker,
        summarizer: TextSummarizer,
        http_client: Optional[httpx.Client] = None,
        *,
        news_api_key: Optional[str] = None,
        summary_api_key: Optional[str] = None,
    ) -> None:
        self.settings = settings
        self.tracker = tracker
        self.summarizer = summarizer
        self.http = http_client or httpx.Client(headers={"User-Agent": USER_AGENT})
        self.news_api_key = news_api_key or os.environ.get("NEWSDATA_API_KEY")
        self.summary_api_key = summary_api_key or os.environ.get("SMMRY_API_KEY")

    def close(self) -> None:
        self.http.close()

    def fetch_news(self, filters: Optional[FilterOptions] = None) -> NewsResponse:
        filters = filters or FilterOptions()
        if not self.tracker.can_make_request(NEWS_IDENTITY):
            reset_at = datetime.fromtimestamp(self.tracker.get_reset_time(NEWS_IDENTITY) / 1000, tz=timezone.utc)
            raise NewsAPIError(f"Rate limit exceeded. Resets at {reset_at:%H:%M:%S} UTC", 429, True)
        if not self.news_api_key:
            raise NewsAPIError("NEWSDATA_API_KEY is not configured", 401)

        cfg = self.settings.news_api
        params = {
            "apikey": self.news_api_key,
            "language": filters.language or "en",
            "size": str(cfg.page_size),
        }
        for name in ("category", "country", "q"):
            value = getattr(filters, name)
            if value:
                params[name] = value

        try:
            response = self.http.get(
                cfg.base_url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=cfg.timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.warning("News API transport error: %s", e)
            raise NewsAPIError("Network error. Please check your connection.") from e

        if response.status_code == 429:
            raise NewsAPIError("API rate limit exceeded. Please try again later.", 429, True)
        if response.status_code == 401:
            raise NewsAPIError("Invalid API key", 401)
        if response.status_code == 403:
            raise NewsAPIError("API access forbidden", 403)
        if not response.is_success:
            raise NewsAPIError(f"HTTP error! status: {response.status_code}", response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise NewsAPIError("Failed to fetch news. Please try again.") from e
        if not isinstance(payload, dict) or payload.get("status") != "success":
            message = payload.get("message") if isinstance(payload, dict) else None
            raise NewsAPIError(str(message or "Failed to fetch news"))

        # Billed upstream even when the payload later fails validation.
        self.tracker.record_successful_request(NEWS_IDENTITY)
        try:
            news = NewsResponse.model_validate(payload)
        except ValidationError as e:
            raise NewsAPIError("Failed to fetch news. Please try again.") from e

        logger.info("Fetched %d articles", len(news.results))
        return news

    def _local_summary(self, text: str) -> ArticleSummary:
        summary = self.summarizer.summarize(text, self.settings.summarizer.max_sentences)
        return ArticleSummary(summary=summary, source="local")

    def summarize_article(self, text: str) -> ArticleSummary:
        text = clean_text(text or "")
        if not text:
            return self._local_summary(text)
        if not self.tracker.can_make_request(SUMMARY_IDENTITY):
            logger.warning("Summary quota exhausted, using local summary")
            return self._local_summary(text)

        cfg = self.settings.summary_api
        params = {"SM_LENGTH": str(cfg.summary_length)}
        if self.summary_api_key:
            params["SM_API_KEY"] = self.summary_api_key
        try:
            response = self.http.post(
                cfg.base_url,
                params=params,
                data={"sm_api_input": text[: cfg.max_input_chars]},
                headers={"Accept": "application/json"},
                timeout=cfg.timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.warning("Summary API error, using local summary: %s", e)
            return self._local_summary(text)

        if not response.is_success:
            logger.warning("Summary API returned %d, using local summary", response.status_code)
            return self._local_summary(text)
        try:
            payload = response.json()
        except ValueError:
            return self._local_summary(text)
        content = payload.get("sm_api_content") if isinstance(payload, dict) else None
        if not content:
            return self._local_summary(text)

        self.tracker.record_successful_request(SUMMARY_IDENTITY)
        return ArticleSummary(summary=str(content), source="remote")

    def get_api_usage_stats(self) -> dict[str, UsageStats]:
        return {name: self.tracker.get_usage_stats(name) for name in self.tracker.policies}
