from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional

import httpx
from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from newsflash.config import Settings, load_settings
from newsflash.exceptions import NewsAPIError, UnknownIdentityError
from newsflash.history import ReadingHistory
from newsflash.news import FilterOptions, NewsClient
from newsflash.quota import QuotaTracker, UsageStats, policies_from_settings
from newsflash.quota.tracker import Clock
from newsflash.storage import KeyValueStore, build_store
from newsflash.summarization import TextSummarizer
from newsflash.utils.logging import setup_logging


logger = logging.getLogger("newsflash.api")


class SummarizeRequest(BaseModel):
    text: str
    max_sentences: Optional[int] = Field(default=None, ge=1, le=20)
    max_keywords: Optional[int] = Field(default=None, ge=1, le=50)


class SummarizeResponse(BaseModel):
    summary: str
    keywords: list[str]
    reading_time_minutes: int


class ArticleSummaryRequest(BaseModel):
    text: str


class ArticleSummaryResponse(BaseModel):
    summary: str
    source: Literal["remote", "local"]


class UsageStatsResponse(BaseModel):
    used: int
    remaining: int
    total: int
    reset_time: int
    percentage: float
    stale: bool = False


class ResetResponse(BaseModel):
    identity: Optional[str]
    persisted: bool


class ReadArticleResponse(BaseModel):
    article_id: str
    read_at: str


def _stats_response(stats: UsageStats, stale: bool) -> UsageStatsResponse:
    return UsageStatsResponse(
        used=stats.used,
        remaining=stats.remaining,
        total=stats.total,
        reset_time=stats.reset_time,
        percentage=stats.percentage,
        stale=stale,
    )


api_router = APIRouter(prefix="/api")


@api_router.get("/")
def root() -> dict[str, str]:
    return {"message": "NewsFlash API"}


@api_router.post("/summarize", response_model=SummarizeResponse)
def summarize(req: SummarizeRequest, request: Request) -> SummarizeResponse:
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text content cannot be empty")
    settings: Settings = request.app.state.settings
    summarizer: TextSummarizer = request.app.state.summarizer
    digest = summarizer.analyze(
        req.text,
        max_sentences=req.max_sentences or settings.summarizer.max_sentences,
        max_keywords=req.max_keywords or settings.summarizer.max_keywords,
    )
    logger.info("summarize input_chars=%d summary_chars=%d", len(req.text), len(digest.summary))
    return SummarizeResponse(
        summary=digest.summary,
        keywords=digest.keywords,
        reading_time_minutes=digest.reading_time_minutes,
    )


@api_router.post("/summarize-article", response_model=ArticleSummaryResponse)
def summarize_article(req: ArticleSummaryRequest, request: Request) -> ArticleSummaryResponse:
    news_client: NewsClient = request.app.state.news_client
    result = news_client.summarize_article(req.text)
    return ArticleSummaryResponse(summary=result.summary, source=result.source)


@api_router.get("/news")
def get_news(
    request: Request,
    category: Optional[str] = None,
    country: Optional[str] = None,
    language: Optional[str] = None,
    q: Optional[str] = None,
) -> dict:
    news_client: NewsClient = request.app.state.news_client
    filters = FilterOptions(category=category, country=country, language=language, q=q)
    try:
        news = news_client.fetch_news(filters)
    except NewsAPIError as e:
        status = 429 if e.is_rate_limit else (e.status or 502)
        raise HTTPException(status_code=status, detail=str(e))
    return news.model_dump()


@api_router.get("/usage", response_model=dict[str, UsageStatsResponse])
def get_usage(request: Request) -> dict[str, UsageStatsResponse]:
    tracker: QuotaTracker = request.app.state.tracker
    return {
        name: _stats_response(tracker.get_usage_stats(name), tracker.is_data_stale(name))
        for name in tracker.policies
    }


@api_router.get("/usage/{identity}", response_model=UsageStatsResponse)
def get_identity_usage(identity: str, request: Request) -> UsageStatsResponse:
    tracker: QuotaTracker = request.app.state.tracker
    try:
        return _stats_response(tracker.get_usage_stats(identity), tracker.is_data_stale(identity))
    except UnknownIdentityError as e:
        raise HTTPException(status_code=404, detail=str(e))


@api_router.post("/usage/reset", response_model=ResetResponse)
def reset_usage(request: Request, identity: Optional[str] = Query(default=None)) -> ResetResponse:
    tracker: QuotaTracker = request.app.state.tracker
    try:
        persisted = tracker.reset_limits(identity)
    except UnknownIdentityError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ResetResponse(identity=identity, persisted=persisted)


@api_router.get("/articles/read", response_model=list[ReadArticleResponse])
def list_read_articles(request: Request) -> list[ReadArticleResponse]:
    history: ReadingHistory = request.app.state.history
    return [ReadArticleResponse(article_id=a.article_id, read_at=a.read_at) for a in history.get_read_articles()]


@api_router.post("/articles/{article_id}/read")
def mark_read(article_id: str, request: Request) -> dict:
    history: ReadingHistory = request.app.state.history
    return {"article_id": article_id, "persisted": history.mark_article_as_read(article_id)}


@api_router.delete("/articles/read")
def clear_read(request: Request) -> dict:
    history: ReadingHistory = request.app.state.history
    return {"persisted": history.clear_read_articles()}


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[KeyValueStore] = None,
    clock: Optional[Clock] = None,
    http_client: Optional[httpx.Client] = None,
    configure_logging: bool = False,
) -> FastAPI:
    """Composition root: one store, tracker, summarizer, history and news client per app."""
    load_dotenv(Path.cwd() / ".env")
    settings = settings or load_settings()
    if configure_logging:
        setup_logging(Path(settings.logging.log_dir), settings.logging.level)

    store = store if store is not None else build_store(settings.storage)
    tracker = QuotaTracker(
        policies_from_settings(settings.quota),
        store,
        clock,
        storage_key=settings.quota.storage_key,
        stale_after_ms=int(settings.quota.stale_after_minutes * 60 * 1000),
    )
    if not tracker.loaded_from_store:
        logger.warning("Starting with fresh rate limit state")
    summarizer = TextSummarizer(
        words_per_minute=settings.summarizer.words_per_minute,
        min_sentence_chars=settings.summarizer.min_sentence_chars,
    )

    app = FastAPI(title="NewsFlash")
    app.state.settings = settings
    app.state.store = store
    app.state.tracker = tracker
    app.state.summarizer = summarizer
    app.state.history = ReadingHistory(store)
    app.state.news_client = NewsClient(settings, tracker, summarizer, http_client)
    app.include_router(api_router)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        app.state.news_client.close()

    return app
