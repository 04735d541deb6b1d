from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field


class QuotaPolicySettings(BaseModel):
    limit: int = Field(ge=1)
    window_hours: float = Field(default=24.0, gt=0.0)


def _default_identities() -> dict[str, QuotaPolicySettings]:
    # NewsData.io and SMMRY free tiers.
    return {
        "news": QuotaPolicySettings(limit=200, window_hours=24.0),
        "summary": QuotaPolicySettings(limit=100, window_hours=24.0),
    }


class QuotaSettings(BaseModel):
    storage_key: str = "news_app_rate_limits"
    stale_after_minutes: float = Field(default=60.0, gt=0.0)
    identities: dict[str, QuotaPolicySettings] = Field(default_factory=_default_identities)


class StorageSettings(BaseModel):
    backend: Literal["file", "memory", "null"] = "file"
    path: str = "newsflash_data/store.json"


class SummarizerSettings(BaseModel):
    max_sentences: int = Field(default=2, ge=1)
    max_keywords: int = Field(default=5, ge=1)
    words_per_minute: int = Field(default=200, ge=1)
    min_sentence_chars: int = Field(default=20, ge=0)


class NewsAPISettings(BaseModel):
    base_url: str = "https://newsdata.io/api/1/news"
    page_size: int = Field(default=10, ge=1, le=50)
    timeout_seconds: float = 10.0


class SummaryAPISettings(BaseModel):
    base_url: str = "https://api.smmry.com"
    summary_length: int = Field(default=2, ge=1)
    max_input_chars: int = Field(default=2000, ge=1)
    timeout_seconds: float = 10.0


class LoggingSettings(BaseModel):
    log_dir: str = "newsflash_data/logs"
    level: str = "INFO"


class Settings(BaseModel):
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    summarizer: SummarizerSettings = Field(default_factory=SummarizerSettings)
    news_api: NewsAPISettings = Field(default_factory=NewsAPISettings)
    summary_api: SummaryAPISettings = Field(default_factory=SummaryAPISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    if config_path is None:
        config_path = os.environ.get("NEWSFLASH_CONFIG")
    path = Path(config_path) if config_path else Path(__file__).resolve().parents[1] / "config.yaml"
    if not path.exists():
        return Settings()
    raw: Any
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return Settings.model_validate(raw)
