from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NewsArticle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    article_id: str
    title: str
    link: str
    keywords: Optional[list[str]] = None
    creator: Optional[list[str]] = None
    description: Optional[str] = None
    content: Optional[str] = None
    pubDate: Optional[str] = None
    image_url: Optional[str] = None
    source_id: Optional[str] = None
    source_url: Optional[str] = None
    language: Optional[str] = None
    country: list[str] = Field(default_factory=list)
    category: list[str] = Field(default_factory=list)

    @field_validator("country", "category", mode="before")
    @classmethod
    def _null_list(cls, value):
        return [] if value is None else value


class NewsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    totalResults: int = 0
    results: list[NewsArticle] = Field(default_factory=list)
    nextPage: Optional[str] = None

    @field_validator("results", mode="before")
    @classmethod
    def _null_results(cls, value):
        return [] if value is None else value


class FilterOptions(BaseModel):
    category: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    q: Optional[str] = None
