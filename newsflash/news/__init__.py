"""Clients for the metered news and summary APIs, gated by the quota tracker."""
from .client import ArticleSummary, NewsClient
from .models import FilterOptions, NewsArticle, NewsResponse

__all__ = ["ArticleSummary", "FilterOptions", "NewsArticle", "NewsClient", "NewsResponse"]
