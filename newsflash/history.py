from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from newsflash.exceptions import StorageError
from newsflash.storage import KeyValueStore


logger = logging.getLogger("newsflash.history")

READ_ARTICLES_KEY = "newsflash_read_articles"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ReadArticle:
    article_id: str
    read_at: str


class ReadingHistory:
    """Which articles have been opened, newest last, capped at ``max_entries``."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Callable[[], str]] = None,
        *,
        max_entries: int = 1000,
    ) -> None:
        self.store = store
        self.clock = clock or _utc_now_iso
        self.max_entries = max_entries

    def get_read_articles(self) -> list[ReadArticle]:
        try:
            raw = self.store.get(READ_ARTICLES_KEY)
            data = json.loads(raw) if raw else []
        except (StorageError, OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read reading history: %s", e)
            return []
        if not isinstance(data, list):
            return []
        articles: list[ReadArticle] = []
        for item in data:
            if isinstance(item, dict) and isinstance(item.get("article_id"), str):
                articles.append(ReadArticle(article_id=item["article_id"], read_at=str(item.get("read_at", ""))))
        return articles

    def mark_article_as_read(self, article_id: str) -> bool:
        articles = self.get_read_articles()
        if any(a.article_id == article_id for a in articles):
            return True
        articles.append(ReadArticle(article_id=article_id, read_at=self.clock()))
        trimmed = articles[-self.max_entries :]
        try:
            self.store.set(READ_ARTICLES_KEY, json.dumps([asdict(a) for a in trimmed]))
        except (StorageError, OSError) as e:
            logger.warning("Failed to save reading history: %s", e)
            return False
        return True

    def is_article_read(self, article_id: str) -> bool:
        return any(a.article_id == article_id for a in self.get_read_articles())

    def clear_read_articles(self) -> bool:
        try:
            self.store.remove(READ_ARTICLES_KEY)
        except (StorageError, OSError) as e:
            logger.warning("Failed to clear reading history: %s", e)
            return False
        return True
