from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import AbstractSet, Optional

from newsflash.preprocessing.cleaning import clean_for_summary
from newsflash.preprocessing.segmentation import split_sentences
from newsflash.preprocessing.tokenization import STOP_WORDS, tokenize


logger = logging.getLogger("newsflash.summarization")

EMPTY_TEXT_SUMMARY = "No content available for summarization."


@dataclass(frozen=True)
class SentenceScore:
    sentence: str
    score: float
    position: int


@dataclass(frozen=True)
class ArticleDigest:
    summary: str
    keywords: list[str]
    reading_time_minutes: int


def word_frequencies(tokens: list[str]) -> dict[str, float]:
    """Token counts scaled so the most frequent token scores 1.0."""
    counts = Counter(tokens)
    if not counts:
        return {}
    max_count = max(counts.values())
    return {word: count / max_count for word, count in counts.items()}


class TextSummarizer:
    """Stateless extractive summarizer; every call is independent."""

    def __init__(
        self,
        *,
        words_per_minute: int = 200,
        min_sentence_chars: int = 20,
        stop_words: AbstractSet[str] = STOP_WORDS,
    ) -> None:
        self.words_per_minute = max(1, words_per_minute)
        self.min_sentence_chars = min_sentence_chars
        self.stop_words = stop_words

    def _score_sentence(self, sentence: str, freq: dict[str, float]) -> float:
        words = tokenize(sentence, self.stop_words)
        if not words:
            return 0.0
        return sum(freq.get(w, 0.0) for w in words) / len(words)

    def _rank(self, cleaned: str, sentences: list[str]) -> list[SentenceScore]:
        freq = word_frequencies(tokenize(cleaned, self.stop_words))
        return [
            SentenceScore(sentence=s, score=self._score_sentence(s, freq), position=i)
            for i, s in enumerate(sentences)
        ]

    def score_sentences(self, text: str) -> list[SentenceScore]:
        cleaned = clean_for_summary(text)
        return self._rank(cleaned, split_sentences(cleaned, min_chars=self.min_sentence_chars))

    def summarize(self, text: Optional[str], max_sentences: int = 2) -> str:
        if not text or not text.strip():
            return EMPTY_TEXT_SUMMARY
        max_sentences = max(1, max_sentences)

        cleaned = clean_for_summary(text)
        sentences = split_sentences(cleaned, min_chars=self.min_sentence_chars)
        if len(sentences) <= max_sentences:
            return ". ".join(sentences) + "."

        scores = self._rank(cleaned, sentences)
        # sorted() is stable, so equal scores keep source order.
        top = sorted(scores, key=lambda s: s.score, reverse=True)[:max_sentences]
        top.sort(key=lambda s: s.position)
        logger.debug("Selected sentences %s of %d", [s.position for s in top], len(scores))
        return ". ".join(s.sentence for s in top) + "."

    def extract_keywords(self, text: Optional[str], max_keywords: int = 5) -> list[str]:
        if not text:
            return []
        freq = word_frequencies(tokenize(clean_for_summary(text), self.stop_words))
        ranked = sorted(freq.items(), key=lambda item: item[1], reverse=True)
        return [word for word, _ in ranked[: max(0, max_keywords)]]

    def get_reading_time(self, text: Optional[str]) -> int:
        word_count = len(text.split()) if text else 0
        return math.ceil(word_count / self.words_per_minute)

    def analyze(self, text: Optional[str], *, max_sentences: int = 2, max_keywords: int = 5) -> ArticleDigest:
        return ArticleDigest(
            summary=self.summarize(text, max_sentences),
            keywords=self.extract_keywords(text, max_keywords),
            reading_time_minutes=self.get_reading_time(text),
        )
