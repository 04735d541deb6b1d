from __future__ import annotations

from typing import AbstractSet


STOP_WORDS: frozenset[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "will", "with", "this", "but", "they", "have", "had",
        "what", "said", "each", "which", "their", "time", "about", "if",
        "up", "out", "many", "then", "them", "these", "so", "some", "her",
        "would", "make", "like", "into", "him", "two", "more", "very",
        "after", "words", "long", "than", "first", "been", "call", "who",
        "oil", "sit", "now", "find", "down", "day", "did", "get", "come",
        "made", "may", "part",
    }
)

_EDGE_PUNCT = ".!?"


def tokenize(text: str, stop_words: AbstractSet[str] = STOP_WORDS) -> list[str]:
    """Lowercase whitespace tokens, minus short tokens and stop words."""
    tokens: list[str] = []
    for raw in text.lower().split():
        word = raw.strip(_EDGE_PUNCT)
        if len(word) > 2 and word not in stop_words:
            tokens.append(word)
    return tokens
