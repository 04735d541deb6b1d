from __future__ import annotations

import re


_SENT_SPLIT_RE = re.compile(r"[.!?]+")


def split_sentences(text: str, min_chars: int = 20) -> list[str]:
    """Split on runs of sentence punctuation, dropping short fragments.

    Pieces shorter than ``min_chars`` are headers, bylines and the like.
    """
    if not text:
        return []
    parts = [p.strip() for p in _SENT_SPLIT_RE.split(text)]
    return [p for p in parts if len(p) >= min_chars]
