"""Offline extractive summarization.

Sentences are ranked by the mean normalized frequency of their terms; no
model, network or persistent state is involved.
"""
from .extractive import ArticleDigest, SentenceScore, TextSummarizer, word_frequencies

__all__ = ["ArticleDigest", "SentenceScore", "TextSummarizer", "word_frequencies"]
