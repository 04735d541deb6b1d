"""NewsFlash core: offline extractive summaries and persisted API quotas.

This package provides:
- An extractive summarizer (summary, keywords, reading time)
- A rolling-window quota tracker over a pluggable key-value store
- News/summary API clients that respect those quotas
- A FastAPI application and an argparse CLI wiring the above together
"""
