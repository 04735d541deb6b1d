from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from newsflash.config import Settings, load_settings
from newsflash.exceptions import UnknownIdentityError
from newsflash.quota import QuotaTracker, policies_from_settings
from newsflash.storage import build_store
from newsflash.summarization import TextSummarizer


logger = logging.getLogger("newsflash.cli")


def _build_tracker(settings: Settings) -> QuotaTracker:
    return QuotaTracker(
        policies_from_settings(settings.quota),
        build_store(settings.storage),
        storage_key=settings.quota.storage_key,
        stale_after_ms=int(settings.quota.stale_after_minutes * 60 * 1000),
    )


def _cmd_summarize(args: argparse.Namespace, settings: Settings) -> int:
    text = Path(args.file).read_text(encoding="utf-8") if args.file else sys.stdin.read()
    summarizer = TextSummarizer(
        words_per_minute=settings.summarizer.words_per_minute,
        min_sentence_chars=settings.summarizer.min_sentence_chars,
    )
    digest = summarizer.analyze(
        text,
        max_sentences=args.sentences or settings.summarizer.max_sentences,
        max_keywords=args.keywords or settings.summarizer.max_keywords,
    )
    print(digest.summary)
    print(f"Keywords: {', '.join(digest.keywords)}")
    print(f"Reading time: {digest.reading_time_minutes} min")
    return 0


def _cmd_usage(args: argparse.Namespace, settings: Settings) -> int:
    tracker = _build_tracker(settings)
    identities = [args.identity] if args.identity else list(tracker.policies)
    for identity in identities:
        stats = tracker.get_usage_stats(identity)
        reset_at = datetime.fromtimestamp(stats.reset_time / 1000, tz=timezone.utc)
        print(
            f"{identity}: {stats.used}/{stats.total} used ({stats.percentage:.2f}%), "
            f"{stats.remaining} remaining, resets {reset_at:%Y-%m-%d %H:%M:%S} UTC"
        )
    return 0


def _cmd_reset(args: argparse.Namespace, settings: Settings) -> int:
    tracker = _build_tracker(settings)
    persisted = tracker.reset_limits(args.identity)
    print(f"Reset {args.identity or 'all identities'}" + ("" if persisted else " (not persisted)"))
    return 0 if persisted else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="newsflash", description="Offline article summaries and API quota tracking")
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_sum = sub.add_parser("summarize", help="Summarize text from a file or stdin")
    p_sum.add_argument("--file", type=str, default=None)
    p_sum.add_argument("--sentences", type=int, default=None)
    p_sum.add_argument("--keywords", type=int, default=None)
    p_sum.set_defaults(func=_cmd_summarize)

    p_usage = sub.add_parser("usage", help="Show API quota usage")
    p_usage.add_argument("identity", nargs="?", default=None)
    p_usage.set_defaults(func=_cmd_usage)

    p_reset = sub.add_parser("reset", help="Reset API quota usage")
    p_reset.add_argument("identity", nargs="?", default=None)
    p_reset.set_defaults(func=_cmd_reset)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    try:
        return args.func(args, settings)
    except UnknownIdentityError as e:
        print(str(e), file=sys.stderr)
        return 2
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
