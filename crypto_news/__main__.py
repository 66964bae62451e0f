"""Command-line reader: ``python -m crypto_news``."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .config import ServiceConfig
from .core import NewsService
from .logging_config import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crypto_news", description="Aggregated crypto news from RSS/Atom feeds.")
    parser.add_argument("--limit", type=int, default=10, help="number of items to print (0 = all)")
    parser.add_argument("--force", action="store_true", help="drop the cache and refetch every feed")
    parser.add_argument("--clear", action="store_true", help="clear the cache and exit")
    parser.add_argument("--diagnostics", action="store_true", help="print cache diagnostics and exit")
    parser.add_argument("--feeds", action="store_true", help="list registered feeds and exit")
    parser.add_argument("--env-file", default=None, help="path to a .env file")
    parser.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = ServiceConfig.from_env(args.env_file)
    setup_logging(config, level=args.log_level)
    service = NewsService.from_config(config)

    if args.feeds:
        for feed in service.feeds():
            print(f"{feed.display_name:<20} {feed.category or '-':<8} {feed.url}")
        return 0
    if args.clear:
        service.clear_cache()
        return 0
    if args.diagnostics:
        diag = service.get_diagnostics()
        print(f"last full fetch: {diag.last_full_fetch_at}")
        print(f"last refresh:    {diag.last_refresh_at}")
        print(f"items:           {diag.item_count}")
        return 0

    items = service.force_refresh() if args.force else service.get_news(args.limit)
    if args.force and args.limit > 0:
        items = items[: args.limit]
    for item in items:
        print(f"{item.published_at.strftime('%Y-%m-%d %H:%M')} | {item.source_name} | {item.title}")
        print(f"  <{item.url}>")
    return 0


if __name__ == "__main__":
    sys.exit(main())
