from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .cache import FileStore, NewsCacheStore
from .config import ServiceConfig
from .fallback import fallback_news
from .fetcher import FeedFetcher
from .models import FeedSource, NewsItem
from .orchestrator import NewsAggregator, now_ms

logger = logging.getLogger(__name__)


@dataclass
class Diagnostics:
    last_full_fetch_at: Optional[int]
    last_refresh_at: Optional[int]
    item_count: int
    last_outcome: Optional[str] = None
    skipped_feeds: List[str] = field(default_factory=list)


class NewsService:
    """
    High-level API for UI code: cached, policy-driven access to aggregated crypto news.

    Never raises from ``get_news``/``force_refresh``; the worst case is the
    built-in fallback set.
    """

    def __init__(self, aggregator: Optional[NewsAggregator] = None) -> None:
        self.aggregator = aggregator or NewsAggregator()

    @classmethod
    def from_config(cls, config: Optional[ServiceConfig] = None) -> "NewsService":
        config = config or ServiceConfig.from_env()
        aggregator = NewsAggregator(
            fetcher=FeedFetcher(config),
            cache=NewsCacheStore(FileStore(config.cache_dir)),
            config=config,
        )
        return cls(aggregator)

    def get_news(self, limit: int = 0) -> List[NewsItem]:
        """Newest-first news, at most ``limit`` items (0 means unlimited)."""
        limit = max(limit, 0)
        try:
            return self.aggregator.query(limit)
        except Exception:
            logger.exception("Error getting crypto news")
            # In-memory only: reloading storage here could fail the same way again
            state = self.aggregator.loaded_state
            if state is not None and state.has_items:
                return list(state.items[:limit]) if limit > 0 else list(state.items)
            return fallback_news(now_ms())

    def force_refresh(self) -> List[NewsItem]:
        """Drop all cache and usage state, then fetch everything again."""
        logger.info("Force refreshing news")
        self.clear_cache()
        return self.get_news(0)

    def clear_cache(self) -> None:
        self.aggregator.reset()
        logger.info("Cache cleared")

    def get_diagnostics(self) -> Diagnostics:
        state = self.aggregator.peek_state()
        outcome = self.aggregator.last_outcome
        return Diagnostics(
            last_full_fetch_at=state.last_full_fetch_at if state else None,
            last_refresh_at=state.last_refresh_at if state else None,
            item_count=len(state.items) if state else 0,
            last_outcome=outcome.status.value if outcome else None,
            skipped_feeds=list(outcome.skipped_feeds) if outcome else [],
        )

    def feeds(self) -> List[FeedSource]:
        return list(self.aggregator.feeds)
