"""
Fetch-cycle orchestration: holds the cached state, the last-usage timestamp and
the in-flight guard, and runs full or incremental cycles across all feeds.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .cache import NewsCacheStore
from .config import ServiceConfig
from .dedup import deduplicate, merge, unique_ids
from .fallback import fallback_news
from .feeds import DEFAULT_FEEDS
from .fetcher import FeedFetcher
from .models import CachedNewsState, FeedSource, NewsItem
from .policy import RefreshDecision, decide

logger = logging.getLogger(__name__)


class CycleStatus(Enum):
    OK = "ok"
    PARTIAL = "partial"
    TOTAL_FAILURE = "total_failure"


@dataclass
class CycleOutcome:
    status: CycleStatus
    items: List[NewsItem] = field(default_factory=list)
    skipped_feeds: List[str] = field(default_factory=list)


def now_ms() -> int:
    return int(time.time() * 1000)


def _ms_to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def sort_newest_first(items: Iterable[NewsItem]) -> List[NewsItem]:
    return sorted(items, key=lambda x: x.published_at, reverse=True)


class NewsAggregator:
    """
    Owns ``CachedNewsState`` and runs at most one fetch cycle at a time.

    A cycle started while another is in flight is a no-op; callers get whatever
    the cache currently holds.
    """

    def __init__(
        self,
        *,
        feeds: Optional[Iterable[FeedSource]] = None,
        fetcher: Optional[FeedFetcher] = None,
        cache: Optional[NewsCacheStore] = None,
        config: Optional[ServiceConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config = config or ServiceConfig()
        self.feeds: List[FeedSource] = list(DEFAULT_FEEDS if feeds is None else feeds)
        self.fetcher = fetcher or FeedFetcher(self.config)
        self.cache = cache or NewsCacheStore()
        self.clock = clock or now_ms
        self.last_outcome: Optional[CycleOutcome] = None
        self._lock = threading.Lock()
        self._state: Optional[CachedNewsState] = None
        self._loaded = False

    @property
    def state(self) -> Optional[CachedNewsState]:
        self._ensure_loaded()
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def loaded_state(self) -> Optional[CachedNewsState]:
        """What is already in memory; never touches storage."""
        return self._state

    def peek_state(self) -> Optional[CachedNewsState]:
        """Current state without loading side effects (corrupt entries are left in place)."""
        if self._loaded:
            return self._state
        return self.cache.load(discard_corrupt=False)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._state = self.cache.load()
            self._loaded = True
            if self._state is not None:
                logger.info(f"Loaded cached news: {len(self._state.items)} items")

    def query(self, limit: int = 0) -> List[NewsItem]:
        now = self.clock()
        self._ensure_loaded()

        previous_usage = self.cache.load_last_usage()
        self.cache.save_last_usage(now)

        decision = decide(self._state, previous_usage, now, self.config.policy)
        logger.info(
            f"Cache status: decision={decision.value} "
            f"items={len(self._state.items) if self._state else 0} previous_usage={previous_usage}"
        )
        if decision is not RefreshDecision.SKIP:
            self.run_cycle(decision, now)

        items = self._state.items if self._state is not None else []
        if not items:
            # Only reachable when another cycle holds the guard and nothing is cached yet
            items = fallback_news(now)
        return list(items[:limit]) if limit > 0 else list(items)

    def run_cycle(self, decision: RefreshDecision, now: Optional[int] = None) -> Optional[CycleOutcome]:
        """Run one full or incremental cycle. Returns None when a cycle is already running."""
        if decision is RefreshDecision.SKIP:
            return None
        if not self._lock.acquire(blocking=False):
            logger.info("Fetch cycle already running, skipping")
            return None
        try:
            now = self.clock() if now is None else now
            self._ensure_loaded()
            full = decision is RefreshDecision.FULL
            since = None if full else _ms_to_datetime(now - self.config.refresh_interval_ms)
            logger.info(f"Starting {decision.value} fetch from {len(self.feeds)} feeds")

            outcome = self._fan_out(since)
            self.last_outcome = outcome
            self._apply(outcome, full, now)

            logger.info(
                f"Finished {decision.value} fetch: status={outcome.status.value} "
                f"new={len(outcome.items)} skipped={len(outcome.skipped_feeds)} "
                f"cached={len(self._state.items) if self._state else 0}"
            )
            return outcome
        finally:
            self._lock.release()

    def _fan_out(self, since: Optional[datetime]) -> CycleOutcome:
        if not self.feeds:
            return CycleOutcome(CycleStatus.TOTAL_FAILURE)

        # Not a context manager: leaving the block must not wait on stragglers
        executor = ThreadPoolExecutor(max_workers=max(1, min(self.config.max_workers, len(self.feeds))))
        try:
            futures = {executor.submit(self.fetcher.fetch, feed, since): feed for feed in self.feeds}
            done, pending = wait(futures, timeout=self.config.batch_timeout_sec)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if pending:
            logger.error(
                f"Fetch cycle timed out after {self.config.batch_timeout_sec}s "
                f"with {len(pending)} feeds pending"
            )
            return CycleOutcome(CycleStatus.TOTAL_FAILURE, skipped_feeds=[f.display_name for f in self.feeds])

        items: List[NewsItem] = []
        skipped: List[str] = []
        for future, feed in futures.items():
            try:
                result = future.result()
            except Exception as e:
                logger.warning(f"Failed to fetch from {feed.display_name}: {e}")
                skipped.append(feed.display_name)
                continue
            if not result.ok:
                skipped.append(feed.display_name)
                continue
            logger.debug(f"Fetched {len(result.items)} items from {feed.display_name}")
            items.extend(result.items)

        if len(skipped) == len(self.feeds):
            status = CycleStatus.TOTAL_FAILURE
        elif skipped:
            status = CycleStatus.PARTIAL
        else:
            status = CycleStatus.OK
        return CycleOutcome(status, unique_ids(deduplicate(items)), skipped)

    def _apply(self, outcome: CycleOutcome, full: bool, now: int) -> None:
        previous = self._state

        if outcome.status is CycleStatus.TOTAL_FAILURE:
            if previous is not None and previous.has_items:
                logger.warning("All feeds failed, keeping existing cache")
                return
            logger.warning("All feeds failed and nothing is cached, using fallback news")
            self._store(CachedNewsState(fallback_news(now), now, now))
            return

        if full:
            items = outcome.items
            if not items:
                logger.warning("No news fetched from feeds, using fallback news")
                items = fallback_news(now)
            self._store(CachedNewsState(sort_newest_first(items), now, now))
            return

        existing = previous.items if previous is not None else []
        last_full = previous.last_full_fetch_at if previous is not None else now
        self._store(CachedNewsState(
            sort_newest_first(merge(existing, outcome.items)),
            min(last_full, now),
            now,
        ))

    def _store(self, state: CachedNewsState) -> None:
        self._state = state
        self.cache.save(state)
        logger.debug(f"Cached {len(state.items)} items")

    def reset(self) -> None:
        """Drop the cached state and the usage timestamp, in memory and on disk."""
        self.cache.clear()
        self._state = None
        self._loaded = True
        self.last_outcome = None
