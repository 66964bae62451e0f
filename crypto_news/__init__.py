"""
crypto_news

Aggregates crypto news from a fixed set of RSS/Atom feeds behind a cached,
policy-driven query interface.

Core ideas:
- Input: registered feed sources (see ``crypto_news.feeds``)
- Process: fetch (in parallel) → parse → normalize → deduplicate → sort (newest first) → cache
- Output: List[NewsItem]

Cache policy: a full refetch every 12 hours (or when the app looks reopened
and a refresh is due), an incremental refresh every 5 minutes, otherwise
answers come straight from the cache.

Example
-------
from crypto_news import NewsService

service = NewsService.from_config()

for item in service.get_news(10):
    print(item.published_at, item.source_name, item.title)
"""
from .models import CachedNewsState, FeedSource, NewsItem
from .config import ServiceConfig
from .core import Diagnostics, NewsService
from .orchestrator import NewsAggregator

__all__ = [
    "CachedNewsState",
    "Diagnostics",
    "FeedSource",
    "NewsAggregator",
    "NewsItem",
    "NewsService",
    "ServiceConfig",
]
