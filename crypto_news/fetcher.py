from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import requests

from .config import ServiceConfig
from .exceptions import RSSFetchError
from .models import FeedSource, NewsItem
from .parser import Unrecognized, parse_entries, sniff_feed

logger = logging.getLogger(__name__)

ACCEPT = "application/rss+xml, application/xml, text/xml"
CHUNK_SIZE = 64 * 1024


@dataclass
class FeedResult:
    """What one feed contributed to a cycle. ``ok`` is False when the feed was unavailable."""
    source: FeedSource
    items: List[NewsItem] = field(default_factory=list)
    ok: bool = True
    error: Optional[str] = None


class FeedFetcher:
    """
    Fetches and parses one feed at a time.

    ``fetch`` is the failure boundary: network errors, HTTP errors, timeouts,
    too-short bodies and unrecognized documents all become an empty, not-ok
    FeedResult.
    """

    def __init__(self, config: Optional[ServiceConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or ServiceConfig()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": ACCEPT,
            "User-Agent": self.config.user_agent,
            "Cache-Control": "no-cache",
        })

    def fetch_document(self, source: FeedSource) -> bytes:
        """Raises RSSFetchError when the feed is unavailable or the body is implausibly short."""
        timeout = self.config.feed_timeout_sec
        deadline = time.monotonic() + timeout
        try:
            # requests only bounds each connect/read; the deadline bounds the whole body
            response = self._session.get(source.url, timeout=timeout, stream=True)
        except requests.RequestException as e:
            raise RSSFetchError(f"Failed to fetch feed: {source.url} ({e})") from e

        try:
            if response.status_code >= 400:
                raise RSSFetchError(f"HTTP {response.status_code} from {source.url}")
            chunks = []
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise RSSFetchError(f"Timed out after {timeout}s reading {source.url}")
                chunks.append(chunk)
        except requests.RequestException as e:
            raise RSSFetchError(f"Failed to read feed: {source.url} ({e})") from e
        finally:
            response.close()

        body = b"".join(chunks)
        if len(body) < self.config.min_xml_bytes:
            raise RSSFetchError(f"Response too short ({len(body)} bytes) from {source.url}")
        return body

    def fetch(self, source: FeedSource, since: Optional[datetime] = None) -> FeedResult:
        try:
            document = self.fetch_document(source)
        except RSSFetchError as e:
            logger.warning(f"{source.display_name} unavailable: {e}")
            return FeedResult(source, ok=False, error=str(e))

        parsed = sniff_feed(document)
        if isinstance(parsed, Unrecognized):
            logger.warning(f"{source.display_name} returned an unrecognized document: {parsed.reason}")
            return FeedResult(source, ok=False, error=parsed.reason)

        items = parse_entries(
            parsed,
            source,
            since=since,
            description_max_chars=self.config.description_max_chars,
            placeholder_image_url=self.config.placeholder_image_url,
        )
        logger.debug(f"Parsed {len(items)} items from {source.display_name}")
        return FeedResult(source, items)
