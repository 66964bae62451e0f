from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Dict, List, Optional, Union

from crypto_news.config import ServiceConfig
from crypto_news.exceptions import RSSFetchError
from crypto_news.fetcher import FeedFetcher
from crypto_news.models import FeedSource


def make_feeds(count: int = 16) -> List[FeedSource]:
    return [
        FeedSource(f"https://feed{i}.example.com/rss", f"Feed {i}", "general")
        for i in range(count)
    ]


def ms_to_dt(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def rfc822(ms: int) -> str:
    return format_datetime(ms_to_dt(ms))


def rss_item(title: str, link: str, pub_date: str, guid: Optional[str] = None,
             description: str = "Some description", extra: str = "") -> str:
    guid_xml = f"<guid isPermaLink=\"false\">{guid}</guid>" if guid else ""
    return (
        "<item>"
        f"<title>{title}</title>"
        f"<link>{link}</link>"
        f"{guid_xml}"
        f"<pubDate>{pub_date}</pubDate>"
        f"<description><![CDATA[{description}]]></description>"
        f"{extra}"
        "</item>"
    )


def rss_document(*items: str, title: str = "Test Feed") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/" '
        'xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        f"<channel><title>{title}</title><link>https://example.com/</link>"
        "<description>Test channel</description>"
        f"{''.join(items)}"
        "</channel></rss>"
    )


def atom_document(*entries: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        "<title>Atom Test</title><id>urn:test:feed</id>"
        "<updated>2025-01-06T10:00:00Z</updated>"
        f"{''.join(entries)}"
        "</feed>"
    )


def atom_entry(title: str, link: str, entry_id: str, updated: str, summary: str = "Atom summary") -> str:
    return (
        "<entry>"
        f"<title>{title}</title>"
        f'<link href="{link}"/>'
        f"<id>{entry_id}</id>"
        f"<updated>{updated}</updated>"
        f"<summary>{summary}</summary>"
        "</entry>"
    )


class FakeClock:
    def __init__(self, start_ms: Optional[int] = None) -> None:
        self.now = int(time.time() * 1000) if start_ms is None else start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class StubFetcher(FeedFetcher):
    """
    Serves canned documents by URL. A missing URL behaves like a timed-out feed;
    an Exception value is raised as-is.
    """

    def __init__(self, documents: Optional[Dict[str, Union[str, bytes, Exception]]] = None,
                 config: Optional[ServiceConfig] = None) -> None:
        super().__init__(config)
        self.documents = dict(documents or {})
        self.calls: List[str] = []
        self._calls_lock = threading.Lock()

    def fetch_document(self, source: FeedSource) -> bytes:
        with self._calls_lock:
            self.calls.append(source.url)
        doc = self.documents.get(source.url)
        if doc is None:
            raise RSSFetchError(f"Timed out: {source.url}")
        if isinstance(doc, Exception):
            raise doc
        return doc.encode("utf-8") if isinstance(doc, str) else doc
