from __future__ import annotations

import calendar
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import feedparser

from .models import FeedSource, NewsItem
from .normalizer import DESCRIPTION_MAX_CHARS, PLACEHOLDER_IMAGE_URL, to_news_item

logger = logging.getLogger(__name__)

# Ordered candidate keys per field; the first present, non-empty value wins.
# feedparser already folds some aliases (guid -> id, description -> summary).
TITLE_KEYS = ("title",)
DESCRIPTION_KEYS = ("description", "summary", "content")
LINK_KEYS = ("link", "guid", "id")
GUID_KEYS = ("guid", "id")
DATE_KEYS = ("pubDate", "pubdate", "published", "date", "updated")

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=['"](https?://[^'"]+)['"]""", re.IGNORECASE)


@dataclass(frozen=True)
class RssChannel:
    entries: List[Dict[str, Any]]


@dataclass(frozen=True)
class AtomFeed:
    entries: List[Dict[str, Any]]


@dataclass(frozen=True)
class Unrecognized:
    reason: str


ParsedFeed = Union[RssChannel, AtomFeed, Unrecognized]


def sniff_feed(document: Union[str, bytes]) -> ParsedFeed:
    """
    Parse a raw document with feedparser and classify its shape.

    Strings are encoded before parsing so feedparser never mistakes them for a
    URL or filename.
    """
    if isinstance(document, str):
        document = document.encode("utf-8")
    feed = feedparser.parse(document)
    entries = list(feed.get("entries") or [])
    version = feed.get("version") or ""

    if feed.get("bozo") and not entries and not version:
        return Unrecognized(f"not a feed ({feed.get('bozo_exception')})")
    if version.startswith("rss"):
        return RssChannel(entries)
    if version.startswith("atom"):
        return AtomFeed(entries)
    return Unrecognized(f"unsupported feed version {version!r}" if version else "no rss channel or atom feed")


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, Mapping):
        for key in ("value", "href", "term"):
            inner = value.get(key)
            if isinstance(inner, str) and inner.strip():
                return inner.strip()
        return ""
    if isinstance(value, (list, tuple)) and value:
        return _as_text(value[0])
    return ""


def first_value(entry: Mapping[str, Any], keys: Sequence[str]) -> str:
    """Return the first non-empty value among ``keys``, or an empty string."""
    for key in keys:
        text = _as_text(entry.get(key))
        if text:
            return text
    return ""


def extract_image_url(entry: Mapping[str, Any]) -> str:
    """
    Image lookup order: image enclosure, media:content, media:thumbnail,
    first <img> in content:encoded, first <img> in the description.
    Returns an empty string when nothing matches.
    """
    for link in entry.get("links") or []:
        if link.get("rel") != "enclosure":
            continue
        if str(link.get("type") or "").startswith("image") and link.get("href"):
            return link["href"]

    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            url = media.get("url")
            if url:
                return url

    for block in entry.get("content") or []:
        match = _IMG_SRC_RE.search(block.get("value") or "")
        if match:
            return match.group(1)

    description = entry.get("summary") or ""
    match = _IMG_SRC_RE.search(description)
    if match:
        return match.group(1)
    return ""


def _categories(entry: Mapping[str, Any]) -> List[str]:
    out = []
    for tag in entry.get("tags") or []:
        term = tag.get("term") if isinstance(tag, Mapping) else None
        if isinstance(term, str) and term.strip():
            out.append(term.strip())
    return out


def parse_entry(entry: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Map a raw feedparser entry to a dict with common fields.
    Fields: title, description, link, guid, date (raw string), image_url, categories
    """
    return {
        "title": first_value(entry, TITLE_KEYS),
        "description": first_value(entry, DESCRIPTION_KEYS),
        "link": first_value(entry, LINK_KEYS),
        "guid": first_value(entry, GUID_KEYS),
        "date": first_value(entry, DATE_KEYS),
        "image_url": extract_image_url(entry),
        "categories": _categories(entry),
    }


def _published_before(entry: Mapping[str, Any], since: datetime) -> bool:
    # Uses feedparser's pre-parsed struct_time, so no string parsing is needed.
    for key in ("published_parsed", "updated_parsed"):
        val = entry.get(key)
        if isinstance(val, time.struct_time):
            try:
                ts = calendar.timegm(val)
                return datetime.fromtimestamp(ts, tz=timezone.utc) < since
            except (ValueError, OverflowError, OSError):
                # out-of-range dates are left to the full parse
                return False
    return False


def parse_entries(
    parsed: ParsedFeed,
    source: FeedSource,
    *,
    since: Optional[datetime] = None,
    description_max_chars: int = DESCRIPTION_MAX_CHARS,
    placeholder_image_url: str = PLACEHOLDER_IMAGE_URL,
) -> List[NewsItem]:
    if isinstance(parsed, Unrecognized):
        logger.warning(f"Unrecognized feed from {source.display_name}: {parsed.reason}")
        return []

    items: List[NewsItem] = []
    for index, entry in enumerate(parsed.entries):
        if since is not None and _published_before(entry, since):
            continue
        try:
            item = to_news_item(
                parse_entry(entry),
                source,
                description_max_chars=description_max_chars,
                placeholder_image_url=placeholder_image_url,
            )
        except Exception as e:
            # One bad entry never discards its siblings
            logger.warning(f"Skipping entry {index} from {source.display_name}: {e}")
            continue
        if since is not None and item.published_at < since:
            continue
        items.append(item)
    return items


def parse_feed(
    document: Union[str, bytes],
    source: FeedSource,
    *,
    since: Optional[datetime] = None,
    description_max_chars: int = DESCRIPTION_MAX_CHARS,
    placeholder_image_url: str = PLACEHOLDER_IMAGE_URL,
) -> List[NewsItem]:
    """Parse a raw RSS/Atom document into NewsItems. Never raises for bad input."""
    return parse_entries(
        sniff_feed(document),
        source,
        since=since,
        description_max_chars=description_max_chars,
        placeholder_image_url=placeholder_image_url,
    )
