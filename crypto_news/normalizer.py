from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dateutil import parser as dtparser

from .exceptions import ParseError
from .models import FeedSource, NewsItem

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_CHARS = 300
PLACEHOLDER_IMAGE_URL = "https://foxbeep.com/logo.png"

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
)
_TZ_ABBR_RE = re.compile(r"\s+(GMT|UTC|EST|PST|CST|MST|EDT|PDT|CDT|MDT)\s*$", re.IGNORECASE)
_OFFSET_RE = re.compile(r"\s+\+\d{4}$")

# dateutil only knows UTC/GMT by name; US zone names are common in RSS pubDates
_TZINFOS = {
    "GMT": 0,
    "UTC": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}


def clean_html(text: str) -> str:
    """Strip tags, decode the common entities and collapse whitespace."""
    if not text:
        return ""
    clean = _TAG_RE.sub("", text)
    for entity, char in _ENTITIES:
        clean = clean.replace(entity, char)
    return _WS_RE.sub(" ", clean).strip()


def _try_parse_date(value: str) -> Optional[datetime]:
    try:
        dt = dtparser.parse(value, tzinfos=_TZINFOS)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        # conversion can leave the datetime range near year 1 or 9999
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def parse_date(value: Optional[str]) -> datetime:
    """
    Parse an upstream date string into an aware UTC datetime.

    Never raises: a second attempt is made without a trailing timezone
    abbreviation or ``+HHMM`` offset, and anything still unparseable becomes
    the current time.
    """
    now = datetime.now(timezone.utc)
    if not value or not value.strip():
        return now
    dt = _try_parse_date(value.strip())
    if dt is None:
        stripped = _OFFSET_RE.sub("", _TZ_ABBR_RE.sub("", value)).strip()
        if stripped:
            dt = _try_parse_date(stripped)
    if dt is None:
        logger.debug(f"Invalid date format: {value!r}")
        return now
    return dt


def stable_id(key: str) -> int:
    """
    32-bit rolling hash (``h = h * 31 + ord(c)``), returned as an absolute value.

    Deterministic across processes, unlike the builtin ``hash``.
    """
    h = 0
    for ch in key:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def to_news_item(
    entry: Dict[str, Any],
    source: FeedSource,
    *,
    description_max_chars: int = DESCRIPTION_MAX_CHARS,
    placeholder_image_url: str = PLACEHOLDER_IMAGE_URL,
) -> NewsItem:
    """
    Convert a parsed entry dict (see ``parser.parse_entry``) into a NewsItem.

    Raises ParseError when the entry has no guid, link or title to derive a
    stable id from.
    """
    raw_title = entry.get("title") or ""
    link = (entry.get("link") or "").strip()
    guid = (entry.get("guid") or "").strip()

    key = guid or link or raw_title.strip()
    if not key:
        raise ParseError("Entry has no guid, link or title")

    title = clean_html(raw_title) or "Untitled"
    description = clean_html(entry.get("description") or "")[:description_max_chars]

    return NewsItem(
        id=stable_id(key),
        title=title,
        description=description,
        url=link,
        image_url=entry.get("image_url") or placeholder_image_url,
        published_at=parse_date(entry.get("date")),
        source_name=source.display_name,
        categories=tuple(entry.get("categories") or ()),
        feed_category=source.category,
    )
