from __future__ import annotations

from typing import Iterable, List, Set, Tuple

from .models import NewsItem


def deduplicate(items: Iterable[NewsItem]) -> List[NewsItem]:
    """
    Remove duplicates keyed on (lowercased title, url).
    Keeps the first occurrence and preserves original order.
    """
    seen: Set[Tuple[str, str]] = set()
    out: List[NewsItem] = []
    for it in items:
        key = (it.title.lower(), it.url)
        if key in seen:
            continue
        seen.add(key)
        out.append(it)
    return out


def unique_ids(items: Iterable[NewsItem]) -> List[NewsItem]:
    """
    Drop later items whose id was already seen.

    Catches a story re-published under the same guid with an edited title,
    which the (title, url) key lets through.
    """
    seen: Set[int] = set()
    out: List[NewsItem] = []
    for it in items:
        if it.id in seen:
            continue
        seen.add(it.id)
        out.append(it)
    return out


def merge(existing: Iterable[NewsItem], incoming: Iterable[NewsItem]) -> List[NewsItem]:
    """Existing items first, so a re-seen story keeps its cached copy."""
    return unique_ids(deduplicate([*existing, *incoming]))
