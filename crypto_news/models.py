from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class FeedSource:
    """A registered RSS/Atom feed."""
    url: str
    display_name: str
    category: Optional[str] = None


@dataclass(frozen=True)
class NewsItem:
    """
    Stable public model representing a normalized news item.

    WARNING: Do not change fields lightly. ``to_dict``/``from_dict`` define the
    persisted cache format.
    """
    id: int
    title: str
    description: str
    url: str
    image_url: str
    published_at: datetime
    source_name: str
    categories: Tuple[str, ...] = ()
    feed_category: Optional[str] = None

    @property
    def published_iso(self) -> str:
        return self.published_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "imageUrl": self.image_url,
            "publishedAt": self.published_iso,
            "sourceName": self.source_name,
        }
        if self.categories:
            data["categories"] = list(self.categories)
        if self.feed_category:
            data["feedCategory"] = self.feed_category
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewsItem":
        """Raises KeyError/TypeError/ValueError on malformed input."""
        published = datetime.fromisoformat(str(data["publishedAt"]).replace("Z", "+00:00"))
        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)
        item_id = data["id"]
        if not isinstance(item_id, int) or isinstance(item_id, bool):
            raise TypeError(f"id must be an integer, got {item_id!r}")
        return cls(
            id=item_id,
            title=str(data["title"]),
            description=str(data.get("description") or ""),
            url=str(data.get("url") or ""),
            image_url=str(data.get("imageUrl") or ""),
            published_at=published,
            source_name=str(data.get("sourceName") or ""),
            categories=tuple(str(c) for c in data.get("categories") or ()),
            feed_category=data.get("feedCategory"),
        )


@dataclass
class CachedNewsState:
    """
    The aggregated item set plus the two cycle timestamps (epoch milliseconds).

    ``last_full_fetch_at <= last_refresh_at`` holds for every state written by
    the aggregator.
    """
    items: List[NewsItem] = field(default_factory=list)
    last_full_fetch_at: int = 0
    last_refresh_at: int = 0

    @property
    def has_items(self) -> bool:
        return bool(self.items)
