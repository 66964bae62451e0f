"""Built-in items served when no feed produced anything and nothing is cached."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from .models import NewsItem


def fallback_news(now_ms: int) -> List[NewsItem]:
    now = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    hour_ago = datetime.fromtimestamp((now_ms - 3_600_000) / 1000, tz=timezone.utc)
    return [
        NewsItem(
            id=1,
            title="Bitcoin Reaches New All-Time High as Institutional Adoption Grows",
            description=(
                "Bitcoin has surged to unprecedented levels amid increasing institutional "
                "investment and regulatory clarity in major markets."
            ),
            url="https://example.com/bitcoin-ath",
            image_url="https://picsum.photos/400/200?random=1",
            published_at=now,
            source_name="Crypto News",
        ),
        NewsItem(
            id=2,
            title="Ethereum 2.0 Staking Rewards Attract Major Validators",
            description=(
                "The Ethereum network sees massive growth in staking participation "
                "as validators earn attractive rewards."
            ),
            url="https://example.com/ethereum-staking",
            image_url="https://picsum.photos/400/200?random=2",
            published_at=hour_ago,
            source_name="DeFi Today",
        ),
    ]
