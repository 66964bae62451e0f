"""Registered crypto news feeds."""
from __future__ import annotations

from typing import List

from .models import FeedSource


DEFAULT_FEEDS: List[FeedSource] = [
    FeedSource("http://nxtechnp.com/cryptews/featured.xml", "Cryptews", "general"),
    FeedSource("https://en.bitcoinhaber.net/feed", "Bitcoin Haber", "general"),
    FeedSource("https://cryptonewsland.com/feed/", "CryptoNewsLand", "general"),
    FeedSource("https://coinpedia.org/feed/", "Coinpedia", "general"),
    FeedSource("https://www.newsbtc.com/feed/", "NewsBTC", "general"),
    FeedSource("https://finbold.com/category/cryptocurrency-news/feed/", "Finbold", "general"),
    FeedSource("https://www.coindesk.com/arc/outboundfeeds/rss/", "CoinDesk", "general"),
    FeedSource("https://cryptoslate.com/feed/", "CryptoSlate", "general"),
    FeedSource("https://www.cryptopolitan.com/feed/", "Cryptopolitan", "general"),
    FeedSource("https://coingape.com/feed/", "CoinGape", "general"),
    FeedSource("https://cointelegraph.com/rss", "Cointelegraph", "general"),
    FeedSource("https://cryptotale.org/feed/", "CryptoTale", "general"),
    FeedSource("https://decrypt.co/feed", "Decrypt", "general"),
    FeedSource("https://bitcoinmagazine.com/.rss/full/", "Bitcoin Magazine", "bitcoin"),
    FeedSource("https://thedefiant.io/feed/", "The Defiant", "defi"),
    FeedSource("https://cryptopotato.com/feed/", "CryptoPotato", "general"),
]
