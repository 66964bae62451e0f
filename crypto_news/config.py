"""Service configuration, read from the environment (and a ``.env`` file when present)."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from dotenv import load_dotenv

from .normalizer import DESCRIPTION_MAX_CHARS, PLACEHOLDER_IMAGE_URL
from .policy import RefreshPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T", int, float)

HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000
SECOND_MS = 1000

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; NewsApp/1.0)"


@dataclass
class ServiceConfig:
    full_cache_ttl_ms: int = 12 * HOUR_MS
    refresh_interval_ms: int = 5 * MINUTE_MS
    reopen_gap_ms: int = 30 * SECOND_MS
    feed_timeout_sec: float = 20.0
    batch_timeout_sec: float = 60.0
    max_workers: int = 16
    min_xml_bytes: int = 100
    description_max_chars: int = DESCRIPTION_MAX_CHARS
    user_agent: str = DEFAULT_USER_AGENT
    placeholder_image_url: str = PLACEHOLDER_IMAGE_URL
    cache_dir: Path = Path(".crypto_news_cache")
    log_level: str = "INFO"

    @property
    def policy(self) -> RefreshPolicy:
        return RefreshPolicy(
            full_cache_ttl_ms=self.full_cache_ttl_ms,
            refresh_interval_ms=self.refresh_interval_ms,
            reopen_gap_ms=self.reopen_gap_ms,
        )

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "ServiceConfig":
        load_dotenv(dotenv_path=env_file)
        defaults = cls()
        return cls(
            full_cache_ttl_ms=int(_env_number("CRYPTO_NEWS_CACHE_TTL_HOURS", 12.0, float) * HOUR_MS),
            refresh_interval_ms=int(_env_number("CRYPTO_NEWS_REFRESH_MINUTES", 5.0, float) * MINUTE_MS),
            reopen_gap_ms=int(_env_number("CRYPTO_NEWS_REOPEN_GAP_SECONDS", 30.0, float) * SECOND_MS),
            feed_timeout_sec=_env_number("CRYPTO_NEWS_FEED_TIMEOUT", defaults.feed_timeout_sec, float),
            batch_timeout_sec=_env_number("CRYPTO_NEWS_BATCH_TIMEOUT", defaults.batch_timeout_sec, float),
            max_workers=_env_number("CRYPTO_NEWS_MAX_WORKERS", defaults.max_workers, int),
            user_agent=os.getenv("CRYPTO_NEWS_USER_AGENT") or defaults.user_agent,
            placeholder_image_url=os.getenv("CRYPTO_NEWS_PLACEHOLDER_IMAGE") or defaults.placeholder_image_url,
            cache_dir=Path(os.getenv("CRYPTO_NEWS_CACHE_DIR") or defaults.cache_dir),
            log_level=os.getenv("LOG_LEVEL") or defaults.log_level,
        )


def _env_number(name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value
