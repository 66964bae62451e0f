"""Persistence of the aggregated news state on top of an opaque key-value store."""
from __future__ import annotations

import json
import math
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .exceptions import CacheCorruptError
from .models import CachedNewsState, NewsItem

logger = logging.getLogger(__name__)

CACHE_KEY = "crypto_news_cache"
USAGE_KEY = "last_service_usage"


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]:  # pragma: no cover - interface
        ...

    def set_item(self, key: str, value: str) -> None:  # pragma: no cover - interface
        ...

    def remove_item(self, key: str) -> None:  # pragma: no cover - interface
        ...


class MemoryStore:
    """Dict-backed store, used by tests and by hosts that persist elsewhere."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore:
    """One file per key inside ``directory``; each write is a single atomic replace."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def _is_number(value: object) -> bool:
    # json.loads accepts NaN and Infinity
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def encode_state(state: CachedNewsState) -> str:
    return json.dumps({
        "news": [item.to_dict() for item in state.items],
        "lastFetch": state.last_full_fetch_at,
        "lastRefresh": state.last_refresh_at,
    })


def decode_state(raw: str) -> CachedNewsState:
    """Raises CacheCorruptError when ``raw`` is not a well-formed cache payload."""
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise CacheCorruptError(f"Cache is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CacheCorruptError("Cache payload is not an object")
    news = data.get("news")
    last_fetch = data.get("lastFetch")
    last_refresh = data.get("lastRefresh")
    if not isinstance(news, list) or not _is_number(last_fetch) or not _is_number(last_refresh):
        raise CacheCorruptError("Cache payload has the wrong shape")

    try:
        items = [NewsItem.from_dict(entry) for entry in news]
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
        raise CacheCorruptError(f"Cached item is malformed: {e}") from e

    return CachedNewsState(
        items=items,
        last_full_fetch_at=int(last_fetch),
        last_refresh_at=int(last_refresh),
    )


class NewsCacheStore:
    """Schema and validation for the two persisted keys."""

    def __init__(self, store: Optional[KeyValueStore] = None) -> None:
        self.store: KeyValueStore = store if store is not None else MemoryStore()

    def load(self, *, discard_corrupt: bool = True) -> Optional[CachedNewsState]:
        """Return the persisted state, or None when absent or corrupt."""
        try:
            raw = self.store.get_item(CACHE_KEY)
        except OSError as e:
            logger.warning(f"Failed to read news cache: {e}")
            return None
        if raw is None:
            return None
        try:
            return decode_state(raw)
        except CacheCorruptError as e:
            logger.warning(f"Corrupt news cache: {e}")
            if discard_corrupt:
                self._remove(CACHE_KEY)
            return None

    def save(self, state: CachedNewsState) -> None:
        try:
            self.store.set_item(CACHE_KEY, encode_state(state))
        except OSError as e:
            logger.warning(f"Failed to save news cache: {e}")

    def load_last_usage(self) -> Optional[int]:
        try:
            raw = self.store.get_item(USAGE_KEY)
        except OSError as e:
            logger.warning(f"Failed to read last service usage: {e}")
            return None
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed last service usage: {raw!r}")
            return None

    def save_last_usage(self, now_ms: int) -> None:
        try:
            self.store.set_item(USAGE_KEY, str(int(now_ms)))
        except OSError as e:
            logger.warning(f"Failed to save last service usage: {e}")

    def clear(self) -> None:
        self._remove(CACHE_KEY)
        self._remove(USAGE_KEY)

    def _remove(self, key: str) -> None:
        try:
            self.store.remove_item(key)
        except OSError as e:
            logger.warning(f"Failed to remove {key}: {e}")
