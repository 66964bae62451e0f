"""
Refresh policy: decides, per query, whether to serve the cache as-is, refresh
incrementally, or refetch everything.

Pure functions of the cached state, the previous usage timestamp and ``now``
(all epoch milliseconds), so every branch is testable without storage or timers.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import CachedNewsState


class RefreshDecision(Enum):
    SKIP = "skip"
    INCREMENTAL = "incremental"
    FULL = "full"


@dataclass(frozen=True)
class RefreshPolicy:
    full_cache_ttl_ms: int = 12 * 60 * 60 * 1000
    refresh_interval_ms: int = 5 * 60 * 1000
    reopen_gap_ms: int = 30 * 1000


DEFAULT_POLICY = RefreshPolicy()


def has_valid_cache(state: Optional[CachedNewsState]) -> bool:
    return state is not None and state.has_items


def should_full_fetch(state: Optional[CachedNewsState], now: int, policy: RefreshPolicy = DEFAULT_POLICY) -> bool:
    if state is None or not has_valid_cache(state):
        return True
    return now - state.last_full_fetch_at >= policy.full_cache_ttl_ms


def should_incremental_refresh(state: Optional[CachedNewsState], now: int, policy: RefreshPolicy = DEFAULT_POLICY) -> bool:
    if state is None or not has_valid_cache(state):
        return False
    return now - state.last_refresh_at >= policy.refresh_interval_ms


def app_reopened(previous_usage: Optional[int], now: int, policy: RefreshPolicy = DEFAULT_POLICY) -> bool:
    return previous_usage is not None and now - previous_usage > policy.reopen_gap_ms


def decide(
    state: Optional[CachedNewsState],
    previous_usage: Optional[int],
    now: int,
    policy: RefreshPolicy = DEFAULT_POLICY,
) -> RefreshDecision:
    """
    ``previous_usage`` must be the value recorded before the current query.
    A reopened app with a refresh due is upgraded to a full fetch.
    """
    refresh_due = should_incremental_refresh(state, now, policy)
    if should_full_fetch(state, now, policy):
        return RefreshDecision.FULL
    if refresh_due and app_reopened(previous_usage, now, policy):
        return RefreshDecision.FULL
    if refresh_due:
        return RefreshDecision.INCREMENTAL
    return RefreshDecision.SKIP
