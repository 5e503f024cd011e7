"""
Fixed-window rate limiting keyed by purpose and client identity.

Entries live in process memory only. The store is split into shards, each
with its own lock, so concurrent checks for different clients rarely
contend; a single key is always served by the same shard.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..logging.config import get_guard_logger
from .headers import header_value

logger = get_guard_logger(__name__)

DEFAULT_PRUNE_THRESHOLD = 2048
DEFAULT_SHARDS = 16


@dataclass
class RateLimitEntry:
    """Request count within the current window for one key."""
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int

    def to_headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "Retry-After": str(self.retry_after_seconds),
        }


class _Shard:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: dict[str, RateLimitEntry] = {}


def client_identity(headers: Mapping[str, Any], remote_addr: Optional[str]) -> str:
    """First X-Forwarded-For hop, else X-Real-IP, else the peer address."""
    forwarded = header_value(headers, "X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = (header_value(headers, "X-Real-IP") or "").strip()
    if real_ip:
        return real_ip

    return remote_addr or "unknown"


def rate_limit_key(purpose: str, identity: str) -> str:
    return f"{purpose}:{identity}"


class RateLimiter:
    """Per-key fixed-window counter with lazy pruning of expired entries."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        prune_threshold: int = DEFAULT_PRUNE_THRESHOLD,
        clock: Callable[[], float] = time.time,
        shards: int = DEFAULT_SHARDS,
    ) -> None:
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got: {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got: {window_seconds}")
        if shards < 1:
            raise ValueError(f"shards must be >= 1, got: {shards}")

        self.logger = logger
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prune_threshold = prune_threshold
        self.clock = clock
        self._shards = tuple(_Shard() for _ in range(shards))

    def __len__(self) -> int:
        return sum(len(shard.entries) for shard in self._shards)

    def _shard_for(self, key: str) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def prune(self, now: Optional[float] = None) -> int:
        """Drop expired entries. Returns the number removed."""
        now = self.clock() if now is None else now
        removed = 0
        for shard in self._shards:
            with shard.lock:
                expired = [key for key, entry in shard.entries.items() if entry.reset_at <= now]
                for key in expired:
                    del shard.entries[key]
                removed += len(expired)
        if removed:
            self.logger.debug("Pruned expired rate limit entries", removed=removed)
        return removed

    def check(self, key: str) -> RateLimitDecision:
        """Count one request for key and decide whether it is allowed."""
        now = self.clock()
        if len(self) >= self.prune_threshold:
            self.prune(now)

        shard = self._shard_for(key)
        with shard.lock:
            entry = shard.entries.get(key)

            if entry is None or entry.reset_at <= now:
                shard.entries[key] = RateLimitEntry(count=1, reset_at=now + self.window_seconds)
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=max(self.max_requests - 1, 0),
                    retry_after_seconds=math.ceil(self.window_seconds),
                )

            retry_after = max(math.ceil(entry.reset_at - now), 1)

            if entry.count >= self.max_requests:
                decision = RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    retry_after_seconds=retry_after,
                )
            else:
                entry.count += 1
                decision = RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=max(self.max_requests - entry.count, 0),
                    retry_after_seconds=retry_after,
                )

        if not decision.allowed:
            self.logger.warning("Rate limit exceeded", key=key, retry_after_seconds=retry_after)
        return decision
