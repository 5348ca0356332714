"""Rate limiting for auth endpoints.

Fixed-window counter per client key, held in process memory. A window starts
at a key's first request and is not extended by later requests, so a client
can burst up to twice the limit across a window boundary.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from auth.config import AuthConfig
from auth.exceptions import RateLimitedError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


def client_key(forwarded_for: str | None, client_host: str | None) -> str:
    """Derive the rate limit key for a request.

    Uses the first X-Forwarded-For entry, then the direct peer address.
    X-Forwarded-For is client controlled; only trust it behind a proxy that
    overwrites the header.
    """
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if client_host:
        return client_host
    return UNKNOWN_CLIENT


class RateLimiter:
    """Per-client fixed-window request limiter.

    One instance per process, shared by every request. Safe to call from
    worker threads.
    """

    def __init__(
        self,
        window_ms: int = 60_000,
        max_requests: int = 20,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_ms < 1:
            raise ValueError("window_ms must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be positive")
        self._window_seconds = window_ms / 1000
        self._max_requests = max_requests
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._next_sweep_at = clock() + self._window_seconds

    @classmethod
    def from_config(cls, config: AuthConfig) -> "RateLimiter":
        return cls(
            window_ms=config.rate_limit_window_ms,
            max_requests=config.rate_limit_max_requests,
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def check_rate_limit(self, key: str) -> int:
        """Count a request for `key` and return the remaining allowance.

        Raises:
            RateLimitedError: If the key is over its limit for the current window.
        """
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep_at:
                self._sweep(now)

            entry = self._entries.get(key)
            if entry is None or now >= entry.reset_at:
                self._entries[key] = RateLimitEntry(count=1, reset_at=now + self._window_seconds)
                return self._max_requests - 1

            entry.count += 1
            if entry.count > self._max_requests:
                retry_after = max(math.ceil(entry.reset_at - now), 1)
                raise RateLimitedError(retry_after_seconds=retry_after)

            return self._max_requests - entry.count

    def sweep_expired(self) -> int:
        """Drop entries whose window has elapsed. Returns count removed."""
        with self._lock:
            return self._sweep(self._clock())

    def _sweep(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep_at = now + self._window_seconds
        if expired:
            logger.debug(f"Swept {len(expired)} expired rate limit entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
