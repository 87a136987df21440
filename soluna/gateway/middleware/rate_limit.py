"""Token-bucket rate limiter for gateway requests.

Buckets live in process memory, so when the gateway runs as several
instances each one keeps its own store and limiting is soft rather than
globally exact.
"""

from __future__ import annotations

import asyncio
import math
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping

from aiohttp import web
from loguru import logger

from soluna.config.schema import RateLimitConfig


def _now_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class TokenBucket:
    """Per-client state. ``last_refill`` is in milliseconds."""

    tokens: float
    last_refill: float


class BucketStore:
    """Client identifier to bucket mapping guarded by a single lock."""

    def __init__(self) -> None:
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    @contextmanager
    def locked(self) -> Iterator[BucketStore]:
        """Hold the store lock for one atomic read-modify-write."""
        with self._lock:
            yield self

    # Callers must hold ``locked()`` for get/put/delete.

    def get(self, identifier: str) -> TokenBucket | None:
        return self._buckets.get(identifier)

    def put(self, identifier: str, bucket: TokenBucket) -> None:
        self._buckets[identifier] = bucket

    def delete(self, identifier: str) -> bool:
        return self._buckets.pop(identifier, None) is not None

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._buckets)

    def evict_stale(self, now: float, stale_after_ms: float) -> list[str]:
        """Remove buckets idle for longer than ``stale_after_ms``.

        Keys are snapshotted first and each one is re-checked under the lock,
        so admission checks interleave with the sweep.
        """
        evicted: list[str] = []
        for key in self.keys():
            with self._lock:
                bucket = self._buckets.get(key)
                if bucket is not None and now - bucket.last_refill > stale_after_ms:
                    del self._buckets[key]
                    evicted.append(key)
        return evicted

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._buckets


class RateLimiter:
    """Admission decisions over a :class:`BucketStore`.

    Every public method is safe to call from several threads or from many
    in-flight requests on one event loop.
    """

    def __init__(self, config: RateLimitConfig, clock: Callable[[], float] | None = None):
        self.config = config
        self._clock = clock or _now_ms
        self._store = BucketStore()
        self._cleanup_task: asyncio.Task | None = None

    def is_allowed(self, identifier: str) -> bool:
        """Consume one token for ``identifier``; False when rate limited."""
        cfg = self.config
        with self._store.locked() as store:
            now = self._clock()
            bucket = store.get(identifier)
            if bucket is None:
                # The creating request is charged immediately.
                store.put(identifier, TokenBucket(tokens=float(cfg.bucket_size - 1), last_refill=now))
                return True

            self._refill(bucket, now)
            if bucket.tokens >= 1:
                bucket.tokens -= 1
                return True

        logger.debug(f"Rate limit: {identifier!r} exhausted its bucket")
        return False

    def _refill(self, bucket: TokenBucket, now: float) -> None:
        cfg = self.config
        elapsed = max(0.0, now - bucket.last_refill)
        intervals = math.floor(elapsed / cfg.interval_ms)
        bucket.tokens = min(float(cfg.bucket_size), bucket.tokens + intervals * cfg.tokens_per_interval)

        if cfg.carry_partial_interval and bucket.tokens < cfg.bucket_size:
            bucket.last_refill += intervals * cfg.interval_ms
        else:
            # Sub-interval progress is dropped on every check.
            bucket.last_refill = max(bucket.last_refill, now)

    def get_remaining_tokens(self, identifier: str) -> int:
        """Whole tokens left as of the last ``is_allowed`` call.

        No refill is applied here, so the value can under-report capacity
        when time has passed since the last check.
        """
        with self._store.locked() as store:
            bucket = store.get(identifier)
            if bucket is None:
                return self.config.bucket_size
            return math.floor(bucket.tokens)

    def get_reset_time_seconds(self, identifier: str) -> int:
        """Whole seconds until the next token, 0 if a request would pass now."""
        cfg = self.config
        with self._store.locked() as store:
            bucket = store.get(identifier)
            if bucket is None or bucket.tokens >= 1:
                return 0
            tokens_needed = 1 - bucket.tokens
        ms_until_token = math.ceil(tokens_needed / cfg.tokens_per_interval * cfg.interval_ms)
        return max(0, math.ceil(ms_until_token / 1000))

    def cleanup(self) -> int:
        """Evict stale buckets once. Returns the number removed."""
        evicted = self._store.evict_stale(self._clock(), self.config.stale_after_ms)
        if evicted:
            logger.info(f"Rate limit: evicted {len(evicted)} stale buckets ({len(self._store)} remain)")
        return len(evicted)

    # ========== Cleanup lifecycle ==========

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start_cleanup(self, period_ms: float | None = None) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.cleanup_running:
            return
        period = period_ms if period_ms is not None else self.config.cleanup_interval_ms
        self._cleanup_task = asyncio.get_running_loop().create_task(self._cleanup_loop(period / 1000))
        logger.info(f"Rate limit cleanup started (interval={period:g}ms)")

    def stop_cleanup(self) -> None:
        """Stop the periodic sweep."""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        self._cleanup_task = None
        logger.info("Rate limit cleanup stopped")

    async def _cleanup_loop(self, period_s: float) -> None:
        while True:
            await asyncio.sleep(period_s)
            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"Rate limit cleanup error: {e}")

    def status(self) -> dict:
        """Get limiter status."""
        return {
            "buckets": len(self._store),
            "cleanupRunning": self.cleanup_running,
            "bucketSize": self.config.bucket_size,
            "tokensPerInterval": self.config.tokens_per_interval,
            "intervalMs": self.config.interval_ms,
        }

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._store


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Derive the client address from proxy headers."""
    cf_ip = headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip

    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    return "unknown"


def rate_limit_response(retry_after: int) -> web.Response:
    return web.json_response(
        {
            "status": 429,
            "error": "Too Many Requests",
            "message": "Rate limit exceeded. Please try again later.",
            "retryAfter": retry_after,
        },
        status=429,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Retry-After": str(retry_after),
        },
    )


def create_rate_limit_middleware(limiter: RateLimiter, exempt_paths: tuple[str, ...] = ("/health",)):
    """Build an aiohttp middleware that rejects clients over their budget."""

    @web.middleware
    async def rate_limit_middleware(request: web.Request, handler):
        if request.method == "OPTIONS" or request.path in exempt_paths:
            return await handler(request)

        client_ip = get_client_ip(request.headers)
        if not limiter.is_allowed(client_ip):
            return rate_limit_response(limiter.get_reset_time_seconds(client_ip))

        resp = await handler(request)
        resp.headers["X-RateLimit-Limit"] = str(limiter.config.bucket_size)
        resp.headers["X-RateLimit-Remaining"] = str(limiter.get_remaining_tokens(client_ip))
        return resp

    return rate_limit_middleware
