from __future__ import annotations

import threading
import time

from fastapi import Request

from app.core.config import settings
from app.core.errors import RateLimited


class TokenBucket:
    """
    In-memory token bucket holding ``capacity`` tokens and refilling the whole
    bucket over ``window_seconds``. Per process only.
    """

    def __init__(self, capacity: int, window_seconds: float):
        self.capacity = int(capacity)
        self.rate_per_sec = self.capacity / float(window_seconds)
        self.tokens = float(capacity)
        self.updated_at = time.monotonic()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = now - self.updated_at
        if elapsed <= 0:
            return
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
        self.updated_at = now

    def allow(self, cost: float = 1.0) -> bool:
        now = time.monotonic()
        with self._lock:
            self._refill(now)
            if self.tokens >= cost:
                self.tokens -= cost
                return True
            return False


class RateLimiter:
    """One bucket per client key, created lazily."""

    IDLE_EXPIRY_SECONDS = 600

    def __init__(self, capacity: int, window_seconds: float):
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._buckets: dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def _bucket(self, key: str) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                self._prune(time.monotonic())
                bucket = TokenBucket(self.capacity, self.window_seconds)
                self._buckets[key] = bucket
            return bucket

    def _prune(self, now: float) -> None:
        stale = [k for k, b in self._buckets.items() if now - b.updated_at > self.IDLE_EXPIRY_SECONDS]
        for key in stale:
            del self._buckets[key]

    def allow(self, key: str) -> bool:
        return self._bucket(key).allow()

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __call__(self, request: Request) -> None:
        if not self.allow(client_key(request)):
            raise RateLimited()


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


register_limiter = RateLimiter(settings.REGISTER_RATE_LIMIT, settings.REGISTER_RATE_WINDOW_SECONDS)
login_limiter = RateLimiter(settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SECONDS)
purchase_limiter = RateLimiter(settings.PURCHASE_RATE_LIMIT, settings.PURCHASE_RATE_WINDOW_SECONDS)
