import ipaddress
import time
from collections import deque
from threading import Lock
from typing import Optional

from fastapi import Request

from app.core.config import Settings, get_settings

_MAX_BUCKETS = 20_000
_PRUNE_INTERVAL_SECONDS = 60
WINDOW_SECONDS = 60

# Paths that run the full analysis pipeline get their own, tighter budget.
ANALYZE_PATHS = ("/api/v1/analyze", "/api/v1/analyze-comprehensive")


class SlidingWindowRateLimiter:
    def __init__(
        self,
        *,
        max_buckets: int = _MAX_BUCKETS,
        prune_interval_seconds: int = _PRUNE_INTERVAL_SECONDS,
    ) -> None:
        self._buckets: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._max_buckets = max_buckets
        self._prune_interval_seconds = max(1, int(prune_interval_seconds))
        self._last_prune_at = 0.0

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        """Record one hit for *key*; returns (allowed, hits in window)."""
        if limit <= 0 or window_seconds <= 0:
            return True, 0
        now = time.monotonic()
        with self._lock:
            if len(self._buckets) > self._max_buckets or (now - self._last_prune_at) >= self._prune_interval_seconds:
                self._prune_stale(now, window_seconds)
                self._last_prune_at = now

            bucket = self._buckets.setdefault(key, deque())
            cutoff = now - window_seconds
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= limit:
                return False, len(bucket)
            bucket.append(now)
            return True, len(bucket)

    def _prune_stale(self, now: float, window_seconds: int) -> None:
        """Remove buckets that have no recent entries (called under lock)."""
        cutoff = now - window_seconds
        stale_keys = []
        for key, bucket in self._buckets.items():
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if not bucket:
                stale_keys.append(key)
        for key in stale_keys:
            del self._buckets[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._last_prune_at = 0.0


rate_limiter = SlidingWindowRateLimiter()


def ip_in_allowlist(ip: str, allowlist: list[str]) -> bool:
    """Exact or CIDR match of *ip* against *allowlist*; invalid entries are skipped."""
    if not ip:
        return False
    try:
        ip_obj = ipaddress.ip_address(ip)
    except ValueError:
        return False
    for entry in allowlist:
        if entry == ip:
            return True
        try:
            if ip_obj in ipaddress.ip_network(entry, strict=False):
                return True
        except ValueError:
            continue
    return False


def get_client_ip(request: Request, trusted_proxy_cidrs: Optional[list[str]] = None) -> Optional[str]:
    """Extract client IP from request.

    SECURITY: ``X-Real-IP`` and ``X-Forwarded-For`` are trusted only when
    the direct peer (``request.client.host``) is in ``TRUSTED_PROXY_CIDRS``.
    Otherwise forwarded headers are ignored to prevent spoofing.
    """
    peer_ip = request.client.host if request.client else None
    trusted = trusted_proxy_cidrs
    if trusted is None:
        trusted = get_settings().trusted_proxy_cidrs

    if peer_ip and trusted and ip_in_allowlist(peer_ip, trusted):
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # Rightmost IP is the one added by the first trusted reverse proxy.
            parts = [p.strip() for p in forwarded.split(",") if p.strip()]
            if parts:
                return parts[-1]

    return peer_ip


def limit_for_path(path: str, settings: Settings) -> tuple[str, int]:
    """Bucket scope and per-minute limit for an API path."""
    if path in ANALYZE_PATHS:
        return "analyze", settings.rate_limit_analyze_per_min
    return "api", settings.rate_limit_api_per_min
