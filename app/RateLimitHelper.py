import math
import threading
import time
from collections import OrderedDict

from fastapi import Request

RATE_LIMIT_DEFAULT_RPS = 10
RATE_LIMIT_MAX_KEYS = 10000
RATE_LIMITED_ROUTES = {("POST", "/api/shorten")}


class _Bucket:
    __slots__ = ("tokens", "last")

    def __init__(self, tokens: float, last: float):
        self.tokens = tokens
        self.last = last


class TokenBucketLimiter:
    """
    Per-key token bucket.

    Each key holds up to ``burst`` tokens and regains ``rps`` tokens per
    second. A request spends one token; with none left it is refused.
    At most ``max_keys`` buckets are kept; the least recently seen key is
    dropped first.
    """

    def __init__(self, rps: int, burst: int = 0, clock=time.monotonic, max_keys: int = RATE_LIMIT_MAX_KEYS):
        if rps <= 0:
            rps = RATE_LIMIT_DEFAULT_RPS
        if burst <= 0:
            burst = rps
        self.rps = float(rps)
        self.burst = float(burst)
        self.max_keys = max(1, max_keys)
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets = OrderedDict()

    @property
    def retry_after(self) -> int:
        return max(1, math.ceil(1 / self.rps))

    def __len__(self) -> int:
        return len(self._buckets)

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                self._buckets[key] = _Bucket(self.burst - 1, now)
                while len(self._buckets) > self.max_keys:
                    self._buckets.popitem(last=False)
                return True

            self._buckets.move_to_end(key)
            elapsed = now - bucket.last
            if elapsed > 0:
                bucket.tokens = min(self.burst, bucket.tokens + elapsed * self.rps)
                bucket.last = now

            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True
            return False


def build_limiter(rps: int, burst: int):
    """Limiter for the configured rate, or None when limiting is switched off."""
    if rps <= 0:
        return None
    return TokenBucketLimiter(rps, burst)


def get_client_ip(request: Request, trusted_proxies=frozenset()) -> str:
    """
    Address the request came from.

    X-Forwarded-For is only read when the peer is a trusted proxy. The chain
    is walked from the right and the first hop that is not a trusted proxy
    is the client.
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer

    xff = request.headers.get("x-forwarded-for")
    if not xff:
        return peer
    hops = [hop.strip() for hop in xff.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return hops[0] if hops else peer


def is_rate_limited_path(method: str, path: str) -> bool:
    return (method.upper(), path.rstrip("/") or "/") in RATE_LIMITED_ROUTES
