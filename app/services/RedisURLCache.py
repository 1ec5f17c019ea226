from datetime import datetime
from typing import Optional
import json
import logging
import math

import redis.exceptions
from pydantic import BaseModel

from app.core.config import settings
from app.schemas.LinkRecord import LinkRecord
from app.utils.clock import as_utc, is_expired

logger = logging.getLogger(__name__)
CACHE_TTL = settings.CACHE_TTL


class CachedLink(BaseModel):
    url: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)


def cache_key(code: str) -> str:
    return f"url:{code}"


def get(client, code: str) -> Optional[CachedLink]:
    if client is None:
        return None
    try:
        cached = client.get(cache_key(code))
    except redis.exceptions.RedisError as e:
        logger.warning(f"Redis lookup failed for {code}: {e}")
        return None

    if not cached:
        return None
    if isinstance(cached, (bytes, bytearray)):
        cached = cached.decode()
    try:
        entry = CachedLink.model_validate_json(cached)
    except ValueError:
        logger.warning(f"Discarding malformed cache entry for {code}")
        return None
    entry.expires_at = as_utc(entry.expires_at)
    logger.info(f"Redirect cache HIT for {code} -> {entry.url[:50]}")
    return entry


def put(client, record: LinkRecord, now: datetime, ttl: int = CACHE_TTL):
    """Cache record's destination for at most ttl seconds and never past its expiry."""
    if client is None:
        return
    if record.expires_at is not None:
        remaining = (record.expires_at - as_utc(now)).total_seconds()
        if remaining <= 0:
            return
        ttl = min(ttl, math.ceil(remaining))

    payload = json.dumps({
        "url": record.destination,
        "expires_at": record.expires_at.isoformat() if record.expires_at else None,
    })
    try:
        client.setex(cache_key(record.code), ttl, payload)
        logger.debug(f"Cached {record.code} -> {record.destination[:50]} for {ttl}s")
    except redis.exceptions.RedisError as e:
        logger.warning(f"Failed to cache {record.code}, Redis unavailable: {e}")
