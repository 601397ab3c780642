"""
Revoked refresh-token storage.

Two backends share the same small interface (add / contains):

- MemoryRevocationStore: process-local, entries expire after their TTL.
  Suitable for a single API instance.
- RedisRevocationStore: shared across instances, TTL enforced by Redis.
"""

import hashlib
import logging
import threading
import time
from typing import Callable, Dict, Optional

import redis

logger = logging.getLogger(__name__)


class MemoryRevocationStore:
    """
    Process-local revocation set with per-entry expiry.

    Expired entries are pruned lazily on access instead of one timer per
    entry. The lock is needed because sync endpoints run on a threadpool.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def add(self, token: str, ttl_seconds: int) -> None:
        expires_at = self._clock() + ttl_seconds
        with self._lock:
            self._prune()
            # Re-adding keeps the later expiry
            current = self._entries.get(token)
            if current is None or current < expires_at:
                self._entries[token] = expires_at

    def contains(self, token: str) -> bool:
        with self._lock:
            expires_at = self._entries.get(token)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._entries[token]
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            self._prune()
            return len(self._entries)

    def _prune(self) -> None:
        now = self._clock()
        expired = [token for token, expires_at in self._entries.items() if expires_at <= now]
        for token in expired:
            del self._entries[token]


class RedisRevocationStore:
    """
    Redis-backed revocation set.

    Tokens are stored under a sha256 digest so raw credentials never sit in
    Redis. If Redis is unreachable, lookups fail open and the error is logged;
    version checks in the database still reject reused refresh tokens.
    """

    KEY_PREFIX = "revoked_token:"

    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = None):
        if client is None:
            client = redis.Redis.from_url(url or "redis://localhost:6379/0", decode_responses=True)
        self.redis_client = client

    def _key(self, token: str) -> str:
        return self.KEY_PREFIX + hashlib.sha256(token.encode("utf-8")).hexdigest()

    def add(self, token: str, ttl_seconds: int) -> None:
        try:
            self.redis_client.setex(self._key(token), ttl_seconds, 1)
        except redis.RedisError as e:
            logger.error(f"Redis revocation store write failed: {e}")

    def contains(self, token: str) -> bool:
        try:
            return bool(self.redis_client.exists(self._key(token)))
        except redis.RedisError as e:
            logger.error(f"Redis revocation store lookup failed: {e}")
            return False


def build_revocation_store(settings):
    """Create the revocation store selected by REVOCATION_BACKEND."""
    backend = settings.REVOCATION_BACKEND.lower()
    if backend == "redis":
        logger.info("Using Redis revocation store")
        return RedisRevocationStore(url=settings.REDIS_URL)
    if backend != "memory":
        logger.warning(f"Unknown REVOCATION_BACKEND '{settings.REVOCATION_BACKEND}', using memory")
    return MemoryRevocationStore()
