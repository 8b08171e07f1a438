# services/cache_store.py
"""
Redis-backed key-value store used by every cache in the service.

The store fails open: connection problems, timeouts and command errors are
logged and turned into misses / no-ops so request handling never depends on
Redis being up. A disconnected store tries to reconnect on its next use.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.repos.helper import JSONEncoder
from storefront.services.cache_stats import CacheStats

logger = logging.getLogger(__name__)

BACKEND_ERRORS = (RedisError, OSError, asyncio.TimeoutError)
DELETE_BATCH_SIZE = 500


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class CacheStore:
    def __init__(
        self,
        client: Redis,
        *,
        enabled: bool = True,
        ping_timeout: float = 1.0,
        scan_count: int = 500,
    ):
        self._client = client
        self.enabled = enabled
        self.ping_timeout = ping_timeout
        self.scan_count = scan_count
        self.state = ConnectionState.DISCONNECTED
        self.attempts = 0
        self.last_error: Optional[str] = None
        self.stats = CacheStats()
        self._connect_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    # ---------------------------
    # Lifecycle
    # ---------------------------
    async def connect(self) -> bool:
        if not self.enabled:
            return False
        if self.connected:
            return True

        async with self._connect_lock:
            if self.connected:
                return True
            self.state = ConnectionState.CONNECTING
            try:
                await asyncio.wait_for(self._client.ping(), timeout=self.ping_timeout)
            except BACKEND_ERRORS as e:
                self.attempts += 1
                self.last_error = str(e) or e.__class__.__name__
                self.state = ConnectionState.DISCONNECTED
                logger.warning(f"Redis connection attempt {self.attempts} failed: {self.last_error}")
                return False

            self.state = ConnectionState.CONNECTED
            self.attempts = 0
            self.last_error = None
            logger.info("Redis connection established")
            return True

    async def shutdown(self) -> None:
        try:
            await self._client.aclose()
            logger.info("Redis connection closed")
        except BACKEND_ERRORS as e:
            logger.error(f"Error closing Redis connection: {str(e)}")
        finally:
            self.state = ConnectionState.DISCONNECTED

    def connection_status(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "state": self.state.value,
            "attempts": self.attempts,
            "last_error": self.last_error,
        }

    async def _ready(self) -> bool:
        if self.connected:
            return True
        return await self.connect()

    def _mark_failed(self, op: str, target: str, error: BaseException) -> None:
        self.state = ConnectionState.DISCONNECTED
        self.last_error = str(error) or error.__class__.__name__
        logger.warning(f"Redis {op} failed for {target}: {self.last_error}")

    # ---------------------------
    # Commands
    # ---------------------------
    async def get(self, key: str) -> Optional[Any]:
        """Decoded JSON value for ``key`` or None when absent or unavailable."""
        if not await self._ready():
            return None
        try:
            raw = await self._client.get(key)
        except BACKEND_ERRORS as e:
            self._mark_failed("GET", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        try:
            payload = json.dumps(value, cls=JSONEncoder)
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping cache set for {key}: value not serializable ({str(e)})")
            return False

        if not await self._ready():
            return False
        try:
            if ttl_seconds:
                await self._client.set(key, payload, ex=int(ttl_seconds))
            else:
                await self._client.set(key, payload)
            return True
        except BACKEND_ERRORS as e:
            self._mark_failed("SET", key, e)
            return False

    async def delete(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys or not await self._ready():
            return 0
        deleted = 0
        try:
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                deleted += await self._client.delete(*keys[start:start + DELETE_BATCH_SIZE])
        except BACKEND_ERRORS as e:
            self._mark_failed("DEL", f"{len(keys)} keys", e)
        return deleted

    async def scan(self, pattern: str) -> List[str]:
        """All keys matching ``pattern``, collected with cursor-based SCAN."""
        if not await self._ready():
            return []
        keys: List[str] = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=self.scan_count):
                keys.append(key)
        except BACKEND_ERRORS as e:
            self._mark_failed("SCAN", pattern, e)
            return []
        return keys

    async def ttl(self, key: str) -> int:
        if not await self._ready():
            return -1
        try:
            return await self._client.ttl(key)
        except BACKEND_ERRORS as e:
            self._mark_failed("TTL", key, e)
            return -1

    async def ping(self) -> bool:
        if not self.enabled:
            return False
        try:
            await asyncio.wait_for(self._client.ping(), timeout=self.ping_timeout)
        except BACKEND_ERRORS as e:
            self._mark_failed("PING", "server", e)
            return False
        if not self.connected:
            self.state = ConnectionState.CONNECTED
            self.attempts = 0
            self.last_error = None
        return True
