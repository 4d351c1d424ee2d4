"""
Redis-backed key-value store.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import LockError

from fund_ledger.core.errors import ConcurrencyError

logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    """
    JSON documents in Redis under a key prefix.

    Per-key locks use Redis locks so separate worker processes sharing the
    same Redis serialize on the same record.
    """

    def __init__(
        self,
        url: str,
        prefix: str = "portal:",
        lock_timeout_seconds: float = 10.0,
        lock_blocking_timeout_seconds: float = 5.0,
        client: Optional[redis.Redis] = None,
    ):
        self._client = client or redis.Redis.from_url(url, decode_responses=True)
        self._prefix = prefix
        self._lock_timeout = lock_timeout_seconds
        self._blocking_timeout = lock_blocking_timeout_seconds

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        await self._client.set(self._key(key), json.dumps(value))

    async def scan(self, prefix: str) -> List[Tuple[str, Any]]:
        keys = sorted([key async for key in self._client.scan_iter(match=f"{self._key(prefix)}*")])
        if not keys:
            return []
        values = await self._client.mget(keys)
        strip = len(self._prefix)
        return [
            (key[strip:], json.loads(raw))
            for key, raw in zip(keys, values)
            if raw is not None
        ]

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        lock = self._client.lock(
            self._key(f"lock:{key}"),
            timeout=self._lock_timeout,
            blocking_timeout=self._blocking_timeout,
        )
        if not await lock.acquire():
            logger.warning("Timed out waiting for lock on %s", key)
            raise ConcurrencyError("The record is busy, please retry")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lock expired while held; the write already happened
                logger.warning("Lock on %s expired before release", key)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as exc:
            logger.debug("Redis ping failed: %s", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()
