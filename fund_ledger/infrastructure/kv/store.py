"""
Key-value store interface and in-memory implementation.

Values are JSON documents. Each key is read and written as a whole;
``lock(key)`` serializes read-modify-write cycles on one key.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Dict, List, Optional, Protocol, Tuple

from fund_ledger.core.errors import ConcurrencyError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Protocol for opaque async get/set persistence"""

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for key, or None"""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Store value under key"""
        ...

    async def scan(self, prefix: str) -> List[Tuple[str, Any]]:
        """All (key, value) pairs whose key starts with prefix"""
        ...

    def lock(self, key: str) -> AsyncContextManager[None]:
        """Exclusive per-key critical section"""
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


class InMemoryKeyValueStore:
    """
    Process-local store.

    Values are kept JSON-encoded so callers never share mutable state with
    the store, the same as with a remote backend.
    """

    def __init__(self, lock_timeout_seconds: Optional[float] = None):
        self._data: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_timeout = lock_timeout_seconds

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def scan(self, prefix: str) -> List[Tuple[str, Any]]:
        return [
            (key, json.loads(raw))
            for key, raw in sorted(self._data.items())
            if key.startswith(prefix)
        ]

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        try:
            if self._lock_timeout is None:
                await lock.acquire()
            else:
                await asyncio.wait_for(lock.acquire(), timeout=self._lock_timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out waiting for lock on %s", key)
            raise ConcurrencyError("The record is busy, please retry")
        try:
            yield
        finally:
            lock.release()

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None

    def keys(self) -> List[str]:
        return sorted(self._data)
