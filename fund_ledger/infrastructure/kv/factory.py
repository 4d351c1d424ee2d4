"""
Store factory: pick the backend named in settings.
"""

import logging

from fund_ledger.config import Settings
from fund_ledger.infrastructure.kv.redis_store import RedisKeyValueStore
from fund_ledger.infrastructure.kv.store import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


def create_store(settings: Settings) -> KeyValueStore:
    backend = settings.STORE_BACKEND.lower()
    if backend == "redis":
        logger.info("Using Redis key-value store at %s", settings.REDIS_URL)
        return RedisKeyValueStore(
            url=settings.REDIS_URL,
            prefix=settings.REDIS_KEY_PREFIX,
            lock_timeout_seconds=settings.LOCK_TIMEOUT_SECONDS,
            lock_blocking_timeout_seconds=settings.LOCK_BLOCKING_TIMEOUT_SECONDS,
        )
    if backend == "memory":
        logger.info("Using in-memory key-value store")
        return InMemoryKeyValueStore(lock_timeout_seconds=settings.LOCK_BLOCKING_TIMEOUT_SECONDS)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")
