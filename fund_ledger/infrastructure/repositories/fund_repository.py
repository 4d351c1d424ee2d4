"""
Fund Repository
Typed access to ``fund:{id}`` records
"""

import logging
from typing import AsyncContextManager, List, Optional

from fund_ledger.core.errors import ValidationError
from fund_ledger.domain.models import Fund
from fund_ledger.infrastructure.kv.store import KeyValueStore

logger = logging.getLogger(__name__)

FUND_PREFIX = "fund:"


def fund_key(fund_id: str) -> str:
    return f"{FUND_PREFIX}{fund_id}"


class FundRepository:
    """Repository for Fund records"""

    def __init__(self, store: KeyValueStore):
        """Initialize with the key-value store"""
        self.store = store

    def lock(self, fund_id: str) -> AsyncContextManager[None]:
        return self.store.lock(fund_key(fund_id))

    async def get(self, fund_id: str) -> Optional[Fund]:
        data = await self.store.get(fund_key(fund_id))
        if data is None:
            return None
        return Fund.from_dict(data)

    async def save(self, fund: Fund) -> None:
        await self.store.set(fund_key(fund.id), fund.to_dict())

    async def list_all(self) -> List[Fund]:
        """
        All funds in the namespace.

        Auxiliary keys (``fund:<something>:...``) and values that do not
        decode as a fund are skipped.
        """
        funds = []
        for key, data in await self.store.scan(FUND_PREFIX):
            if ":" in key[len(FUND_PREFIX):] or not isinstance(data, dict):
                continue
            try:
                funds.append(Fund.from_dict(data))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.warning("Skipping undecodable fund record %s: %s", key, exc)
        return funds
