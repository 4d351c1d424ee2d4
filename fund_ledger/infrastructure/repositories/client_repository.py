"""
Client Repository
Typed access to ``client:{id}`` profiles and the ``client_email:{email}`` index
"""

import logging
from typing import AsyncContextManager, List, Optional

from fund_ledger.core.errors import ValidationError
from fund_ledger.domain.models import ClientProfile
from fund_ledger.infrastructure.kv.store import KeyValueStore

logger = logging.getLogger(__name__)

CLIENT_PREFIX = "client:"
# Kept outside CLIENT_PREFIX so no client id can address an index entry
EMAIL_INDEX_PREFIX = "client_email:"


def client_key(client_id: str) -> str:
    return f"{CLIENT_PREFIX}{client_id}"


def email_key(email: str) -> str:
    return f"{EMAIL_INDEX_PREFIX}{email.strip().lower()}"


class ClientRepository:
    """Repository for ClientProfile records"""

    def __init__(self, store: KeyValueStore):
        """Initialize with the key-value store"""
        self.store = store

    def lock(self, client_id: str) -> AsyncContextManager[None]:
        return self.store.lock(client_key(client_id))

    def registration_lock(self) -> AsyncContextManager[None]:
        """Serializes registrations so the email index stays unique"""
        return self.store.lock(f"{EMAIL_INDEX_PREFIX}*")

    async def get(self, client_id: str) -> Optional[ClientProfile]:
        data = await self.store.get(client_key(client_id))
        if data is None:
            return None
        return ClientProfile.from_dict(data)

    async def save(self, profile: ClientProfile) -> None:
        await self.store.set(client_key(profile.id), profile.to_dict())

    async def get_id_by_email(self, email: str) -> Optional[str]:
        return await self.store.get(email_key(email))

    async def index_email(self, email: str, client_id: str) -> None:
        await self.store.set(email_key(email), client_id)

    async def list_all(self) -> List[ClientProfile]:
        """All client profiles; records that are not objects are skipped"""
        profiles = []
        for key, data in await self.store.scan(CLIENT_PREFIX):
            if not isinstance(data, dict):
                logger.warning("Skipping non-object client record %s", key)
                continue
            try:
                profiles.append(ClientProfile.from_dict(data))
            except (ValidationError, ValueError, TypeError) as exc:
                logger.warning("Skipping undecodable client record %s: %s", key, exc)
        return profiles
