import asyncio
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from fund_ledger.config import Settings
from fund_ledger.domain.models import ClientProfile, Fund
from fund_ledger.domain.services.client_ledger import ClientLedger
from fund_ledger.domain.services.fund_registry import FundRegistry, FundSpec
from fund_ledger.domain.services.portal import build_portal
from fund_ledger.domain.services.trade_engine import TradeEngine
from fund_ledger.infrastructure.kv.store import InMemoryKeyValueStore
from fund_ledger.infrastructure.repositories.client_repository import ClientRepository
from fund_ledger.infrastructure.repositories.fund_repository import FundRepository
from fund_ledger.main import create_app


class SequenceClock:
    """Deterministic, strictly increasing timestamps"""

    def __init__(self):
        self.ticks = 0

    def __call__(self) -> str:
        self.ticks += 1
        minutes, seconds = divmod(self.ticks, 60)
        hours, minutes = divmod(minutes, 60)
        return f"2024-01-01T{hours:02d}:{minutes:02d}:{seconds:02d}.000Z"


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        APP_ENV="test",
        STORE_BACKEND="memory",
        ADMIN_CALLER_IDS=["admin"],
        ENFORCE_FUND_ACCESS=False,
        LOCK_BLOCKING_TIMEOUT_SECONDS=1.0,
    )


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(lock_timeout_seconds=1.0)


class YieldingStore(InMemoryKeyValueStore):
    """In-memory store that gives up the event loop on every read"""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)


@pytest.fixture()
def yielding_store() -> YieldingStore:
    return YieldingStore(lock_timeout_seconds=5.0)


@pytest.fixture()
def clock() -> SequenceClock:
    return SequenceClock()


@pytest.fixture()
def fund_repo(store) -> FundRepository:
    return FundRepository(store)


@pytest.fixture()
def client_repo(store) -> ClientRepository:
    return ClientRepository(store)


@pytest.fixture()
def registry(fund_repo, clock) -> FundRegistry:
    return FundRegistry(fund_repo, clock=clock)


@pytest.fixture()
def ledger(client_repo, fund_repo, clock) -> ClientLedger:
    return ClientLedger(client_repo, fund_repo, clock=clock)


@pytest.fixture()
def engine(registry, ledger) -> TradeEngine:
    return TradeEngine(registry, ledger)


@pytest.fixture()
def portal(store, test_settings):
    return build_portal(store, test_settings)


@pytest.fixture()
async def fund(registry) -> Fund:
    """Alpha fund at NAV 100"""
    return await registry.create_fund(
        FundSpec(name="Alpha Growth", symbol="ALPH", initial_price="100", fund_id="fund_alpha")
    )


@pytest.fixture()
def make_client(ledger):
    """Register a client and optionally fund their account"""

    async def _make(client_id: str = "client-1", cash: str = "0", email: str = "") -> ClientProfile:
        await ledger.register_client(
            client_id=client_id,
            first_name="Ada",
            last_name="Lovelace",
            email=email or f"{client_id}@example.com",
        )
        if Decimal(cash) > 0:
            await ledger.deposit(client_id, cash, "initial funding")
        return await ledger.get_client(client_id)

    return _make


@pytest.fixture()
async def app(test_settings, store) -> FastAPI:
    return create_app(test_settings, store=store)


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not send lifespan events; run them explicitly
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
