"""
Unit Tests for FundRegistry

Covers fund creation, NAV updates, history trimming and catalogue reads.
"""

import asyncio
from decimal import Decimal

import pytest

from fund_ledger.core.errors import ConflictError, NotFoundError, ValidationError
from fund_ledger.domain.services.fund_registry import FundRegistry, FundSpec, change_percent
from fund_ledger.infrastructure.repositories.fund_repository import FundRepository


class TestCreateFund:

    @pytest.mark.asyncio
    async def test_create_fund_sets_initial_state(self, registry, store):
        fund = await registry.create_fund(
            FundSpec(name="Alpha Growth", symbol="ALPH", initial_price="125.50", strategy="Momentum")
        )

        assert fund.id.startswith("fund_")
        assert fund.initial_price == Decimal("125.50")
        assert fund.current_price == Decimal("125.50")
        assert fund.change_24h == Decimal("0")
        assert fund.price_history == []
        assert f"fund:{fund.id}" in store.keys()

    @pytest.mark.asyncio
    async def test_persisted_record_uses_wire_names(self, registry, store):
        fund = await registry.create_fund(FundSpec(name="Alpha", symbol="ALPH", initial_price=10))
        record = await store.get(f"fund:{fund.id}")

        assert record["initialPrice"] == 10.0
        assert record["currentPrice"] == 10.0
        assert record["change24h"] == 0.0
        assert record["priceHistory"] == []
        assert "createdAt" in record

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [0, -5, "abc", "", None, "nan", float("inf"), "1e400", "1e-400"])
    async def test_rejects_invalid_initial_price(self, registry, price):
        with pytest.raises(ValidationError) as exc_info:
            await registry.create_fund(FundSpec(name="Alpha", symbol="ALPH", initial_price=price))

        assert exc_info.value.message == "Invalid initial price. Must be a positive number."

    @pytest.mark.asyncio
    async def test_requires_name_and_symbol(self, registry):
        with pytest.raises(ValidationError):
            await registry.create_fund(FundSpec(name="", symbol="ALPH", initial_price=10))
        with pytest.raises(ValidationError):
            await registry.create_fund(FundSpec(name="Alpha", symbol="  ", initial_price=10))

    @pytest.mark.asyncio
    async def test_duplicate_fund_id_conflicts(self, registry):
        await registry.create_fund(FundSpec(name="Alpha", symbol="ALPH", initial_price=10, fund_id="fund_x"))

        with pytest.raises(ConflictError):
            await registry.create_fund(FundSpec(name="Beta", symbol="BETA", initial_price=20, fund_id="fund_x"))

    @pytest.mark.asyncio
    async def test_generated_ids_are_unique(self, registry):
        ids = set()
        for i in range(20):
            fund = await registry.create_fund(FundSpec(name=f"F{i}", symbol=f"S{i}", initial_price=1))
            ids.add(fund.id)

        assert len(ids) == 20


class TestUpdatePrice:

    @pytest.mark.asyncio
    async def test_price_rise_sets_change(self, registry, fund):
        update = await registry.update_price(fund.id, 110)

        assert update.old_price == Decimal("100")
        assert update.new_price == Decimal("110")
        assert update.change_percent == Decimal("10")
        assert update.fund.current_price == Decimal("110")
        assert update.fund.initial_price == Decimal("100")

    @pytest.mark.asyncio
    async def test_price_fall_sets_negative_change(self, registry, fund):
        update = await registry.update_price(fund.id, "90")

        assert update.change_percent == Decimal("-10")
        stored = await registry.get_fund(fund.id)
        assert stored.change_24h == Decimal("-10")

    @pytest.mark.asyncio
    async def test_change_is_relative_to_previous_price(self, registry, fund):
        await registry.update_price(fund.id, 200)
        update = await registry.update_price(fund.id, 150)

        assert update.old_price == Decimal("200")
        assert update.change_percent == Decimal("-25")

    @pytest.mark.asyncio
    async def test_update_appends_history(self, registry, fund):
        await registry.update_price(fund.id, 101)
        await registry.update_price(fund.id, 102)

        stored = await registry.get_fund(fund.id)
        assert [p.price for p in stored.price_history] == [Decimal("101"), Decimal("102")]

    @pytest.mark.asyncio
    async def test_history_keeps_most_recent_hundred(self, registry, fund):
        for i in range(1, 151):
            await registry.update_price(fund.id, 100 + i)

        stored = await registry.get_fund(fund.id)
        prices = [p.price for p in stored.price_history]
        timestamps = [p.timestamp for p in stored.price_history]

        assert len(prices) == 100
        assert prices[0] == Decimal("151")
        assert prices[-1] == Decimal("250")
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_custom_history_limit(self, fund_repo, clock, fund):
        registry = FundRegistry(fund_repo, price_history_limit=3, clock=clock)
        for price in (101, 102, 103, 104):
            await registry.update_price(fund.id, price)

        stored = await registry.get_fund(fund.id)
        assert [p.price for p in stored.price_history] == [Decimal("102"), Decimal("103"), Decimal("104")]

    @pytest.mark.asyncio
    async def test_unknown_fund(self, registry):
        with pytest.raises(NotFoundError) as exc_info:
            await registry.update_price("fund_missing", 10)

        assert exc_info.value.message == "Fund not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [0, -1, "x", None, "1e400", "1e-400"])
    async def test_invalid_price_leaves_fund_untouched(self, registry, fund, price):
        with pytest.raises(ValidationError):
            await registry.update_price(fund.id, price)

        stored = await registry.get_fund(fund.id)
        assert stored.current_price == Decimal("100")
        assert stored.price_history == []

    @pytest.mark.asyncio
    async def test_price_update_payload(self, registry, fund):
        update = await registry.update_price(fund.id, 110)
        payload = update.to_dict()

        assert payload["priceChange"] == {"oldPrice": 100.0, "newPrice": 110.0, "changePercent": 10.0}
        assert payload["fund"]["currentPrice"] == 110.0

    @pytest.mark.asyncio
    async def test_out_of_range_price_keeps_fund_readable(self, registry, fund, store):
        with pytest.raises(ValidationError) as exc_info:
            await registry.update_price(fund.id, "1e400")

        assert exc_info.value.message == "Invalid price"
        assert (await store.get(f"fund:{fund.id}"))["currentPrice"] == 100.0
        assert [f.id for f in await registry.list_funds()] == [fund.id]


class TestConcurrentPriceUpdates:

    @pytest.fixture()
    async def yielding_registry(self, yielding_store, clock):
        registry = FundRegistry(FundRepository(yielding_store), clock=clock)
        await registry.create_fund(FundSpec(name="Alpha", symbol="ALPH", initial_price=100, fund_id="fund_alpha"))
        return registry

    @pytest.mark.asyncio
    async def test_concurrent_updates_are_serialized(self, yielding_registry):
        updates = await asyncio.gather(
            yielding_registry.update_price("fund_alpha", 110),
            yielding_registry.update_price("fund_alpha", 121),
        )

        fund = await yielding_registry.get_fund("fund_alpha")
        history = fund.price_history
        assert len(history) == 2
        assert sorted(p.price for p in history) == [Decimal("110"), Decimal("121")]
        assert [p.timestamp for p in history] == sorted(p.timestamp for p in history)
        assert fund.current_price == history[-1].price
        expected = change_percent(history[0].price, history[-1].price)
        assert abs(fund.change_24h - expected) < Decimal("1e-9")

        # each update saw the price committed by the one before it
        olds = sorted(u.old_price for u in updates)
        assert olds == sorted([Decimal("100"), history[0].price])

    @pytest.mark.asyncio
    async def test_many_concurrent_updates_keep_every_point(self, yielding_registry):
        prices = [Decimal(100 + i) for i in range(1, 21)]

        await asyncio.gather(*(yielding_registry.update_price("fund_alpha", p) for p in prices))

        fund = await yielding_registry.get_fund("fund_alpha")
        assert sorted(p.price for p in fund.price_history) == prices
        assert fund.current_price == fund.price_history[-1].price


class TestReads:

    @pytest.mark.asyncio
    async def test_list_skips_auxiliary_keys(self, registry, store, fund):
        await store.set("fund:index:symbols", {"ALPH": fund.id})
        await store.set("fund:broken", {"name": "no price"})
        await store.set("fund:plain", "not a record")

        funds = await registry.list_funds()

        assert [f.id for f in funds] == [fund.id]

    @pytest.mark.asyncio
    async def test_find_fund_returns_none(self, registry):
        assert await registry.find_fund("fund_missing") is None

    @pytest.mark.asyncio
    async def test_get_fund_raises(self, registry):
        with pytest.raises(NotFoundError):
            await registry.get_fund("fund_missing")

    def test_current_nav_falls_back_to_initial_price(self, fund):
        fund.current_price = Decimal("0")

        assert FundRegistry.current_nav(fund) == Decimal("100")
        assert FundRegistry.current_nav(None) == Decimal("0")


def test_change_percent_zero_old_price():
    assert change_percent(Decimal("0"), Decimal("10")) == Decimal("0")
