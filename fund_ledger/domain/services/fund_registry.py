"""
FUND REGISTRY

RESPONSIBILITIES:
- Create funds with a validated initial NAV
- Apply admin NAV updates and derive change24h
- Keep a bounded, append-only price history
- Serve fund reads

Authorization is the caller's concern: this registry trusts its caller.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional, Protocol

from fund_ledger.core.errors import ConflictError, NotFoundError, ValidationError
from fund_ledger.domain.models import Fund, PricePoint
from fund_ledger.utils.ids import new_fund_id
from fund_ledger.utils.numbers import ZERO, HUNDRED, parse_quantity, to_float
from fund_ledger.utils.time import now_iso

logger = logging.getLogger(__name__)

DEFAULT_PRICE_HISTORY_LIMIT = 100


class FundStore(Protocol):
    """Protocol for fund record access - ASYNC"""

    def lock(self, fund_id: str) -> AsyncContextManager[None]:
        ...

    async def get(self, fund_id: str) -> Optional[Fund]:
        ...

    async def save(self, fund: Fund) -> None:
        ...

    async def list_all(self) -> List[Fund]:
        ...


@dataclass(frozen=True)
class FundSpec:
    """Admin input for a new fund; initial_price may be a numeric string"""
    name: str
    symbol: str
    initial_price: Any
    description: str = ""
    strategy: str = ""
    fund_id: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(frozen=True)
class PriceUpdate:
    """Result of a NAV update"""
    fund: Fund
    old_price: Decimal
    new_price: Decimal
    change_percent: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fund": self.fund.to_dict(),
            "priceChange": {
                "oldPrice": to_float(self.old_price),
                "newPrice": to_float(self.new_price),
                "changePercent": to_float(self.change_percent),
            },
        }


def change_percent(old_price: Decimal, new_price: Decimal) -> Decimal:
    """Percentage move from old to new; 0 when there is no old price"""
    if old_price <= ZERO:
        return ZERO
    return (new_price - old_price) / old_price * HUNDRED


class FundRegistry:
    """
    Fund Registry
    Owns Fund records and their price history
    """

    def __init__(
        self,
        fund_repo: FundStore,
        price_history_limit: int = DEFAULT_PRICE_HISTORY_LIMIT,
        clock: Callable[[], str] = now_iso,
    ):
        self.fund_repo = fund_repo
        self.price_history_limit = price_history_limit
        self.clock = clock

    async def create_fund(self, spec: FundSpec) -> Fund:
        """
        Create and persist a fund.

        Raises:
            ValidationError: missing name/symbol or non-positive initial price
            ConflictError: a fund with the supplied id already exists
        """
        name = (spec.name or "").strip()
        symbol = (spec.symbol or "").strip()
        if not name or not symbol:
            raise ValidationError("Fund name and symbol are required")

        initial_price = parse_quantity(spec.initial_price)
        if initial_price is None or initial_price <= ZERO:
            logger.warning("Rejected fund %s: invalid initial price %r", symbol, spec.initial_price)
            raise ValidationError("Invalid initial price. Must be a positive number.")

        fund_id = spec.fund_id or new_fund_id()
        async with self.fund_repo.lock(fund_id):
            if await self.fund_repo.get(fund_id) is not None:
                raise ConflictError(f"Fund {fund_id} already exists")

            fund = Fund(
                id=fund_id,
                name=name,
                symbol=symbol,
                description=spec.description or "",
                strategy=spec.strategy or "",
                initial_price=initial_price,
                current_price=initial_price,
                change_24h=ZERO,
                price_history=[],
                created_at=spec.created_at or self.clock(),
            )
            await self.fund_repo.save(fund)

        logger.info("Created fund %s (%s) at NAV %s", fund.id, fund.symbol, initial_price)
        return fund

    async def update_price(self, fund_id: str, new_price: Any) -> PriceUpdate:
        """
        Set a new NAV, derive change24h and append to price history.

        Raises:
            ValidationError: new price not finite or not positive
            NotFoundError: unknown fund
        """
        price = parse_quantity(new_price)
        if price is None or price <= ZERO:
            raise ValidationError("Invalid price")

        async with self.fund_repo.lock(fund_id):
            fund = await self.fund_repo.get(fund_id)
            if fund is None:
                raise NotFoundError("Fund not found")

            old_price = fund.nav
            fund.change_24h = change_percent(old_price, price)
            fund.current_price = price
            fund.price_history.append(PricePoint(price=price, timestamp=self.clock()))
            if len(fund.price_history) > self.price_history_limit:
                fund.price_history = fund.price_history[-self.price_history_limit:]

            await self.fund_repo.save(fund)

        logger.info(
            "Updated fund %s NAV %s -> %s (%.2f%%)",
            fund_id, old_price, price, float(fund.change_24h),
        )
        return PriceUpdate(fund=fund, old_price=old_price, new_price=price, change_percent=fund.change_24h)

    async def find_fund(self, fund_id: str) -> Optional[Fund]:
        return await self.fund_repo.get(fund_id)

    async def get_fund(self, fund_id: str) -> Fund:
        fund = await self.fund_repo.get(fund_id)
        if fund is None:
            raise NotFoundError("Fund not found")
        return fund

    async def list_funds(self) -> List[Fund]:
        return await self.fund_repo.list_all()

    @staticmethod
    def current_nav(fund: Optional[Fund]) -> Decimal:
        """NAV used for settlement; 0 when the fund has no usable price"""
        if fund is None:
            return ZERO
        return fund.nav
