"""
VALUATION VIEW

Read-only live valuation of client portfolios.

RULES:
- Never persists anything
- Missing fund or unusable price -> value at average cost
"""

import copy
import logging
from typing import Iterable, Mapping, Optional, Union

from fund_ledger.domain.models import (
    ClientProfile,
    Fund,
    PortfolioValuation,
    Position,
    PositionValuation,
)
from fund_ledger.utils.numbers import ZERO

logger = logging.getLogger(__name__)

FundLookup = Union[Mapping[str, Fund], Iterable[Fund]]


def _index(funds: FundLookup) -> Mapping[str, Fund]:
    if isinstance(funds, Mapping):
        return funds
    return {fund.id: fund for fund in funds}


class ValuationView:
    """Computes position and portfolio values from current fund NAVs"""

    def value_position(self, position: Position, fund: Optional[Fund]) -> PositionValuation:
        price = fund.current_price if fund is not None else ZERO
        is_live = price > ZERO
        if not is_live:
            logger.debug("No live price for %s, valuing at cost", position.fund_id)
            price = position.average_price

        return PositionValuation(
            fund_id=position.fund_id,
            fund_name=position.fund_name,
            fund_symbol=position.fund_symbol,
            shares=position.shares,
            average_price=position.average_price,
            current_price=price,
            price_is_live=is_live,
        )

    def compute(self, profile: ClientProfile, funds: FundLookup) -> PortfolioValuation:
        by_id = _index(funds)
        return PortfolioValuation(
            cash_balance=profile.cash_balance,
            positions=[self.value_position(p, by_id.get(p.fund_id)) for p in profile.investments],
        )

    def refresh(self, profile: ClientProfile, funds: FundLookup) -> ClientProfile:
        """Copy of the profile with every cached currentValue recomputed"""
        by_id = _index(funds)
        refreshed = copy.deepcopy(profile)
        refreshed.investments = [
            p.revalued(self.value_position(p, by_id.get(p.fund_id)).current_price)
            for p in profile.investments
        ]
        return refreshed
