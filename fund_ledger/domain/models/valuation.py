"""
DOMAIN MODELS — VALUATION

Immutable structures for live position and portfolio valuation.
No store access. Always recomputed, never persisted.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List

from fund_ledger.utils.numbers import ZERO, HUNDRED, round_display


@dataclass(frozen=True)
class PositionValuation:
    """
    Live valuation of one position at the current NAV.
    """
    fund_id: str
    fund_name: str
    fund_symbol: str
    shares: Decimal
    average_price: Decimal
    current_price: Decimal
    price_is_live: bool

    @property
    def cost_basis(self) -> Decimal:
        return self.shares * self.average_price

    @property
    def value(self) -> Decimal:
        return self.shares * self.current_price

    @property
    def gain(self) -> Decimal:
        return self.value - self.cost_basis

    @property
    def gain_percent(self) -> Decimal:
        if self.cost_basis == ZERO:
            return ZERO
        return self.gain / self.cost_basis * HUNDRED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fundId": self.fund_id,
            "fundName": self.fund_name,
            "fundSymbol": self.fund_symbol,
            "shares": float(self.shares),
            "averagePrice": round_display(self.average_price),
            "currentPrice": round_display(self.current_price),
            "costBasis": round_display(self.cost_basis),
            "value": round_display(self.value),
            "gain": round_display(self.gain),
            "gainPercent": round_display(self.gain_percent),
            "priceStatus": "LIVE" if self.price_is_live else "COST_BASIS",
        }


@dataclass(frozen=True)
class PortfolioValuation:
    """
    Valuation of a client's whole portfolio.
    """
    cash_balance: Decimal
    positions: List[PositionValuation]

    @property
    def total_value(self) -> Decimal:
        return sum((p.value for p in self.positions), ZERO)

    @property
    def total_gain(self) -> Decimal:
        return sum((p.gain for p in self.positions), ZERO)

    @property
    def total_gain_percent(self) -> Decimal:
        denominator = self.total_value - self.total_gain
        if denominator <= ZERO:
            return ZERO
        return self.total_gain / denominator * HUNDRED

    @property
    def total_equity(self) -> Decimal:
        return self.cash_balance + self.total_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cashBalance": round_display(self.cash_balance),
            "totalPortfolioValue": round_display(self.total_value),
            "totalGain": round_display(self.total_gain),
            "totalGainPercent": round_display(self.total_gain_percent),
            "totalEquity": round_display(self.total_equity),
            "positions": [p.to_dict() for p in self.positions],
        }
