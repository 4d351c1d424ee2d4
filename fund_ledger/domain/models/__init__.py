"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    ClientStatus,
    KycStatus,
    TradeAction,
    TransactionStatus,
    TransactionType,

    # Entities
    ClientProfile,
    Fund,
    PortfolioPoint,
    Position,
    PricePoint,
    Transaction,
)
from .valuation import PortfolioValuation, PositionValuation

__all__ = [
    # Enums
    "ClientStatus",
    "KycStatus",
    "TradeAction",
    "TransactionStatus",
    "TransactionType",

    # Entities
    "ClientProfile",
    "Fund",
    "PortfolioPoint",
    "Position",
    "PricePoint",
    "Transaction",

    # Valuation
    "PortfolioValuation",
    "PositionValuation",
]
