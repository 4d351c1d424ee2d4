"""
TRADE ENGINE

Orchestrates a client buy/sell against a fund at its current NAV.

STATES:
REQUESTED -> VALIDATED -> PRICED -> SETTLED
any state -> REJECTED (error propagates, nothing persisted)

The engine holds no state of its own; pricing and settlement happen inside
the ledger under the client's lock.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from fund_ledger.core.errors import LedgerError, ValidationError
from fund_ledger.domain.models import Position, TradeAction, Transaction
from fund_ledger.domain.services.client_ledger import ClientLedger, TradeSettlement
from fund_ledger.domain.services.fund_registry import FundRegistry
from fund_ledger.utils.numbers import ZERO, parse_quantity, to_float

logger = logging.getLogger(__name__)


class TradeState(str, Enum):
    REQUESTED = "REQUESTED"
    VALIDATED = "VALIDATED"
    PRICED = "PRICED"
    SETTLED = "SETTLED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class TradeResult:
    transaction: Transaction
    new_balance: Decimal
    position: Optional[Position]
    state: TradeState = TradeState.SETTLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction": self.transaction.to_dict(),
            "newBalance": to_float(self.new_balance),
            "position": self.position.to_dict() if self.position else None,
        }


def parse_action(action: Any) -> TradeAction:
    try:
        return TradeAction(str(action).lower())
    except ValueError:
        raise ValidationError('Invalid action. Use "buy" or "sell"')


class TradeEngine:
    """
    Trade Engine
    Validates a trade request, resolves the fund and hands settlement to the ledger
    """

    def __init__(
        self,
        registry: FundRegistry,
        ledger: ClientLedger,
        enforce_fund_access: bool = False,
    ):
        self.registry = registry
        self.ledger = ledger
        self.enforce_fund_access = enforce_fund_access

    async def execute(self, client_id: str, fund_id: str, action: Any, shares: Any) -> TradeResult:
        """
        Execute a buy or sell.

        Raises whatever the failing stage raised; the rejection is logged
        with the stage it happened in.
        """
        state = TradeState.REQUESTED
        try:
            if not client_id or not fund_id or shares is None:
                raise ValidationError("Invalid trade parameters")
            trade_action = parse_action(action)
            quantity = parse_quantity(shares)
            if quantity is None or quantity <= ZERO:
                raise ValidationError("Invalid trade parameters")

            fund = await self.registry.get_fund(fund_id)
            state = TradeState.VALIDATED

            # NAV is taken inside the ledger while the client lock is held
            def mark_priced(nav: Decimal) -> None:
                nonlocal state
                state = TradeState.PRICED

            settlement: TradeSettlement
            if trade_action == TradeAction.BUY:
                settlement = await self.ledger.apply_buy(
                    client_id, fund, quantity, require_fund_access=self.enforce_fund_access,
                    on_priced=mark_priced,
                )
            else:
                settlement = await self.ledger.apply_sell(
                    client_id, fund, quantity, require_fund_access=self.enforce_fund_access,
                    on_priced=mark_priced,
                )
        except LedgerError as exc:
            logger.warning(
                "Trade rejected at %s: client=%s fund=%s action=%s shares=%s: %s",
                state.value, client_id, fund_id, action, shares, exc.message,
            )
            raise

        logger.info(
            "Trade settled: %s client=%s fund=%s shares=%s amount=%s",
            settlement.transaction.type.value, client_id, fund_id,
            settlement.transaction.shares, settlement.transaction.amount,
        )
        return TradeResult(
            transaction=settlement.transaction,
            new_balance=settlement.new_balance,
            position=settlement.position,
            state=TradeState.SETTLED,
        )
