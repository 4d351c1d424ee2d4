"""
Journal replay.

Rebuilds cash and positions from transactions alone, using the same
average-cost rules as the ledger. Used to audit stored profiles.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List

from fund_ledger.domain.models import ClientProfile, Transaction, TransactionType
from fund_ledger.utils.numbers import ZERO

# Stored numbers pass through JSON floats; differences below this are noise
TOLERANCE = Decimal("0.000001")


@dataclass(frozen=True)
class ReplayedPosition:
    shares: Decimal
    average_price: Decimal


@dataclass(frozen=True)
class LedgerState:
    cash_balance: Decimal
    positions: Dict[str, ReplayedPosition]
    anomalies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReconciliationReport:
    client_id: str
    is_consistent: bool
    issues: List[str]
    replayed: LedgerState

    def to_dict(self) -> dict:
        return {
            "clientId": self.client_id,
            "isConsistent": self.is_consistent,
            "issues": list(self.issues),
            "replayedCashBalance": float(self.replayed.cash_balance),
            "replayedPositions": {
                fund_id: {"shares": float(p.shares), "averagePrice": float(p.average_price)}
                for fund_id, p in self.replayed.positions.items()
            },
        }


def replay(transactions: Iterable[Transaction]) -> LedgerState:
    """
    Fold transactions, oldest first, into a ledger state.
    """
    cash = ZERO
    positions: Dict[str, ReplayedPosition] = {}
    anomalies: List[str] = []

    for tx in transactions:
        cash += tx.cash_delta
        if tx.type == TransactionType.DEPOSIT:
            continue

        held = positions.get(tx.fund_id)
        if tx.type == TransactionType.BUY:
            if held is None:
                positions[tx.fund_id] = ReplayedPosition(shares=tx.shares, average_price=tx.price_per_share)
            else:
                shares = held.shares + tx.shares
                cost = held.shares * held.average_price + tx.amount
                positions[tx.fund_id] = ReplayedPosition(shares=shares, average_price=cost / shares)
            continue

        # sell
        if held is None or tx.shares > held.shares + TOLERANCE:
            anomalies.append(f"{tx.id}: sells more {tx.fund_id} shares than held")
            continue
        remaining = held.shares - tx.shares
        if remaining <= TOLERANCE:
            del positions[tx.fund_id]
        else:
            positions[tx.fund_id] = ReplayedPosition(shares=remaining, average_price=held.average_price)

    return LedgerState(cash_balance=cash, positions=positions, anomalies=anomalies)


def reconcile(profile: ClientProfile) -> ReconciliationReport:
    """Compare a stored profile against the replay of its own journal."""
    # Journal is stored newest-first
    state = replay(reversed(profile.transactions))
    issues = list(state.anomalies)

    if abs(state.cash_balance - profile.cash_balance) > TOLERANCE:
        issues.append(
            f"cashBalance {profile.cash_balance} differs from journal {state.cash_balance}"
        )

    stored = {p.fund_id: p for p in profile.investments}
    for fund_id in sorted(set(stored) | set(state.positions)):
        position = stored.get(fund_id)
        replayed = state.positions.get(fund_id)
        if position is None:
            issues.append(f"{fund_id}: journal holds {replayed.shares} shares but no position is stored")
        elif replayed is None:
            issues.append(f"{fund_id}: stored position has no journal history")
        else:
            if abs(position.shares - replayed.shares) > TOLERANCE:
                issues.append(f"{fund_id}: shares {position.shares} differ from journal {replayed.shares}")
            if abs(position.average_price - replayed.average_price) > TOLERANCE:
                issues.append(
                    f"{fund_id}: averagePrice {position.average_price} differs from journal {replayed.average_price}"
                )

    return ReconciliationReport(
        client_id=profile.id,
        is_consistent=not issues,
        issues=issues,
        replayed=state,
    )
