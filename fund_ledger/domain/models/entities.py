"""
Domain Models - Entities
Typed ledger records with no infrastructure dependencies.

Stored records use camelCase field names; ``to_dict`` / ``from_dict`` are
the only places that know about that shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from fund_ledger.core.errors import ValidationError
from fund_ledger.utils.numbers import ZERO, parse_decimal, to_float


class TransactionType(str, Enum):
    """Kind of journal entry"""
    DEPOSIT = "deposit"
    BUY = "buy"
    SELL = "sell"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"


class TradeAction(str, Enum):
    """Client trade direction"""
    BUY = "buy"
    SELL = "sell"


class ClientStatus(str, Enum):
    """Account status set by an admin"""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class KycStatus(str, Enum):
    """KYC review outcome"""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


def _required_decimal(data: Dict[str, Any], key: str, default: Optional[Decimal] = None) -> Decimal:
    value = parse_decimal(data.get(key))
    if value is None:
        if default is not None:
            return default
        raise ValidationError(f"Record field '{key}' is not a number")
    return value


@dataclass(frozen=True)
class PricePoint:
    """One NAV observation in a fund's price history"""
    price: Decimal
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"price": to_float(self.price), "timestamp": self.timestamp}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PricePoint":
        return PricePoint(price=_required_decimal(data, "price"), timestamp=str(data.get("timestamp", "")))


@dataclass
class Fund:
    """Admin-created tradable instrument"""
    id: str
    name: str
    symbol: str
    initial_price: Decimal
    current_price: Decimal
    description: str = ""
    strategy: str = ""
    change_24h: Decimal = ZERO
    price_history: List[PricePoint] = field(default_factory=list)
    created_at: str = ""

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Fund id cannot be empty")
        if self.initial_price <= ZERO:
            raise ValidationError("Invalid initial price. Must be a positive number.")
        if self.current_price <= ZERO:
            raise ValidationError("Invalid price")

    @property
    def nav(self) -> Decimal:
        """Price used for settlement: currentPrice, falling back to initialPrice"""
        if self.current_price > ZERO:
            return self.current_price
        if self.initial_price > ZERO:
            return self.initial_price
        return ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "description": self.description,
            "strategy": self.strategy,
            "currentPrice": to_float(self.current_price),
            "initialPrice": to_float(self.initial_price),
            "change24h": to_float(self.change_24h),
            "priceHistory": [point.to_dict() for point in self.price_history],
            "createdAt": self.created_at,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Fund":
        initial_price = _required_decimal(data, "initialPrice")
        return Fund(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            symbol=str(data.get("symbol") or ""),
            description=str(data.get("description") or ""),
            strategy=str(data.get("strategy") or ""),
            initial_price=initial_price,
            current_price=_required_decimal(data, "currentPrice", default=initial_price),
            change_24h=_required_decimal(data, "change24h", default=ZERO),
            price_history=[PricePoint.from_dict(p) for p in data.get("priceHistory") or []],
            created_at=str(data.get("createdAt") or ""),
        )


@dataclass(frozen=True)
class Position:
    """A client's holding in one fund"""
    fund_id: str
    fund_name: str
    fund_symbol: str
    shares: Decimal
    average_price: Decimal
    current_value: Decimal

    @property
    def cost_basis(self) -> Decimal:
        return self.shares * self.average_price

    def revalued(self, nav: Decimal) -> "Position":
        return replace(self, current_value=self.shares * nav)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fundId": self.fund_id,
            "fundName": self.fund_name,
            "fundSymbol": self.fund_symbol,
            "shares": to_float(self.shares),
            "averagePrice": to_float(self.average_price),
            "currentValue": to_float(self.current_value),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Position":
        shares = _required_decimal(data, "shares")
        average_price = _required_decimal(data, "averagePrice")
        return Position(
            fund_id=str(data.get("fundId", "")),
            fund_name=str(data.get("fundName") or ""),
            fund_symbol=str(data.get("fundSymbol") or ""),
            shares=shares,
            average_price=average_price,
            current_value=_required_decimal(data, "currentValue", default=shares * average_price),
        )


@dataclass(frozen=True)
class Transaction:
    """
    Immutable journal entry.

    ``amount`` is unsigned; ``cash_delta`` carries the signed effect on the
    cash balance so readers never infer direction from ``type``.
    """
    id: str
    type: TransactionType
    amount: Decimal
    cash_delta: Decimal
    timestamp: str
    status: TransactionStatus = TransactionStatus.COMPLETED
    fund_id: Optional[str] = None
    fund_name: Optional[str] = None
    fund_symbol: Optional[str] = None
    shares: Optional[Decimal] = None
    price_per_share: Optional[Decimal] = None
    note: Optional[str] = None

    def __post_init__(self):
        if self.amount < ZERO:
            raise ValidationError("Transaction amount must not be negative")
        expected = -self.amount if self.type == TransactionType.BUY else self.amount
        if self.cash_delta != expected:
            raise ValidationError("Transaction cash delta does not match its type")
        if self.type != TransactionType.DEPOSIT and (self.fund_id is None or self.shares is None):
            raise ValidationError("Trade transactions require a fund and a share count")

    @staticmethod
    def signed_delta(tx_type: TransactionType, amount: Decimal) -> Decimal:
        return -amount if tx_type == TransactionType.BUY else amount

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "amount": to_float(self.amount),
            "cashDelta": to_float(self.cash_delta),
            "timestamp": self.timestamp,
            "status": self.status.value,
        }
        if self.fund_id is not None:
            data["fundId"] = self.fund_id
            data["fundName"] = self.fund_name
            data["fundSymbol"] = self.fund_symbol
        if self.shares is not None:
            data["shares"] = to_float(self.shares)
        if self.price_per_share is not None:
            data["pricePerShare"] = to_float(self.price_per_share)
        if self.note is not None:
            data["note"] = self.note
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Transaction":
        tx_type = TransactionType(data.get("type"))
        amount = abs(_required_decimal(data, "amount"))
        # Records written before cashDelta existed derive it from the type
        cash_delta = parse_decimal(data.get("cashDelta"))
        if cash_delta is None:
            cash_delta = Transaction.signed_delta(tx_type, amount)
        return Transaction(
            id=str(data.get("id", "")),
            type=tx_type,
            amount=amount,
            cash_delta=cash_delta,
            timestamp=str(data.get("timestamp") or ""),
            status=TransactionStatus(data.get("status") or TransactionStatus.COMPLETED.value),
            fund_id=data.get("fundId"),
            fund_name=data.get("fundName"),
            fund_symbol=data.get("fundSymbol"),
            shares=parse_decimal(data.get("shares")),
            price_per_share=parse_decimal(data.get("pricePerShare")),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class PortfolioPoint:
    """Total position value snapshot taken after a trade"""
    timestamp: str
    value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "value": to_float(self.value)}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PortfolioPoint":
        return PortfolioPoint(timestamp=str(data.get("timestamp") or ""), value=_required_decimal(data, "value"))


@dataclass
class ClientProfile:
    """Per-client cash, positions and journal; stored as one record"""
    id: str
    first_name: str
    last_name: str
    email: str
    cash_balance: Decimal = ZERO
    status: ClientStatus = ClientStatus.PENDING
    kyc: KycStatus = KycStatus.PENDING
    phone: str = ""
    address: str = ""
    registration_date: str = ""
    available_funds: List[str] = field(default_factory=list)
    investments: List[Position] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    portfolio_history: List[PortfolioPoint] = field(default_factory=list)

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Client id cannot be empty")
        if self.cash_balance < ZERO:
            raise ValidationError("Cash balance cannot be negative")

    def find_position(self, fund_id: str) -> Optional[Position]:
        for position in self.investments:
            if position.fund_id == fund_id:
                return position
        return None

    def put_position(self, position: Position) -> None:
        """Insert or replace the position for ``position.fund_id``, keeping order"""
        for index, existing in enumerate(self.investments):
            if existing.fund_id == position.fund_id:
                self.investments[index] = position
                return
        self.investments.append(position)

    def drop_position(self, fund_id: str) -> None:
        self.investments = [p for p in self.investments if p.fund_id != fund_id]

    def has_fund_access(self, fund_id: str) -> bool:
        return fund_id in self.available_funds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "cashBalance": to_float(self.cash_balance),
            "status": self.status.value,
            "kyc": self.kyc.value,
            "registrationDate": self.registration_date,
            "availableFunds": list(self.available_funds),
            "investments": [p.to_dict() for p in self.investments],
            "transactions": [t.to_dict() for t in self.transactions],
            "portfolioHistory": [p.to_dict() for p in self.portfolio_history],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ClientProfile":
        available: List[str] = []
        for fund_id in data.get("availableFunds") or []:
            if fund_id not in available:
                available.append(fund_id)
        return ClientProfile(
            id=str(data.get("id", "")),
            first_name=str(data.get("firstName") or ""),
            last_name=str(data.get("lastName") or ""),
            email=str(data.get("email") or ""),
            phone=str(data.get("phone") or ""),
            address=str(data.get("address") or ""),
            cash_balance=_required_decimal(data, "cashBalance", default=ZERO),
            status=ClientStatus(data.get("status") or ClientStatus.PENDING.value),
            kyc=KycStatus(data.get("kyc") or KycStatus.PENDING.value),
            registration_date=str(data.get("registrationDate") or ""),
            available_funds=available,
            investments=[Position.from_dict(p) for p in data.get("investments") or []],
            transactions=[Transaction.from_dict(t) for t in data.get("transactions") or []],
            portfolio_history=[PortfolioPoint.from_dict(p) for p in data.get("portfolioHistory") or []],
        )
