"""
CLIENT LEDGER

Single source of truth for client cash, positions and journal.

RESPONSIBILITIES:
- Register clients and maintain status / KYC
- Apply deposits
- Settle buys and sells with weighted-average cost
- Append journal entries and portfolio value snapshots
- Grant fund access

RULES:
- Every mutation runs under the client's store lock
- Validate everything before touching state; persist once at the end
- Sells never change averagePrice
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, AsyncContextManager, Callable, List, Optional, Protocol, TypeVar

from fund_ledger.core.errors import (
    AuthorizationError,
    ConflictError,
    InsufficientFundsError,
    InsufficientSharesError,
    NotFoundError,
    PricingError,
    ValidationError,
)
from fund_ledger.domain.models import (
    ClientProfile,
    ClientStatus,
    Fund,
    KycStatus,
    PortfolioPoint,
    Position,
    Transaction,
    TransactionType,
)
from fund_ledger.domain.services.fund_registry import FundStore
from fund_ledger.domain.services.journal import ReconciliationReport, reconcile
from fund_ledger.utils.ids import new_transaction_id
from fund_ledger.utils.numbers import ZERO, parse_quantity, to_float
from fund_ledger.utils.time import now_iso

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO_HISTORY_LIMIT = 100

T = TypeVar("T")


class ClientStore(Protocol):
    """Protocol for client profile access - ASYNC"""

    def lock(self, client_id: str) -> AsyncContextManager[None]:
        ...

    def registration_lock(self) -> AsyncContextManager[None]:
        ...

    async def get(self, client_id: str) -> Optional[ClientProfile]:
        ...

    async def save(self, profile: ClientProfile) -> None:
        ...

    async def get_id_by_email(self, email: str) -> Optional[str]:
        ...

    async def index_email(self, email: str, client_id: str) -> None:
        ...

    async def list_all(self) -> List[ClientProfile]:
        ...


@dataclass(frozen=True)
class DepositResult:
    transaction: Transaction
    new_balance: Decimal

    def to_dict(self) -> dict:
        return {"transaction": self.transaction.to_dict(), "newBalance": to_float(self.new_balance)}


@dataclass(frozen=True)
class TradeSettlement:
    """Outcome of a settled buy or sell; position is None after a full exit"""
    transaction: Transaction
    new_balance: Decimal
    position: Optional[Position]


def parse_positive(value: Any, message: str) -> Decimal:
    amount = parse_quantity(value)
    if amount is None or amount <= ZERO:
        raise ValidationError(message)
    return amount


class ClientLedger:
    """
    Client Ledger
    Applies deposits and trades to ClientProfile records
    """

    def __init__(
        self,
        client_repo: ClientStore,
        fund_repo: FundStore,
        portfolio_history_limit: int = DEFAULT_PORTFOLIO_HISTORY_LIMIT,
        clock: Callable[[], str] = now_iso,
        id_factory: Callable[[], str] = new_transaction_id,
    ):
        self.client_repo = client_repo
        self.fund_repo = fund_repo
        self.portfolio_history_limit = portfolio_history_limit
        self.clock = clock
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_client(self, client_id: str) -> ClientProfile:
        profile = await self.client_repo.get(client_id)
        if profile is None:
            raise NotFoundError("Client not found")
        return profile

    async def list_clients(self) -> List[ClientProfile]:
        return await self.client_repo.list_all()

    async def get_transactions(self, client_id: str) -> List[Transaction]:
        """Journal, newest first"""
        profile = await self.get_client(client_id)
        return list(profile.transactions)

    async def reconcile(self, client_id: str) -> ReconciliationReport:
        profile = await self.get_client(client_id)
        report = reconcile(profile)
        if not report.is_consistent:
            logger.warning("Client %s ledger inconsistent: %s", client_id, report.issues)
        return report

    # ------------------------------------------------------------------
    # Registration & admin maintenance
    # ------------------------------------------------------------------

    async def register_client(
        self,
        client_id: str,
        first_name: str,
        last_name: str,
        email: str,
        phone: str = "",
        address: str = "",
    ) -> ClientProfile:
        """
        Create an empty profile for an authenticated identity.

        Raises:
            ValidationError: missing required fields
            ConflictError: email or id already registered
        """
        email = (email or "").strip()
        if not client_id or not (first_name or "").strip() or not (last_name or "").strip() or not email:
            raise ValidationError("Missing required fields")
        if "@" not in email:
            raise ValidationError("Invalid email address")

        async with self.client_repo.registration_lock():
            if await self.client_repo.get_id_by_email(email):
                raise ConflictError("An account with this email already exists")
            if await self.client_repo.get(client_id) is not None:
                raise ConflictError("Client already exists")

            profile = ClientProfile(
                id=client_id,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                email=email,
                phone=phone or "",
                address=address or "",
                registration_date=self.clock(),
            )
            await self.client_repo.save(profile)
            await self.client_repo.index_email(email, client_id)

        logger.info("Registered client %s <%s>", client_id, email)
        return profile

    async def update_status(
        self,
        client_id: str,
        status: Optional[str] = None,
        kyc: Optional[str] = None,
    ) -> ClientProfile:
        try:
            new_status = ClientStatus(status) if status else None
            new_kyc = KycStatus(kyc) if kyc else None
        except ValueError:
            raise ValidationError("Invalid status or KYC value")

        def mutate(profile: ClientProfile) -> ClientProfile:
            if new_status is not None:
                profile.status = new_status
            if new_kyc is not None:
                profile.kyc = new_kyc
            return profile

        profile = await self._update(client_id, mutate)
        logger.info("Client %s status=%s kyc=%s", client_id, profile.status.value, profile.kyc.value)
        return profile

    async def grant_fund_access(self, client_id: str, fund_id: str) -> ClientProfile:
        """Idempotently add fund_id to the client's availableFunds"""
        async with self.client_repo.lock(client_id):
            profile = await self._load(client_id)
            if await self.fund_repo.get(fund_id) is None:
                raise NotFoundError("Fund not found")

            if profile.has_fund_access(fund_id):
                logger.info("Client %s already has access to fund %s", client_id, fund_id)
                return profile

            profile.available_funds.append(fund_id)
            await self.client_repo.save(profile)

        logger.info("Granted fund %s to client %s", fund_id, client_id)
        return profile

    # ------------------------------------------------------------------
    # Cash
    # ------------------------------------------------------------------

    async def deposit(self, client_id: str, amount: Any, note: Optional[str] = "") -> DepositResult:
        value = parse_positive(amount, "Invalid amount")

        def mutate(profile: ClientProfile) -> DepositResult:
            transaction = Transaction(
                id=self.id_factory(),
                type=TransactionType.DEPOSIT,
                amount=value,
                cash_delta=value,
                note=note or "",
                timestamp=self.clock(),
            )
            profile.cash_balance += value
            profile.transactions.insert(0, transaction)
            return DepositResult(transaction=transaction, new_balance=profile.cash_balance)

        result = await self._update(client_id, mutate)
        logger.info("Deposited %s to client %s (balance %s)", value, client_id, result.new_balance)
        return result

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    async def apply_buy(
        self,
        client_id: str,
        fund: Fund,
        shares: Any,
        require_fund_access: bool = False,
        on_priced: Optional[Callable[[Decimal], None]] = None,
    ) -> TradeSettlement:
        """
        Buy shares at the fund's NAV.

        The NAV is re-read from the fund store while the client lock is held,
        so the price used is the one current at settlement. ``on_priced`` is
        called with that NAV once it is taken.

        Raises:
            ValidationError, NotFoundError, AuthorizationError,
            PricingError, InsufficientFundsError
        """
        quantity = parse_positive(shares, "Invalid trade parameters")

        async with self.client_repo.lock(client_id):
            profile = await self._load(client_id)
            live = await self._live_fund(fund.id)
            self._check_access(profile, live, require_fund_access)
            nav = self._nav(live)
            if on_priced is not None:
                on_priced(nav)
            trade_amount = quantity * nav
            if profile.cash_balance < trade_amount:
                raise InsufficientFundsError("Insufficient cash balance")

            existing = profile.find_position(live.id)
            if existing is not None:
                new_shares = existing.shares + quantity
                position = replace(
                    existing,
                    shares=new_shares,
                    average_price=(existing.cost_basis + trade_amount) / new_shares,
                    current_value=new_shares * nav,
                )
            else:
                position = Position(
                    fund_id=live.id,
                    fund_name=live.name,
                    fund_symbol=live.symbol,
                    shares=quantity,
                    average_price=nav,
                    current_value=trade_amount,
                )

            profile.cash_balance -= trade_amount
            profile.put_position(position)
            transaction = self._record_trade(profile, TransactionType.BUY, live, quantity, nav, trade_amount)
            await self.client_repo.save(profile)

        logger.info("Client %s bought %s %s @ %s for %s", client_id, quantity, live.symbol, nav, trade_amount)
        return TradeSettlement(transaction=transaction, new_balance=profile.cash_balance, position=position)

    async def apply_sell(
        self,
        client_id: str,
        fund: Fund,
        shares: Any,
        require_fund_access: bool = False,
        on_priced: Optional[Callable[[Decimal], None]] = None,
    ) -> TradeSettlement:
        """
        Sell shares at the fund's NAV. averagePrice of what remains is kept.

        Raises:
            ValidationError, NotFoundError, AuthorizationError,
            InsufficientSharesError, PricingError
        """
        quantity = parse_positive(shares, "Invalid trade parameters")

        async with self.client_repo.lock(client_id):
            profile = await self._load(client_id)
            live = await self._live_fund(fund.id)
            self._check_access(profile, live, require_fund_access)
            existing = profile.find_position(live.id)
            if existing is None:
                raise NotFoundError("No position in this fund")
            if quantity > existing.shares:
                raise InsufficientSharesError(
                    f"Insufficient shares. You own {existing.shares.normalize():f} shares."
                )
            nav = self._nav(live)
            if on_priced is not None:
                on_priced(nav)
            trade_amount = quantity * nav

            remaining = existing.shares - quantity
            position: Optional[Position]
            if remaining == ZERO:
                position = None
                profile.drop_position(live.id)
            else:
                position = replace(existing, shares=remaining, current_value=remaining * nav)
                profile.put_position(position)

            profile.cash_balance += trade_amount
            transaction = self._record_trade(profile, TransactionType.SELL, live, quantity, nav, trade_amount)
            await self.client_repo.save(profile)

        logger.info("Client %s sold %s %s @ %s for %s", client_id, quantity, live.symbol, nav, trade_amount)
        return TradeSettlement(transaction=transaction, new_balance=profile.cash_balance, position=position)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load(self, client_id: str) -> ClientProfile:
        profile = await self.client_repo.get(client_id)
        if profile is None:
            raise NotFoundError("Client not found")
        return profile

    async def _update(self, client_id: str, mutate: Callable[[ClientProfile], T]) -> T:
        """
        Locked read-modify-write of one profile.

        ``mutate`` works on a freshly loaded copy; if it raises, nothing is saved.
        """
        async with self.client_repo.lock(client_id):
            profile = await self._load(client_id)
            result = mutate(profile)
            await self.client_repo.save(profile)
            return result

    async def _live_fund(self, fund_id: str) -> Fund:
        fund = await self.fund_repo.get(fund_id)
        if fund is None:
            raise NotFoundError("Fund not found")
        return fund

    @staticmethod
    def _nav(fund: Fund) -> Decimal:
        nav = fund.nav
        if nav <= ZERO:
            raise PricingError("Fund price not available")
        return nav

    @staticmethod
    def _check_access(profile: ClientProfile, fund: Fund, required: bool) -> None:
        if required and not profile.has_fund_access(fund.id):
            raise AuthorizationError("You do not have access to this fund")

    def _record_trade(
        self,
        profile: ClientProfile,
        tx_type: TransactionType,
        fund: Fund,
        shares: Decimal,
        nav: Decimal,
        trade_amount: Decimal,
    ) -> Transaction:
        timestamp = self.clock()
        transaction = Transaction(
            id=self.id_factory(),
            type=tx_type,
            fund_id=fund.id,
            fund_name=fund.name,
            fund_symbol=fund.symbol,
            shares=shares,
            price_per_share=nav,
            amount=trade_amount,
            cash_delta=Transaction.signed_delta(tx_type, trade_amount),
            timestamp=timestamp,
        )
        profile.transactions.insert(0, transaction)

        # Cached currentValue of every position, as of this trade
        portfolio_value = sum((p.current_value for p in profile.investments), ZERO)
        profile.portfolio_history.append(PortfolioPoint(timestamp=timestamp, value=portfolio_value))
        if len(profile.portfolio_history) > self.portfolio_history_limit:
            profile.portfolio_history = profile.portfolio_history[-self.portfolio_history_limit:]
        return transaction
