"""
PORTAL SERVICE

Single entry point used by the request boundary.

Wires the registry, ledger, trade engine and valuation view over one store
and applies the admin checks. Callers pass a pre-verified identity; this
layer does not authenticate.
"""

import logging
from typing import Any, Dict, List, Optional

from fund_ledger.config import Settings
from fund_ledger.core.errors import AuthorizationError
from fund_ledger.domain.models import ClientProfile, Fund, Transaction
from fund_ledger.domain.services.client_ledger import ClientLedger, DepositResult
from fund_ledger.domain.services.fund_registry import FundRegistry, FundSpec, PriceUpdate
from fund_ledger.domain.services.journal import ReconciliationReport
from fund_ledger.domain.services.trade_engine import TradeEngine, TradeResult
from fund_ledger.domain.services.valuation_view import ValuationView
from fund_ledger.infrastructure.kv.store import KeyValueStore
from fund_ledger.infrastructure.repositories.client_repository import ClientRepository
from fund_ledger.infrastructure.repositories.fund_repository import FundRepository

logger = logging.getLogger(__name__)


def require_admin(caller_is_admin: bool, message: str) -> None:
    if not caller_is_admin:
        logger.warning("Admin operation refused: %s", message)
        raise AuthorizationError(message)


class PortalService:
    """Facade over the ledger components"""

    def __init__(
        self,
        store: KeyValueStore,
        registry: FundRegistry,
        ledger: ClientLedger,
        engine: TradeEngine,
        valuation: ValuationView,
    ):
        self.store = store
        self.registry = registry
        self.ledger = ledger
        self.engine = engine
        self.valuation = valuation

    # ------------------------------------------------------------------
    # Funds
    # ------------------------------------------------------------------

    async def create_fund(self, spec: FundSpec, caller_is_admin: bool) -> Fund:
        require_admin(caller_is_admin, "Only admin can create funds")
        return await self.registry.create_fund(spec)

    async def update_fund_price(self, fund_id: str, new_price: Any, caller_is_admin: bool) -> PriceUpdate:
        require_admin(caller_is_admin, "Only admin can update fund prices")
        return await self.registry.update_price(fund_id, new_price)

    async def list_funds(self) -> List[Fund]:
        return await self.registry.list_funds()

    async def get_fund(self, fund_id: str) -> Fund:
        return await self.registry.get_fund(fund_id)

    # ------------------------------------------------------------------
    # Clients
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
        return await self.ledger.register_client(client_id, first_name, last_name, email, phone, address)

    async def deposit(self, client_id: str, amount: Any, note: Optional[str], caller_is_admin: bool) -> DepositResult:
        require_admin(caller_is_admin, "Only admin can deposit funds")
        return await self.ledger.deposit(client_id, amount, note)

    async def trade(self, client_id: str, fund_id: str, action: Any, shares: Any) -> TradeResult:
        return await self.engine.execute(client_id, fund_id, action, shares)

    async def grant_fund_access(self, client_id: str, fund_id: str, caller_is_admin: bool) -> ClientProfile:
        require_admin(caller_is_admin, "Only admin can grant fund access")
        return await self.ledger.grant_fund_access(client_id, fund_id)

    async def update_client_status(
        self,
        client_id: str,
        status: Optional[str],
        kyc: Optional[str],
        caller_is_admin: bool,
    ) -> ClientProfile:
        require_admin(caller_is_admin, "Only admin can update client status")
        return await self.ledger.update_status(client_id, status=status, kyc=kyc)

    async def get_client_view(self, client_id: str) -> Dict[str, Any]:
        """Profile with refreshed currentValue plus the live portfolio valuation"""
        profile = await self.ledger.get_client(client_id)
        funds = await self._funds_by_id()
        return {
            "profile": self.valuation.refresh(profile, funds).to_dict(),
            "portfolio": self.valuation.compute(profile, funds).to_dict(),
        }

    async def get_client_view_as_admin(self, client_id: str, caller_is_admin: bool) -> Dict[str, Any]:
        require_admin(caller_is_admin, "Only admin can view client accounts")
        return await self.get_client_view(client_id)

    async def list_clients(self, caller_is_admin: bool) -> List[ClientProfile]:
        require_admin(caller_is_admin, "Only admin can list clients")
        profiles = await self.ledger.list_clients()
        funds = await self._funds_by_id()
        return [self.valuation.refresh(p, funds) for p in profiles]

    async def get_transactions(self, client_id: str) -> List[Transaction]:
        return await self.ledger.get_transactions(client_id)

    async def reconcile(self, client_id: str, caller_is_admin: bool) -> ReconciliationReport:
        require_admin(caller_is_admin, "Only admin can reconcile client ledgers")
        return await self.ledger.reconcile(client_id)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health(self) -> bool:
        return await self.store.ping()

    async def _funds_by_id(self) -> Dict[str, Fund]:
        return {fund.id: fund for fund in await self.registry.list_funds()}


def build_portal(store: KeyValueStore, settings: Settings) -> PortalService:
    """Wire every component over ``store`` using ``settings``"""
    fund_repo = FundRepository(store)
    client_repo = ClientRepository(store)
    registry = FundRegistry(fund_repo, price_history_limit=settings.PRICE_HISTORY_LIMIT)
    ledger = ClientLedger(
        client_repo,
        fund_repo,
        portfolio_history_limit=settings.PORTFOLIO_HISTORY_LIMIT,
    )
    engine = TradeEngine(registry, ledger, enforce_fund_access=settings.ENFORCE_FUND_ACCESS)
    return PortalService(store, registry, ledger, engine, ValuationView())
