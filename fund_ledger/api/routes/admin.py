"""
Admin API Routes
Fund creation and pricing, client maintenance, deposits and audits

Every route requires an admin caller; non-admins get 403.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from fund_ledger.api.dependencies import Caller, get_caller, get_portal
from fund_ledger.domain.services.fund_registry import FundSpec
from fund_ledger.domain.services.portal import PortalService

logger = logging.getLogger(__name__)
router = APIRouter()


class CreateFundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    symbol: Optional[str] = None
    description: Optional[str] = ""
    strategy: Optional[str] = ""
    initial_price: Any = Field(None, alias="initialPrice")


class PriceUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_price: Any = Field(None, alias="newPrice")


class DepositRequest(BaseModel):
    amount: Any = None
    note: Optional[str] = ""


class GrantFundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fund_id: str = Field(..., alias="fundId")


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None
    kyc: Optional[str] = None


# -------------------------------------------------------------------
# Funds
# -------------------------------------------------------------------

@router.post("/funds")
async def create_fund(
    request: CreateFundRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    spec = FundSpec(
        name=request.name or "",
        symbol=request.symbol or "",
        initial_price=request.initial_price,
        description=request.description or "",
        strategy=request.strategy or "",
    )
    fund = await portal.create_fund(spec, caller_is_admin=caller.is_admin)
    return {"success": True, "fund": fund.to_dict()}


@router.put("/funds/{fund_id}/price")
async def update_fund_price(
    fund_id: str,
    request: PriceUpdateRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    update = await portal.update_fund_price(fund_id, request.new_price, caller_is_admin=caller.is_admin)
    return {"success": True, **update.to_dict()}


# -------------------------------------------------------------------
# Clients
# -------------------------------------------------------------------

@router.get("/clients")
async def list_clients(
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    profiles = await portal.list_clients(caller_is_admin=caller.is_admin)
    return {"clients": [p.to_dict() for p in profiles]}


@router.get("/clients/{client_id}")
async def get_client(
    client_id: str,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    return await portal.get_client_view_as_admin(client_id, caller_is_admin=caller.is_admin)


@router.post("/clients/{client_id}/deposit")
async def deposit(
    client_id: str,
    request: DepositRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    result = await portal.deposit(client_id, request.amount, request.note, caller_is_admin=caller.is_admin)
    return {"success": True, **result.to_dict()}


@router.post("/clients/{client_id}/funds")
async def grant_fund_access(
    client_id: str,
    request: GrantFundRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    profile = await portal.grant_fund_access(client_id, request.fund_id, caller_is_admin=caller.is_admin)
    return {"success": True, "client": profile.to_dict()}


@router.patch("/clients/{client_id}/status")
async def update_client_status(
    client_id: str,
    request: StatusUpdateRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    profile = await portal.update_client_status(
        client_id, request.status, request.kyc, caller_is_admin=caller.is_admin
    )
    return {"success": True, "client": profile.to_dict()}


@router.get("/clients/{client_id}/reconcile")
async def reconcile(
    client_id: str,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    report = await portal.reconcile(client_id, caller_is_admin=caller.is_admin)
    return report.to_dict()
