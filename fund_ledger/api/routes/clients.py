"""
Client API Routes
Registration and the signed-in client's own trades, profile and journal
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from fund_ledger.api.dependencies import Caller, get_caller, get_portal
from fund_ledger.domain.services.portal import PortalService

logger = logging.getLogger(__name__)
router = APIRouter()


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = ""
    address: Optional[str] = ""


class TradeRequest(BaseModel):
    """Shares may arrive as a number or numeric string"""
    model_config = ConfigDict(populate_by_name=True)

    fund_id: Optional[str] = Field(None, alias="fundId")
    action: Optional[str] = None
    shares: Any = None


@router.post("/clients/register")
async def register_client(
    request: RegisterRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    profile = await portal.register_client(
        client_id=caller.id,
        first_name=request.first_name or "",
        last_name=request.last_name or "",
        email=request.email or "",
        phone=request.phone or "",
        address=request.address or "",
    )
    return {"success": True, "profile": profile.to_dict()}


@router.post("/client/trade")
async def trade(
    request: TradeRequest,
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    result = await portal.trade(caller.id, request.fund_id or "", request.action, request.shares)
    return {"success": True, **result.to_dict()}


@router.get("/client/profile")
async def get_profile(
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
):
    return await portal.get_client_view(caller.id)


@router.get("/client/transactions")
async def get_transactions(
    caller: Caller = Depends(get_caller),
    portal: PortalService = Depends(get_portal),
) -> List[dict]:
    transactions = await portal.get_transactions(caller.id)
    return [tx.to_dict() for tx in transactions]
