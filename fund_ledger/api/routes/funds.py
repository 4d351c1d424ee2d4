"""
Fund API Routes
Public fund catalogue
"""

from typing import List

from fastapi import APIRouter, Depends

from fund_ledger.api.dependencies import get_portal
from fund_ledger.domain.services.portal import PortalService

router = APIRouter()


@router.get("")
async def list_funds(portal: PortalService = Depends(get_portal)) -> List[dict]:
    funds = await portal.list_funds()
    return [fund.to_dict() for fund in funds]


@router.get("/{fund_id}")
async def get_fund(fund_id: str, portal: PortalService = Depends(get_portal)) -> dict:
    fund = await portal.get_fund(fund_id)
    return fund.to_dict()
