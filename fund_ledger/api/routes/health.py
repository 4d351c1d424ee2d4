from fastapi import APIRouter, Depends

from fund_ledger.api.dependencies import get_portal, get_settings
from fund_ledger.config import Settings
from fund_ledger.domain.services.portal import PortalService

router = APIRouter()


@router.get("/health")
async def health(
    portal: PortalService = Depends(get_portal),
    app_settings: Settings = Depends(get_settings),
):
    store_connected = await portal.health()
    return {
        "status": "healthy" if store_connected else "degraded",
        "service": "Fund Portal Ledger",
        "store": {
            "backend": app_settings.STORE_BACKEND,
            "connected": store_connected,
        },
    }
