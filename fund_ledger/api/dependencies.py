"""
Request dependencies: portal lookup and caller identity.

Authentication happens upstream; the gateway forwards the verified
identity in ``X-Caller-Id``.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from fund_ledger.config import Settings, settings as default_settings
from fund_ledger.domain.services.portal import PortalService


@dataclass(frozen=True)
class Caller:
    id: str
    is_admin: bool


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_portal(request: Request) -> PortalService:
    portal = getattr(request.app.state, "portal", None)
    if portal is None:
        raise HTTPException(status_code=503, detail="Portal service not initialized")
    return portal


def get_caller(
    x_caller_id: Optional[str] = Header(None, alias="X-Caller-Id"),
    app_settings: Settings = Depends(get_settings),
) -> Caller:
    caller_id = (x_caller_id or "").strip()
    if not caller_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return Caller(id=caller_id, is_admin=caller_id in app_settings.ADMIN_CALLER_IDS)
