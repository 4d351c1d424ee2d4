"""
FastAPI Main Application
Fund portal ledger: fund pricing, client cash and trades
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fund_ledger.config import Settings, settings as default_settings
from fund_ledger.core.errors import LedgerError
from fund_ledger.core.logging import get_logger, setup_logging
from fund_ledger.domain.services.portal import build_portal
from fund_ledger.infrastructure.kv.factory import create_store
from fund_ledger.infrastructure.kv.store import KeyValueStore

logger = get_logger(__name__)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Surface ledger errors verbatim with their status"""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def create_app(
    app_settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
) -> FastAPI:
    """
    Build the application.

    ``store`` overrides the backend chosen by settings (tests pass an
    in-memory store they can inspect).
    """
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        # ===================
        # STARTUP
        # ===================
        logger.info("=" * 60)
        logger.info("Starting Fund Portal Ledger (%s)", app_settings.APP_ENV)
        logger.info("=" * 60)

        kv_store = store or create_store(app_settings)
        app.state.settings = app_settings
        app.state.store = kv_store
        app.state.portal = build_portal(kv_store, app_settings)

        if await kv_store.ping():
            logger.info("Key-value store reachable (%s)", app_settings.STORE_BACKEND)
        else:
            logger.warning("Key-value store not reachable (%s)", app_settings.STORE_BACKEND)
        logger.info(
            "Fund access enforcement on trades: %s",
            "enabled" if app_settings.ENFORCE_FUND_ACCESS else "disabled",
        )

        yield

        # ===================
        # SHUTDOWN
        # ===================
        logger.info("Shutting down Fund Portal Ledger...")
        await kv_store.close()
        logger.info("Key-value store closed")

    app = FastAPI(
        title="Fund Portal Ledger",
        description="Fund NAV pricing, client cash and weighted-average trade ledger",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LedgerError, ledger_error_handler)

    from fund_ledger.api.routes import admin, clients, funds, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(funds.router, prefix="/api/v1/funds", tags=["Funds"])
    app.include_router(clients.router, prefix="/api/v1", tags=["Clients"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
    return app


setup_logging(default_settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fund_ledger.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.DEBUG,
    )
