"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.am_admin.api.router import router as admin_router
from src.am_auction.api.router import router as auction_router
from src.am_bidding.api.router import router as bid_router
from src.am_common.database import engine
from src.am_common.enums import ErrorCategory
from src.am_common.errors import AppError
from src.am_common.redis_client import close_redis, get_redis
from src.am_common.response import error_response
from src.am_events.api.router import router as notification_router
from src.am_gateway.middleware.request_log import RequestLogMiddleware
from src.am_settlement.api.router import router as payment_router
from src.am_wallet.api.router import router as wallet_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.category is ErrorCategory.INTEGRITY:
        logger.error("[%s] %s failed: %s", request.method, request.url.path, exc.message)
    resp = error_response(exc.code, exc.message, exc.category.value, exc.details)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auction_router, prefix="/api/v1")
app.include_router(bid_router, prefix="/api/v1")
app.include_router(payment_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
