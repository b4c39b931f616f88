"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.ah_account.api.router import router as account_router
from src.ah_auction.api.router import router as auction_router
from src.ah_auction.application.service import get_auction_service
from src.ah_common.database import async_session_factory, engine
from src.ah_common.errors import AppError
from src.ah_common.redis_client import close_redis, get_redis
from src.ah_common.response import error_response
from src.ah_gateway.api.router import router as auth_router
from src.ah_gateway.middleware.request_log import RequestLogMiddleware
from src.ah_scheduler.sweeper import AuctionExpirySweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB (+ Redis when sweeping), start sweeper. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

    sweeper_task: asyncio.Task[None] | None = None
    if settings.SWEEPER_ENABLED:
        redis = await get_redis()
        await redis.ping()
        sweeper = AuctionExpirySweeper(get_auction_service(), async_session_factory, get_redis)
        sweeper_task = asyncio.create_task(sweeper.run_forever())
    yield
    # Shutdown
    if sweeper_task is not None:
        sweeper_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper_task
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
    if exc.http_status >= 500:
        logger.error("%s %s -> [%d] %s", request.method, request.url.path, exc.code, exc.message)
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(auction_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
