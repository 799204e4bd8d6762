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
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.pm_bet.api.router import router as bet_router
from src.pm_common.database import engine
from src.pm_common.errors import AppError, InternalError, RateLimitError, ValidationError
from src.pm_common.redis_client import close_redis, get_redis
from src.pm_common.response import error_response
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_order.api.router import router as order_router
from src.pm_payment.api.router import router as payment_router
from src.pm_wallet.api.router import router as wallet_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("pm.app")


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


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_json(request: Request, exc: AppError, debug: dict | None = None) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.user_message)
    resp.debug = debug
    request_id = _request_id(request)
    if request_id:
        resp.request_id = request_id
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.http_status, content=resp.to_content(), headers=headers)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{location}: {first.get('msg', 'invalid input')}" if location else "invalid input"
    debug = None
    if settings.DEBUG:
        debug = {"errors": [
            {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]}
    return _error_json(request, ValidationError(detail), debug)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    debug = {"exception": type(exc).__name__, "detail": str(exc)} if settings.DEBUG else None
    return _error_json(request, InternalError(), debug)


app.include_router(wallet_router, prefix="/api/v1")
app.include_router(payment_router, prefix="/api/v1")
app.include_router(bet_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
