"""Redis fixed-window rate limiting, attached per route as a dependency.

Counters live in Redis so every API instance shares them and they vanish
with the window TTL; nothing depends on process lifetime.

Key pattern: "ratelimit:{group}:{wallet address or client IP}"

Usage:
    prepare_limit = RateLimiter("bets:prepare", limit=10, window_seconds=60)

    @router.post("/prepare", dependencies=[Depends(prepare_limit)])
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from starlette.requests import Request

from src.pm_common.errors import AppError, RateLimitError
from src.pm_common.redis_client import get_redis, incr_fixed_window
from src.pm_gateway.auth.dependencies import bearer_scheme
from src.pm_gateway.auth.jwt_handler import decode_wallet_token

logger = logging.getLogger("pm.ratelimit")


def client_identity(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str:
    """Wallet address when a valid token is present, otherwise the client IP."""
    if credentials is not None and credentials.credentials:
        try:
            return f"wallet:{decode_wallet_token(credentials.credentials).address}"
        except AppError:
            pass  # auth dependency reports the bad token; limit by IP meanwhile
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return f"ip:{real_ip}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class RateLimiter:
    def __init__(self, group: str, limit: int, window_seconds: int) -> None:
        self.group = group
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(
        self,
        request: Request,
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    ) -> None:
        key = f"ratelimit:{self.group}:{client_identity(request, credentials)}"
        redis = await get_redis()
        count, reset_in = await incr_fixed_window(redis, key, self.window_seconds)
        if count > self.limit:
            logger.info("rate limit exceeded key=%s count=%d", key, count)
            raise RateLimitError(retry_after=max(reset_in, 1))
