"""FastAPI dependencies: get_current_wallet / get_optional_wallet.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import get_current_wallet

    @router.get("/protected")
    async def protected(wallet: WalletIdentity = Depends(get_current_wallet)):
        ...
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.pm_common.errors import UnauthorizedError
from src.pm_gateway.auth.jwt_handler import WalletIdentity, decode_wallet_token

# auto_error=False so a missing header goes through our 401 envelope instead of 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_wallet(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> WalletIdentity:
    """Resolve the Bearer token into the caller's wallet identity.

    Raises UnauthorizedError (401) if the header is missing, and
    InvalidTokenError (401) if the token is invalid or expired.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Missing bearer token")
    return decode_wallet_token(credentials.credentials)


async def get_optional_wallet(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> WalletIdentity | None:
    """Like get_current_wallet, but anonymous callers get None.

    A token that is present but invalid still fails with 401.
    """
    if credentials is None or not credentials.credentials:
        return None
    return decode_wallet_token(credentials.credentials)
