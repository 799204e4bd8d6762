"""Wallet bearer token creation and verification.

A token is minted once per successfully verified wallet session and embeds
{address, wallet type, session id}. HS256 with the shared JWT_SECRET.

MVP NOTE: No token revocation. Once issued, tokens are valid until expiry.
The session_id claim allows adding a revocation check against
wallet_sessions later without changing the token format.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_WALLET_EXPIRE = timedelta(hours=settings.WALLET_SESSION_EXPIRE_HOURS)
_TOKEN_TYPE = "wallet"


@dataclass(frozen=True)
class WalletIdentity:
    """Caller identity decoded from a bearer token."""

    address: str
    wallet_type: str
    session_id: str


def create_wallet_token(address: str, wallet_type: str, session_id: str) -> tuple[str, datetime]:
    """Issue a wallet session token. Returns (token, expires_at)."""
    now = datetime.now(UTC)
    expires_at = now + _WALLET_EXPIRE
    payload = {
        "sub": address,
        "wallet_type": wallet_type,
        "sid": session_id,
        "type": _TOKEN_TYPE,
        "iat": now,
        "exp": expires_at,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM)), expires_at


def decode_wallet_token(token: str) -> WalletIdentity:
    """Decode and validate a wallet token.

    Raises:
        InvalidTokenError: expired, tampered, malformed, or not a wallet token.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != _TOKEN_TYPE:
        raise InvalidTokenError()

    address = payload.get("sub")
    wallet_type = payload.get("wallet_type")
    session_id = payload.get("sid")
    if not address or not wallet_type or not session_id:
        raise InvalidTokenError()

    return WalletIdentity(
        address=str(address),
        wallet_type=str(wallet_type),
        session_id=str(session_id),
    )
