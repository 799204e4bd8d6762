"""WalletSessionRepository — raw SQL persistence implementation.

Sessions are never deleted (audit trail). The only mutation is the single
unverified → verified transition, done as a conditional UPDATE so two
concurrent verify calls cannot both mint a token for one nonce.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_wallet.domain.models import WalletSession

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_RETURNING_COLUMNS = """
    CAST(id AS TEXT) AS id, wallet_address, wallet_type, challenge_message,
    nonce, signature, is_verified, session_token,
    created_at, verified_at, expires_at
"""

_INSERT_SESSION_SQL = text(f"""
    INSERT INTO wallet_sessions
        (wallet_address, wallet_type, challenge_message, nonce, expires_at)
    VALUES
        (:wallet_address, :wallet_type, :challenge_message, :nonce, :expires_at)
    RETURNING {_RETURNING_COLUMNS}
""")

_GET_SESSION_SQL = text(f"""
    SELECT {_RETURNING_COLUMNS}
    FROM wallet_sessions WHERE id = CAST(:id AS UUID)
""")

_MARK_VERIFIED_SQL = text(f"""
    UPDATE wallet_sessions
    SET is_verified = TRUE,
        signature = :signature,
        session_token = :session_token,
        verified_at = :verified_at,
        expires_at = :expires_at
    WHERE id = CAST(:id AS UUID)
      AND is_verified = FALSE
      AND expires_at >= :verified_at
    RETURNING {_RETURNING_COLUMNS}
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_session(row: Any) -> WalletSession:
    """Convert a DB result row to a WalletSession domain object."""
    return WalletSession(
        id=str(row.id),
        wallet_address=row.wallet_address,
        wallet_type=row.wallet_type,
        challenge_message=row.challenge_message,
        nonce=row.nonce,
        expires_at=row.expires_at,
        signature=row.signature,
        is_verified=bool(row.is_verified),
        session_token=row.session_token,
        created_at=row.created_at,
        verified_at=row.verified_at,
    )


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, TypeError):
        return False
    return True


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class WalletSessionRepository:
    """Concrete implementation of WalletSessionRepositoryProtocol using raw SQL."""

    async def create(self, session: WalletSession, db: AsyncSession) -> WalletSession:
        result = await db.execute(
            _INSERT_SESSION_SQL,
            {
                "wallet_address": session.wallet_address,
                "wallet_type": session.wallet_type,
                "challenge_message": session.challenge_message,
                "nonce": session.nonce,
                "expires_at": session.expires_at,
            },
        )
        return _row_to_session(result.fetchone())

    async def get_by_id(self, session_id: str, db: AsyncSession) -> WalletSession | None:
        if not _is_uuid(session_id):
            return None
        result = await db.execute(_GET_SESSION_SQL, {"id": session_id})
        row = result.fetchone()
        return _row_to_session(row) if row else None

    async def mark_verified(
        self,
        session_id: str,
        signature: str,
        session_token: str,
        verified_at: datetime,
        expires_at: datetime,
        db: AsyncSession,
    ) -> WalletSession | None:
        result = await db.execute(
            _MARK_VERIFIED_SQL,
            {
                "id": session_id,
                "signature": signature,
                "session_token": session_token,
                "verified_at": verified_at,
                "expires_at": expires_at,
            },
        )
        row = result.fetchone()
        return _row_to_session(row) if row else None
