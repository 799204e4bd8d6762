"""WalletSessionRepository Protocol — interface contract for persistence layer."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_wallet.domain.models import WalletSession


class WalletSessionRepositoryProtocol(Protocol):
    async def create(self, session: WalletSession, db: AsyncSession) -> WalletSession: ...

    async def get_by_id(self, session_id: str, db: AsyncSession) -> WalletSession | None: ...

    async def mark_verified(
        self,
        session_id: str,
        signature: str,
        session_token: str,
        verified_at: datetime,
        expires_at: datetime,
        db: AsyncSession,
    ) -> WalletSession | None:
        """Conditional update guarded on is_verified = FALSE and not expired.

        Returns None when another caller already consumed the session.
        """
        ...
