"""Repository Protocol for bets.

payment_status leaves 'pending' exactly once; mark_confirmed / mark_failed
return None when the bet was no longer pending.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_bet.domain.models import Bet


class BetRepositoryProtocol(Protocol):
    async def create(self, bet: Bet, db: AsyncSession) -> Bet: ...

    async def get_by_id_and_address(
        self, bet_id: str, wallet_address: str, db: AsyncSession
    ) -> Bet | None: ...

    async def mark_confirmed(
        self, bet_id: str, tx_hash: str | None, db: AsyncSession
    ) -> Bet | None: ...

    async def mark_failed(self, bet_id: str, db: AsyncSession) -> Bet | None: ...

    async def list_by_address(self, wallet_address: str, db: AsyncSession) -> list[Bet]: ...
