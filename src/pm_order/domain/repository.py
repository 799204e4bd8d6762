# src/pm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def create(self, order: Order, db: AsyncSession) -> Order:
        """Raises QuoteAlreadyUsedError when the quote already backs an order."""
        ...

    async def get_by_quote_id(self, quote_id: str, db: AsyncSession) -> Order | None: ...

    async def list_by_wallet(
        self, wallet_address: str, market_id: str | None, db: AsyncSession
    ) -> list[Order]: ...
