"""Repository Protocol for payment quotes.

Status transitions are compare-and-swap: each mutating method only touches
a row still in 'quoted' and returns None / False when it lost the race.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_payment.domain.models import PaymentQuote


class PaymentQuoteRepositoryProtocol(Protocol):
    async def create(self, quote: PaymentQuote, db: AsyncSession) -> PaymentQuote: ...

    async def get_by_quote_id(self, quote_id: str, db: AsyncSession) -> PaymentQuote | None: ...

    async def find_quote_id_by_tx_hash(
        self, tx_hash: str, db: AsyncSession, exclude_quote_id: str | None = None
    ) -> str | None: ...

    async def mark_paid(
        self, quote_id: str, tx_hash: str, now: datetime, db: AsyncSession
    ) -> PaymentQuote | None:
        """quoted → paid. Raises TxHashAlreadyUsedError on the tx_hash unique constraint."""
        ...

    async def mark_expired(self, quote_id: str, db: AsyncSession) -> bool: ...

    async def get_paid_by_tx_hash(self, tx_hash: str, db: AsyncSession) -> PaymentQuote | None: ...
