"""PaymentQuoteRepository — raw SQL persistence implementation.

Every status change is a conditional UPDATE on the prior status; the
tx_hash unique constraint (uq_payments_quotes_tx_hash) backs up the
uniqueness pre-check when two quotes race with the same hash.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import violated_constraint
from src.pm_common.errors import TxHashAlreadyUsedError
from src.pm_payment.domain.models import PaymentQuote, QuoteTx

TX_HASH_CONSTRAINT = "uq_payments_quotes_tx_hash"

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    quote_id, user_id, market_id, direction, order_type,
    limit_price, shares, token, amount, spender, deadline,
    tx_chain_id, tx_from, tx_to, tx_data, tx_value,
    status, tx_hash, created_at
"""

_INSERT_QUOTE_SQL = text(f"""
    INSERT INTO payments_quotes
        (quote_id, user_id, market_id, direction, order_type, limit_price, shares,
         token, amount, spender, deadline,
         tx_chain_id, tx_from, tx_to, tx_data, tx_value, status)
    VALUES
        (:quote_id, :user_id, :market_id, :direction, :order_type,
         :limit_price, :shares, :token, :amount, :spender, :deadline,
         :tx_chain_id, :tx_from, :tx_to, :tx_data, :tx_value, 'quoted')
    RETURNING {_SELECT_COLUMNS}
""")

_GET_QUOTE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM payments_quotes WHERE quote_id = :quote_id
""")

_FIND_BY_TX_HASH_SQL = text("""
    SELECT quote_id FROM payments_quotes
    WHERE tx_hash = :tx_hash
      AND (CAST(:exclude_quote_id AS TEXT) IS NULL OR quote_id <> :exclude_quote_id)
    LIMIT 1
""")

_MARK_PAID_SQL = text(f"""
    UPDATE payments_quotes
    SET status = 'paid', tx_hash = :tx_hash
    WHERE quote_id = :quote_id
      AND status = 'quoted'
      AND deadline >= :now
    RETURNING {_SELECT_COLUMNS}
""")

_MARK_EXPIRED_SQL = text("""
    UPDATE payments_quotes
    SET status = 'expired'
    WHERE quote_id = :quote_id AND status = 'quoted'
""")

_GET_PAID_BY_TX_HASH_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM payments_quotes WHERE tx_hash = :tx_hash AND status = 'paid'
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_quote(row: Any) -> PaymentQuote:
    """Convert a DB result row to a PaymentQuote domain object."""
    return PaymentQuote(
        quote_id=row.quote_id,
        user_id=row.user_id,
        market_id=row.market_id,
        direction=row.direction,
        order_type=row.order_type,
        limit_price=row.limit_price,
        shares=row.shares,
        token=row.token,
        amount=row.amount,
        spender=row.spender,
        deadline=row.deadline,
        tx=QuoteTx(
            chain_id=int(row.tx_chain_id),
            from_address=row.tx_from,
            to=row.tx_to,
            data=row.tx_data,
            value=row.tx_value,
        ),
        status=row.status or "quoted",
        tx_hash=row.tx_hash,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PaymentQuoteRepository:
    """Concrete implementation of PaymentQuoteRepositoryProtocol using raw SQL."""

    async def create(self, quote: PaymentQuote, db: AsyncSession) -> PaymentQuote:
        result = await db.execute(
            _INSERT_QUOTE_SQL,
            {
                "quote_id": quote.quote_id,
                "user_id": quote.user_id,
                "market_id": quote.market_id,
                "direction": quote.direction,
                "order_type": quote.order_type,
                "limit_price": quote.limit_price,
                "shares": quote.shares,
                "token": quote.token,
                "amount": quote.amount,
                "spender": quote.spender,
                "deadline": quote.deadline,
                "tx_chain_id": quote.tx.chain_id,
                "tx_from": quote.tx.from_address,
                "tx_to": quote.tx.to,
                "tx_data": quote.tx.data,
                "tx_value": quote.tx.value,
            },
        )
        return _row_to_quote(result.fetchone())

    async def get_by_quote_id(self, quote_id: str, db: AsyncSession) -> PaymentQuote | None:
        result = await db.execute(_GET_QUOTE_SQL, {"quote_id": quote_id})
        row = result.fetchone()
        return _row_to_quote(row) if row else None

    async def find_quote_id_by_tx_hash(
        self, tx_hash: str, db: AsyncSession, exclude_quote_id: str | None = None
    ) -> str | None:
        result = await db.execute(
            _FIND_BY_TX_HASH_SQL,
            {"tx_hash": tx_hash, "exclude_quote_id": exclude_quote_id},
        )
        row = result.fetchone()
        return row.quote_id if row else None

    async def mark_paid(
        self, quote_id: str, tx_hash: str, now: datetime, db: AsyncSession
    ) -> PaymentQuote | None:
        try:
            result = await db.execute(
                _MARK_PAID_SQL, {"quote_id": quote_id, "tx_hash": tx_hash, "now": now}
            )
        except IntegrityError as exc:
            if violated_constraint(exc) == TX_HASH_CONSTRAINT:
                raise TxHashAlreadyUsedError(tx_hash) from None
            raise
        row = result.fetchone()
        return _row_to_quote(row) if row else None

    async def mark_expired(self, quote_id: str, db: AsyncSession) -> bool:
        result = await db.execute(_MARK_EXPIRED_SQL, {"quote_id": quote_id})
        return (result.rowcount or 0) > 0

    async def get_paid_by_tx_hash(self, tx_hash: str, db: AsyncSession) -> PaymentQuote | None:
        result = await db.execute(_GET_PAID_BY_TX_HASH_SQL, {"tx_hash": tx_hash})
        row = result.fetchone()
        return _row_to_quote(row) if row else None
