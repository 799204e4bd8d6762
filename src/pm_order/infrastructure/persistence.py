# src/pm_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import violated_constraint
from src.pm_common.errors import QuoteAlreadyUsedError
from src.pm_order.domain.models import Order

QUOTE_ID_CONSTRAINT = "uq_orders_quote_id"

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    order_id, user_id, quote_id, market_id, direction, order_type,
    limit_price, shares, status, filled_price, tx_hash, created_at
"""

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders (order_id, user_id, quote_id, market_id, direction, order_type,
        limit_price, shares, status, filled_price, tx_hash)
    VALUES (:order_id, :user_id, :quote_id, :market_id, :direction, :order_type,
        :limit_price, :shares, :status, :filled_price, :tx_hash)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_ORDER_BY_QUOTE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE quote_id = :quote_id
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE user_id = :user_id
      AND (CAST(:market_id AS TEXT) IS NULL OR market_id = :market_id)
    ORDER BY created_at DESC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        order_id=row.order_id,
        wallet_address=row.user_id,
        quote_id=row.quote_id,
        market_id=row.market_id,
        direction=row.direction,
        order_type=row.order_type,
        limit_price=row.limit_price,
        shares=row.shares,
        status=row.status or "pending",
        filled_price=row.filled_price,
        tx_hash=row.tx_hash,
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def create(self, order: Order, db: AsyncSession) -> Order:
        try:
            result = await db.execute(
                _INSERT_ORDER_SQL,
                {
                    "order_id": order.order_id,
                    "user_id": order.wallet_address,
                    "quote_id": order.quote_id,
                    "market_id": order.market_id,
                    "direction": order.direction,
                    "order_type": order.order_type,
                    "limit_price": order.limit_price,
                    "shares": order.shares,
                    "status": order.status,
                    "filled_price": order.filled_price,
                    "tx_hash": order.tx_hash,
                },
            )
        except IntegrityError as exc:
            if violated_constraint(exc) == QUOTE_ID_CONSTRAINT:
                raise QuoteAlreadyUsedError(order.quote_id) from None
            raise
        return _row_to_order(result.fetchone())

    async def get_by_quote_id(self, quote_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_QUOTE_SQL, {"quote_id": quote_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_by_wallet(
        self, wallet_address: str, market_id: str | None, db: AsyncSession
    ) -> list[Order]:
        result = await db.execute(
            _LIST_ORDERS_SQL, {"user_id": wallet_address, "market_id": market_id}
        )
        return [_row_to_order(row) for row in result.fetchall()]
