"""006: create orders table

Every order is backed by exactly one paid quote (uq_orders_quote_id).

Revision ID: 006
Revises: 005
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id            VARCHAR(64)     NOT NULL,
            user_id             VARCHAR(128)    NOT NULL,
            quote_id            VARCHAR(64)     NOT NULL REFERENCES payments_quotes (quote_id),
            market_id           VARCHAR(128)    NOT NULL,
            direction           VARCHAR(8)      NOT NULL,
            order_type          VARCHAR(8)      NOT NULL,
            limit_price         NUMERIC(20, 6),
            shares              NUMERIC(20, 6)  NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            filled_price        NUMERIC(20, 6),
            tx_hash             VARCHAR(128)    NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_orders_order_id       UNIQUE (order_id),
            CONSTRAINT uq_orders_quote_id       UNIQUE (quote_id),
            CONSTRAINT ck_orders_direction      CHECK (direction IN ('Up', 'Down')),
            CONSTRAINT ck_orders_order_type     CHECK (order_type IN ('Market', 'Limit')),
            CONSTRAINT ck_orders_shares         CHECK (shares > 0),
            CONSTRAINT ck_orders_status         CHECK (status IN ('pending', 'filled', 'cancelled'))
        );
    """)
    op.execute("CREATE INDEX idx_orders_user ON orders (user_id, created_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
