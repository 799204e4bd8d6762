"""004: create payments_quotes table

uq_payments_quotes_tx_hash is what makes a tx hash pay for at most one
quote when two confirmations race.

Revision ID: 004
Revises: 003
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payments_quotes (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            quote_id            VARCHAR(64)     NOT NULL,
            user_id             VARCHAR(128),
            market_id           VARCHAR(128)    NOT NULL,
            direction           VARCHAR(8)      NOT NULL,
            order_type          VARCHAR(8)      NOT NULL,
            limit_price         NUMERIC(20, 6),
            shares              NUMERIC(20, 6)  NOT NULL,
            token               VARCHAR(64)     NOT NULL,
            amount              NUMERIC(20, 6)  NOT NULL,
            spender             VARCHAR(128)    NOT NULL,
            deadline            TIMESTAMPTZ     NOT NULL,
            tx_chain_id         INT             NOT NULL,
            tx_from             VARCHAR(128)    NOT NULL,
            tx_to               VARCHAR(128)    NOT NULL,
            tx_data             TEXT            NOT NULL,
            tx_value            VARCHAR(78)     NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'quoted',
            tx_hash             VARCHAR(128),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_payments_quotes_quote_id  UNIQUE (quote_id),
            CONSTRAINT uq_payments_quotes_tx_hash   UNIQUE (tx_hash),
            CONSTRAINT ck_payments_quotes_direction CHECK (direction IN ('Up', 'Down')),
            CONSTRAINT ck_payments_quotes_order_type CHECK (order_type IN ('Market', 'Limit')),
            CONSTRAINT ck_payments_quotes_amount    CHECK (amount >= 0),
            CONSTRAINT ck_payments_quotes_status    CHECK (status IN ('quoted', 'paid', 'expired')),
            CONSTRAINT ck_payments_quotes_paid_hash CHECK (status <> 'paid' OR tx_hash IS NOT NULL)
        );
    """)
    op.execute("CREATE INDEX idx_payments_quotes_status ON payments_quotes (status, deadline);")
    op.execute("CREATE INDEX idx_payments_quotes_user ON payments_quotes (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payments_quotes CASCADE;")
