"""005: create bets table

Revision ID: 005
Revises: 004
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_wallet_address VARCHAR(128)    NOT NULL,
            wallet_type         VARCHAR(10)     NOT NULL,
            prediction_id       UUID,
            token_address       TEXT            NOT NULL,
            token_symbol        VARCHAR(64),
            bet_direction       VARCHAR(10)     NOT NULL,
            bet_amount          NUMERIC(20, 6)  NOT NULL,
            bet_currency        VARCHAR(10)     NOT NULL DEFAULT 'USDC',
            ai_prediction       VARCHAR(10)     NOT NULL,
            ai_confidence       INT,
            ai_price_target_24h NUMERIC,
            entry_price         NUMERIC         NOT NULL,
            odds                NUMERIC(6, 2)   NOT NULL,
            potential_payout    NUMERIC(20, 6)  NOT NULL,
            payment_status      VARCHAR(12)     NOT NULL DEFAULT 'pending',
            payment_network     VARCHAR(10)     NOT NULL,
            payment_tx_hash     VARCHAR(128),
            payment_nonce       VARCHAR(66)     NOT NULL,
            bet_status          VARCHAR(10)     NOT NULL DEFAULT 'active',
            settlement_price    NUMERIC,
            settlement_time     TIMESTAMPTZ,
            settlement_tx_hash  VARCHAR(128),
            payout_amount       NUMERIC(20, 6),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            expires_at          TIMESTAMPTZ     NOT NULL,
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bets_payment_nonce        UNIQUE (payment_nonce),
            CONSTRAINT ck_bets_wallet_type          CHECK (wallet_type IN ('evm', 'solana')),
            CONSTRAINT ck_bets_direction            CHECK (bet_direction IN ('bullish', 'bearish')),
            CONSTRAINT ck_bets_amount               CHECK (bet_amount >= 0.1 AND bet_amount <= 100),
            CONSTRAINT ck_bets_ai_prediction        CHECK (ai_prediction IN ('bullish', 'bearish', 'neutral')),
            CONSTRAINT ck_bets_ai_confidence        CHECK (ai_confidence BETWEEN 0 AND 100),
            CONSTRAINT ck_bets_payment_status       CHECK (
                payment_status IN ('pending', 'processing', 'confirmed', 'failed', 'refunded')
            ),
            CONSTRAINT ck_bets_payment_network      CHECK (payment_network IN ('base', 'solana')),
            CONSTRAINT ck_bets_status               CHECK (
                bet_status IN ('active', 'won', 'lost', 'cancelled', 'expired')
            )
        );
    """)
    op.execute("CREATE INDEX idx_bets_wallet ON bets (user_wallet_address, created_at DESC);")
    op.execute("CREATE INDEX idx_bets_status ON bets (bet_status, payment_status);")
    op.execute("""
        CREATE INDEX idx_bets_expires_active
        ON bets (expires_at)
        WHERE bet_status = 'active';
    """)
    op.execute("""
        CREATE TRIGGER trg_bets_updated_at
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_bets_updated_at ON bets;")
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
