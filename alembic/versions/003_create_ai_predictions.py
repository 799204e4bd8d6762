"""003: create ai_predictions table

Written by the analysis pipeline; bets read snapshots from it.

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS ai_predictions (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            token_address       TEXT            NOT NULL,
            prediction          VARCHAR(10),
            confidence          INT,
            price_target_24h    NUMERIC,
            current_price       NUMERIC,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ai_predictions_prediction CHECK (
                prediction IN ('bullish', 'bearish', 'neutral')
            ),
            CONSTRAINT ck_ai_predictions_confidence CHECK (confidence BETWEEN 0 AND 100)
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_ai_predictions_token ON ai_predictions (token_address);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ai_predictions CASCADE;")
