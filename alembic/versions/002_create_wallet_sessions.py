"""002: create wallet_sessions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallet_sessions (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            wallet_address      VARCHAR(128)    NOT NULL,
            wallet_type         VARCHAR(10)     NOT NULL,
            challenge_message   TEXT            NOT NULL,
            nonce               VARCHAR(64)     NOT NULL,
            signature           TEXT,
            is_verified         BOOLEAN         NOT NULL DEFAULT FALSE,
            session_token       TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            verified_at         TIMESTAMPTZ,
            expires_at          TIMESTAMPTZ     NOT NULL,
            CONSTRAINT uq_wallet_sessions_nonce         UNIQUE (nonce),
            CONSTRAINT uq_wallet_sessions_session_token UNIQUE (session_token),
            CONSTRAINT ck_wallet_sessions_wallet_type   CHECK (wallet_type IN ('evm', 'solana')),
            CONSTRAINT ck_wallet_sessions_verified      CHECK (
                (is_verified = FALSE AND verified_at IS NULL) OR
                (is_verified = TRUE AND verified_at IS NOT NULL AND signature IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_wallet_sessions_address ON wallet_sessions (wallet_address);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_sessions CASCADE;")
