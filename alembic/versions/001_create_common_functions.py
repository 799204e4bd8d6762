"""001: shared extensions and trigger functions

pgcrypto provides gen_random_uuid() on PostgreSQL < 13; fn_update_timestamp()
is attached to tables that carry an updated_at column (bets).

Revision ID: 001
Revises:
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
    # pgcrypto is left installed; other schemas in the database may use it
