"""SQLAlchemy ORM model for the payments_quotes table (DDL reference only — queries use raw SQL)."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class PaymentQuoteORM(Base):
    __tablename__ = "payments_quotes"
    __table_args__ = (
        UniqueConstraint("quote_id", name="uq_payments_quotes_quote_id"),
        UniqueConstraint("tx_hash", name="uq_payments_quotes_tx_hash"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    quote_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    market_id: Mapped[str] = mapped_column(String(128), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    order_type: Mapped[str] = mapped_column(String(8), nullable=False)
    limit_price: Mapped[Decimal | None] = mapped_column(Numeric(20, 6), nullable=True)
    shares: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    spender: Mapped[str] = mapped_column(String(128), nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    tx_chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    tx_from: Mapped[str] = mapped_column(String(128), nullable=False)
    tx_to: Mapped[str] = mapped_column(String(128), nullable=False)
    tx_data: Mapped[str] = mapped_column(Text, nullable=False)
    tx_value: Mapped[str] = mapped_column(String(78), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, server_default="quoted")
    tx_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
