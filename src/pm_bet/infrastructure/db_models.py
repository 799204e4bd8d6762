"""SQLAlchemy ORM model for the bets table (DDL reference; queries use raw SQL)."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class BetORM(Base):
    __tablename__ = "bets"
    __table_args__ = (
        UniqueConstraint("payment_nonce", name="uq_bets_payment_nonce"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    user_wallet_address: Mapped[str] = mapped_column(String(128), nullable=False)
    wallet_type: Mapped[str] = mapped_column(String(10), nullable=False)
    prediction_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    token_address: Mapped[str] = mapped_column(Text, nullable=False)
    token_symbol: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bet_direction: Mapped[str] = mapped_column(String(10), nullable=False)
    bet_amount: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    bet_currency: Mapped[str] = mapped_column(String(10), nullable=False, server_default="USDC")
    ai_prediction: Mapped[str] = mapped_column(String(10), nullable=False)
    ai_confidence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ai_price_target_24h: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    entry_price: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    odds: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    potential_payout: Mapped[Decimal] = mapped_column(Numeric(20, 6), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(12), nullable=False, server_default="pending")
    payment_network: Mapped[str] = mapped_column(String(10), nullable=False)
    payment_tx_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payment_nonce: Mapped[str] = mapped_column(String(66), nullable=False)
    bet_status: Mapped[str] = mapped_column(String(10), nullable=False, server_default="active")
    settlement_price: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    settlement_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    settlement_tx_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payout_amount: Mapped[Decimal | None] = mapped_column(Numeric(20, 6), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
