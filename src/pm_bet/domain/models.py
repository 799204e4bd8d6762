"""Bet domain model — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Bet:
    id: str
    wallet_address: str
    wallet_type: str             # evm / solana
    token_address: str
    direction: str               # bullish / bearish
    amount: Decimal              # 0.1 .. 100 USDC
    ai_prediction: str           # bullish / bearish / neutral, snapshot at creation
    entry_price: Decimal
    odds: Decimal
    potential_payout: Decimal
    payment_network: str         # base / solana
    payment_nonce: str
    expires_at: datetime
    prediction_id: str | None = None
    token_symbol: str | None = None
    currency: str = "USDC"
    ai_confidence: int | None = None
    ai_price_target_24h: Decimal | None = None
    payment_status: str = "pending"
    payment_tx_hash: str | None = None
    bet_status: str = "active"
    settlement_price: Decimal | None = None
    settlement_time: datetime | None = None
    settlement_tx_hash: str | None = None
    payout_amount: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending_payment(self) -> bool:
        return self.payment_status == "pending"
