"""AI prediction snapshot: the read-only view a bet is priced against."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

NEUTRAL_CONFIDENCE = 50


@dataclass(frozen=True)
class PredictionSnapshot:
    id: str
    token_address: str
    prediction: str                 # bullish / bearish / neutral
    confidence: int                 # 0..100
    current_price: Decimal
    price_target_24h: Decimal | None = None
    created_at: datetime | None = None

    @property
    def token_symbol(self) -> str | None:
        """Last path segment of the token address ("chain/SYMBOL" → "SYMBOL")."""
        if not self.token_address:
            return None
        return self.token_address.split("/")[-1] or None
